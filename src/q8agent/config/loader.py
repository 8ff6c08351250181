# src/q8agent/config/loader.py
"""
Configuration loading for the q8 agent.

Configuration is loaded and merged in order:
    1. Default values
    2. TOML config file (explicit path or Q8_AGENT_CONFIG_FILE)
    3. Environment variables
    4. Runtime overrides

The result is validated into a frozen AgentConfig.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigError
from .models import AgentConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "Q8_AGENT_CONFIG_FILE"
DEFAULT_ADMIN_TOKEN = "change-me"

# Environment variable -> key path inside the configuration dictionary.
ENV_VARS: Dict[str, Tuple[str, ...]] = {
    "Q8_AGENT_HOST": ("host",),
    "Q8_AGENT_PORT": ("port",),
    "Q8_AGENT_ADMIN_TOKEN": ("admin_token",),
    "Q8_TENANTS_ROOT": ("tenants_root",),
    "Q8_PROJECT_PREFIX": ("project_prefix",),
    "Q8_COMMAND_TIMEOUT": ("command_timeout_seconds",),
    "Q8_READ_TIMEOUT": ("read_timeout_seconds",),
    "Q8_DOCKER_HOST": ("docker_host",),
    "Q8_CHECK_ENGINE": ("check_engine_on_startup",),
    "Q8_MONGO_HOST": ("mongo", "host"),
    "Q8_MONGO_PORT": ("mongo", "port"),
    "Q8_MONGO_USER": ("mongo", "user"),
    "Q8_MONGO_PASSWORD": ("mongo", "password"),
    "Q8_MONGO_IMAGE": ("mongo", "image"),
    "Q8_LOG_LEVEL": ("logging", "level"),
    "Q8_LOG_DIR": ("logging", "file_directory"),
    "Q8_LOG_JSON": ("logging", "json"),
    "Q8_LOG_CONSOLE": ("logging", "console"),
}


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with override values

    Returns:
        Merged dictionary
    """
    result = dict(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(config: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Values are kept as strings; pydantic coerces them to the field types.
    An empty value for an optional setting (e.g. ``Q8_DOCKER_HOST=``) unsets it.

    Args:
        config: Configuration dictionary
        environ: Environment mapping to read from

    Returns:
        Configuration with environment overrides applied
    """
    for env_name, key_path in ENV_VARS.items():
        if env_name not in environ:
            continue

        value: Optional[str] = environ[env_name]
        if value == "" and key_path in (("docker_host",), ("logging", "file_directory")):
            value = None

        section = config
        for key in key_path[:-1]:
            section = section.setdefault(key, {})
        section[key_path[-1]] = value

    return config


def load_toml_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file does not exist or cannot be parsed
    """
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}") from e

    logger.debug(f"Loaded agent config from {config_path}")
    return data


def load_agent_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AgentConfig:
    """
    Load complete agent configuration.

    Args:
        config_path: Optional path to a TOML config file. When omitted, the
            path in Q8_AGENT_CONFIG_FILE is used if set.
        overrides: Optional runtime overrides, applied last
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated, immutable AgentConfig

    Raises:
        ConfigError: If the file cannot be read or the merged values are invalid
    """
    environ = os.environ if environ is None else environ
    config: Dict[str, Any] = {}

    if config_path is None and environ.get(CONFIG_FILE_ENV):
        config_path = Path(environ[CONFIG_FILE_ENV])
    if config_path is not None:
        config = _deep_merge(config, load_toml_config(Path(config_path).expanduser()))

    config = _apply_env_overrides(config, environ)

    if overrides:
        config = _deep_merge(config, overrides)

    try:
        agent_config = AgentConfig.model_validate(config)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid agent configuration: {e}") from e

    if agent_config.admin_token == DEFAULT_ADMIN_TOKEN:
        logger.warning("Admin token is set to the default value; set Q8_AGENT_ADMIN_TOKEN")

    return agent_config
