# src/q8agent/logging_config.py
"""
Process-wide logging setup for the q8 agent.

Records go to stderr and, when ``[logging] file_directory`` is set, to a
size-rotated ``q8-agent.log`` in that directory. Setting ``[logging]
console = false`` (or ``Q8_LOG_CONSOLE=false``) puts the console in quiet
mode: only records logged through :func:`log_display`, such as the startup
route banner, still reach stderr. The file, when enabled, always receives
everything at DEBUG and above.

Usage:
    log_file = configure_logging(app_name="q8-agent", config=logging_config_from_settings(settings))
    log_display(logger, logging.INFO, "Q8 Agent listening on %s:%d", host, port)
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .config.models import LoggingSettings
from .exceptions import ConfigError

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "console_enabled": True,
    "console_level": "INFO",
    "console_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "file_enabled": False,
    "file_directory": None,
    "file_format": "%(asctime)s [%(levelname)-8s] %(name)s - %(message)s (%(filename)s:%(lineno)d)",
    "rotation_max_bytes": 10 * 1024 * 1024,
    "rotation_backup_count": 5,
    # Per-logger levels applied after the handlers are installed.
    "components": {
        "q8agent": "DEBUG",
        "uvicorn.access": "WARNING",
        "docker": "WARNING",
        "urllib3": "WARNING",
        "asyncio": "WARNING",
    },
}


def logging_config_from_settings(settings: LoggingSettings) -> dict[str, Any]:
    """Translate the [logging] configuration section into a logging config dict."""
    return {
        "console_enabled": settings.console,
        "console_level": settings.level,
        "file_enabled": settings.file_directory is not None,
        "file_directory": settings.file_directory,
    }


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


class DisplayFilter(logging.Filter):
    """Console gate for quiet mode.

    With the console enabled every record passes and the handler's level
    decides. In quiet mode only records flagged ``display=True`` at INFO
    or above get through.
    """

    def __init__(self, console_enabled: bool = True) -> None:
        super().__init__()
        self.console_enabled = console_enabled

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_enabled:
            return True
        return getattr(record, "display", False) and record.levelno >= logging.INFO


class UnifiedLoggingManager:
    """Configures the root logger once per process."""

    _configured: bool = False
    _log_file_path: Optional[Path] = None

    def configure(self, app_name: str, config: Optional[dict[str, Any]] = None) -> Optional[Path]:
        """
        Install the console and optional file handlers on the root logger.

        Later calls return the first call's log file path without touching
        the handlers.

        Returns:
            Path of the log file, or None if file logging is off
        """
        cls = type(self)
        if cls._configured:
            return cls._log_file_path

        log_config = {**DEFAULT_LOGGING_CONFIG, **(config or {})}
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.DEBUG)

        console_enabled = bool(log_config["console_enabled"])
        console_handler = logging.StreamHandler(sys.stderr)
        # In quiet mode the filter alone decides what is shown.
        console_handler.setLevel(_level(log_config["console_level"]) if console_enabled else logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(log_config["console_format"]))
        console_handler.addFilter(DisplayFilter(console_enabled))
        root_logger.addHandler(console_handler)

        log_file_path = None
        if log_config["file_enabled"] and log_config["file_directory"]:
            log_file_path = Path(log_config["file_directory"]).expanduser() / f"{app_name}.log"
            root_logger.addHandler(self._file_handler(log_file_path, log_config))

        for component, level_name in log_config["components"].items():
            logging.getLogger(component).setLevel(_level(level_name))

        cls._configured = True
        cls._log_file_path = log_file_path
        return log_file_path

    @staticmethod
    def _file_handler(path: Path, config: dict[str, Any]) -> logging.Handler:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                path,
                maxBytes=config["rotation_max_bytes"],
                backupCount=config["rotation_backup_count"],
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigError(f"Cannot open log file {path}: {e}") from e
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(config["file_format"]))
        return handler


def configure_logging(app_name: str = "q8-agent", config: Optional[dict[str, Any]] = None) -> Optional[Path]:
    """
    Configure process logging. Call once, before the HTTP server starts.

    Raises:
        ConfigError: If the log file cannot be created
    """
    return UnifiedLoggingManager().configure(app_name=app_name, config=config)


def log_display(logger: logging.Logger, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
    """``logger.log`` with ``display=True`` so the line survives quiet mode.

    A caller's own ``extra`` is merged, not replaced.
    """
    kwargs["extra"] = {**(kwargs.get("extra") or {}), "display": True}
    logger.log(level, msg, *args, **kwargs)
