# src/q8agent/config/__init__.py
"""
Configuration module for the q8 agent.

Configuration sources, lowest precedence first:
    - Built-in defaults (see models.AgentConfig)
    - TOML file given explicitly or via Q8_AGENT_CONFIG_FILE
    - Environment variables (Q8_AGENT_PORT, Q8_AGENT_ADMIN_TOKEN, Q8_TENANTS_ROOT, ...)
    - Runtime overrides passed to load_agent_config()
"""

from .loader import load_agent_config
from .models import AgentConfig, LoggingSettings, MongoAdminConfig

__all__ = ["AgentConfig", "LoggingSettings", "MongoAdminConfig", "load_agent_config"]
