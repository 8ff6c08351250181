# src/q8agent/__init__.py
"""
q8agent - host agent that provisions and operates tenant container stacks.

The agent keeps one directory per tenant under a tenants root, drives
``docker compose`` against it, and creates per-tenant database users on a
shared MongoDB engine. Everything is exposed over a small authenticated
HTTP API (see ``q8agent.api_server``).
"""

from importlib.metadata import PackageNotFoundError, version

from .config import AgentConfig, load_agent_config
from .exceptions import (
    CommandError,
    CommandFailedError,
    CommandTimeoutError,
    ConfigError,
    EngineUnavailableError,
    InvalidSubdomainError,
    OrchestrationError,
    Q8AgentError,
    TenantDirectoryError,
    ValidationError,
)
from .models import DatabaseUserOutcome, DatabaseUserRequest, TenantIdentity
from .orchestration import TenantOrchestrator

try:
    __version__ = version("q8-agent")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "AgentConfig",
    "CommandError",
    "CommandFailedError",
    "CommandTimeoutError",
    "ConfigError",
    "DatabaseUserOutcome",
    "DatabaseUserRequest",
    "EngineUnavailableError",
    "InvalidSubdomainError",
    "OrchestrationError",
    "Q8AgentError",
    "TenantDirectoryError",
    "TenantIdentity",
    "TenantOrchestrator",
    "ValidationError",
    "__version__",
    "load_agent_config",
]
