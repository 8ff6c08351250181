# src/q8agent/engine/__init__.py
"""
Container engine execution for the q8 agent.

The orchestrator talks to the container engine only through the
ComposeExecutor contract; DockerComposeExecutor is the production
implementation.
"""

from .base import DEFAULT_LOG_TAIL, CommandResult, ComposeExecutor
from .docker_compose import DockerComposeExecutor

__all__ = ["DEFAULT_LOG_TAIL", "CommandResult", "ComposeExecutor", "DockerComposeExecutor"]
