# src/q8agent/engine/base.py
"""
Abstract base class and result model for container engine executors.

This module defines the contract the orchestrator relies on, so the
orchestrator never builds command lines itself and tests can substitute
an in-memory executor.

Classes:
    CommandResult: Result of one external command
    ComposeExecutor: Abstract base class for executors
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_LOG_TAIL = 100


@dataclass
class CommandResult:
    """
    Result of running an external command.

    Attributes:
        command: argv that was executed
        exit_code: Process exit code (0 = success)
        output: Combined standard output and standard error
        duration_seconds: Wall-clock time for the command

    Example:
        >>> result = CommandResult(command=["docker", "compose", "version"], exit_code=0)
        >>> result.success
        True
    """
    command: List[str]
    exit_code: int
    output: str = ""
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """True if the command exited with status 0."""
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result to dictionary."""
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "output": self.output,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
        }


class ComposeExecutor(ABC):
    """
    Contract for running compose operations against one project.

    Every operation is scoped to a project name and the tenant directory
    holding its configuration. Non-zero exits are reported through
    ``CommandResult.success``; implementations raise only for timeouts
    (CommandTimeoutError) and an unreachable engine (EngineUnavailableError).

    ``timeout`` is in seconds; None means the implementation's default.
    """

    @abstractmethod
    async def pull(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        """Fetch the images referenced by the project."""

    @abstractmethod
    async def up(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        """(Re)create and start all services, always re-pulling images."""

    @abstractmethod
    async def down(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        """Stop and remove containers, networks, named volumes and orphans."""

    @abstractmethod
    async def restart(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        """Restart existing containers in place."""

    @abstractmethod
    async def ps(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        """Container status as line-delimited JSON."""

    @abstractmethod
    async def logs(
        self,
        project: str,
        directory: Path,
        tail: int = DEFAULT_LOG_TAIL,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Last ``tail`` lines of uncolored logs for all services."""

    @abstractmethod
    async def images(self, project: str, directory: Path, timeout: Optional[float] = None) -> CommandResult:
        """Image metadata for the project's services as JSON."""

    @abstractmethod
    async def is_available(self) -> bool:
        """Whether the engine and its compose sub-command can be reached."""

    @abstractmethod
    async def run_admin_script(self, host: str, script: str, timeout: Optional[float] = None) -> CommandResult:
        """Run a one-shot database client container on the host network evaluating ``script``."""
