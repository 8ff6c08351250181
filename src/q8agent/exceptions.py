# src/q8agent/exceptions.py
"""
Custom exceptions for the q8 agent.

This module defines a hierarchy of exception classes so that callers can
tell filesystem problems, external command failures, validation errors and
orchestration failures apart, while the HTTP layer can still catch the
common base class.

Exception Hierarchy:
    Q8AgentError (base)
    ├── ConfigError - Configuration could not be loaded or validated
    ├── ValidationError - Caller supplied invalid input
    │   └── InvalidSubdomainError - Subdomain is not a valid tenant key
    ├── TenantDirectoryError - Tenant directory operation failed
    ├── CommandError - External command problem
    │   ├── CommandFailedError - Command exited non-zero
    │   ├── CommandTimeoutError - Command exceeded its deadline
    │   └── EngineUnavailableError - docker / compose not reachable
    └── OrchestrationError - Stage-prefixed lifecycle failure
"""

from typing import Any, Dict, List, Optional


class Q8AgentError(Exception):
    """Base class for all q8 agent specific errors."""

    def __init__(self, message: str = "An unspecified error occurred in the q8 agent."):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
        }


class ConfigError(Q8AgentError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)


class ValidationError(Q8AgentError):
    """Raised when a request carries missing or malformed fields."""
    def __init__(self, message: str = "Invalid request."):
        super().__init__(message)


class InvalidSubdomainError(ValidationError):
    """Raised when a subdomain cannot be used as a tenant directory or project name."""
    def __init__(self, subdomain: str, message: str = "Invalid subdomain."):
        self.subdomain = subdomain
        super().__init__(f"{message} Subdomain: '{subdomain}'")


class TenantDirectoryError(Q8AgentError):
    """
    Raised when a filesystem operation on a tenant directory fails.

    Attributes:
        path: The path the operation was acting on
        operation: Short name of the operation (prepare, write, archive, remove)
    """

    def __init__(
        self,
        message: str = "Tenant directory error.",
        path: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.path = path
        self.operation = operation
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"path": self.path, "operation": self.operation})
        return result


class CommandError(Q8AgentError):
    """
    Base class for errors raised around external command execution.

    Attributes:
        command: The argv of the command, if known
        output: Combined stdout/stderr captured so far
        exit_code: Exit code if the process finished
    """

    def __init__(
        self,
        message: str = "Command error.",
        command: Optional[List[str]] = None,
        output: str = "",
        exit_code: Optional[int] = None,
    ):
        self.command = command
        self.output = output
        self.exit_code = exit_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update(
            {
                "command": " ".join(self.command) if self.command else None,
                "exit_code": self.exit_code,
                "output": self.output[:500] if self.output else None,
            }
        )
        return result


class CommandFailedError(CommandError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: List[str], output: str, exit_code: int):
        super().__init__(
            f"{output.strip() or 'no output'}: exit status {exit_code}",
            command=command,
            output=output,
            exit_code=exit_code,
        )


class CommandTimeoutError(CommandError):
    """
    Raised when an external command exceeds its deadline and is killed.

    Kept separate from CommandFailedError so callers can tell a hung engine
    from a command that ran and failed.
    """

    def __init__(self, command: List[str], timeout_seconds: float, output: str = ""):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"command timed out after {timeout_seconds:g}s: {' '.join(command)}",
            command=command,
            output=output,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["timeout_seconds"] = self.timeout_seconds
        return result


class EngineUnavailableError(CommandError):
    """Raised when docker or its compose sub-command cannot be reached at all."""
    def __init__(self, message: str = "docker compose is not installed or accessible", **kwargs):
        super().__init__(message, **kwargs)


class OrchestrationError(Q8AgentError):
    """
    Raised by the orchestrator when a lifecycle step fails.

    The message carries a stage prefix ("docker pull error: ...") so the
    caller can see which step failed; the root cause is chained via
    ``raise ... from``.
    """

    def __init__(self, stage: str, detail: str, subdomain: Optional[str] = None):
        self.stage = stage
        self.detail = detail
        self.subdomain = subdomain
        super().__init__(f"{stage} error: {detail}")

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"stage": self.stage, "subdomain": self.subdomain})
        return result
