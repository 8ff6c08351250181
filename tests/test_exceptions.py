# tests/test_exceptions.py
"""
Unit tests for the q8 agent exception hierarchy.

Covers message formats the HTTP layer exposes verbatim, inheritance used by
the exception handlers, and the to_dict serialization used for logging.
"""

import pytest

from q8agent.exceptions import (
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


class TestHierarchy:
    """Every agent error is catchable through the common base."""

    @pytest.mark.parametrize(
        "exc",
        [
            ConfigError("bad"),
            ValidationError("bad"),
            InvalidSubdomainError("../etc"),
            TenantDirectoryError("bad"),
            CommandFailedError(["docker"], "", 1),
            CommandTimeoutError(["docker"], 5),
            EngineUnavailableError(),
            OrchestrationError("docker up", "boom"),
        ],
    )
    def test_is_agent_error(self, exc):
        assert isinstance(exc, Q8AgentError)

    def test_invalid_subdomain_is_validation_error(self):
        exc = InvalidSubdomainError("Bad Name")
        assert isinstance(exc, ValidationError)
        assert exc.subdomain == "Bad Name"
        assert "'Bad Name'" in str(exc)

    def test_command_errors_share_base(self):
        for exc in (CommandFailedError(["x"], "", 2), CommandTimeoutError(["x"], 1), EngineUnavailableError()):
            assert isinstance(exc, CommandError)


class TestMessages:

    def test_command_failed_message_uses_output(self):
        exc = CommandFailedError(["docker", "compose", "pull"], "manifest unknown\n", 1)
        assert str(exc) == "manifest unknown: exit status 1"
        assert exc.exit_code == 1
        assert exc.output == "manifest unknown\n"

    def test_command_failed_message_without_output(self):
        exc = CommandFailedError(["docker"], "  ", 3)
        assert str(exc) == "no output: exit status 3"

    def test_timeout_message(self):
        exc = CommandTimeoutError(["docker", "compose", "up"], 2.5)
        assert "timed out after 2.5s" in str(exc)
        assert exc.timeout_seconds == 2.5
        assert exc.exit_code is None

    def test_engine_unavailable_default_message(self):
        assert str(EngineUnavailableError()) == "docker compose is not installed or accessible"

    def test_orchestration_error_stage_prefix(self):
        exc = OrchestrationError("docker pull", "image not found", subdomain="acme")
        assert str(exc) == "docker pull error: image not found"
        assert exc.stage == "docker pull"
        assert exc.subdomain == "acme"


class TestToDict:

    def test_base_to_dict(self):
        data = ConfigError("missing file").to_dict()
        assert data == {"error_type": "ConfigError", "message": "missing file"}

    def test_directory_error_to_dict(self):
        data = TenantDirectoryError("denied", path="/opt/tenants/acme", operation="prepare").to_dict()
        assert data["path"] == "/opt/tenants/acme"
        assert data["operation"] == "prepare"

    def test_command_error_to_dict_truncates_output(self):
        exc = CommandFailedError(["docker", "compose", "up"], "x" * 2000, 1)
        data = exc.to_dict()
        assert data["command"] == "docker compose up"
        assert data["exit_code"] == 1
        assert len(data["output"]) == 500

    def test_timeout_to_dict(self):
        data = CommandTimeoutError(["docker"], 30).to_dict()
        assert data["timeout_seconds"] == 30
        assert data["output"] is None

    def test_orchestration_to_dict(self):
        data = OrchestrationError("fs archive", "denied", "acme").to_dict()
        assert data["stage"] == "fs archive"
        assert data["subdomain"] == "acme"
