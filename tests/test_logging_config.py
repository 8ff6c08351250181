# tests/test_logging_config.py
"""
Tests for the q8agent.logging_config module.

Covers the settings mapping, console and file handlers, quiet mode with the
display filter, and the logging setup performed by the console entry point.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from q8agent.api_server.main import main
from q8agent.config.models import LoggingSettings
from q8agent.exceptions import ConfigError
from q8agent.logging_config import (
    DEFAULT_LOGGING_CONFIG,
    DisplayFilter,
    UnifiedLoggingManager,
    configure_logging,
    log_display,
    logging_config_from_settings,
)


def _reset():
    UnifiedLoggingManager._configured = False
    UnifiedLoggingManager._log_file_path = None

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


@pytest.fixture
def reset_logging_manager():
    """Reset the process-wide logging state between tests."""
    _reset()
    yield
    _reset()


def _console_handler() -> logging.Handler:
    return next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)


def _record(level=logging.INFO, display=False):
    record = logging.LogRecord("q8agent.x", level, __file__, 1, "msg", None, None)
    if display:
        record.display = True
    return record


class TestFromSettings:

    def test_defaults(self):
        config = logging_config_from_settings(LoggingSettings(level="warning"))
        assert config == {
            "console_enabled": True,
            "console_level": "WARNING",
            "file_enabled": False,
            "file_directory": None,
        }

    def test_with_directory(self, tmp_path):
        config = logging_config_from_settings(LoggingSettings(file_directory=str(tmp_path)))
        assert config["file_enabled"] is True
        assert config["file_directory"] == str(tmp_path)

    def test_quiet_console(self):
        assert logging_config_from_settings(LoggingSettings(console=False))["console_enabled"] is False


class TestConfigureLogging:

    def test_console_only(self, reset_logging_manager):
        assert configure_logging(app_name="test") is None
        assert _console_handler().level == logging.INFO

    def test_file_handler(self, reset_logging_manager, tmp_path):
        path = configure_logging(
            app_name="q8-agent",
            config={"file_enabled": True, "file_directory": str(tmp_path / "logs")},
        )
        assert path == tmp_path / "logs" / "q8-agent.log"

        logging.getLogger("q8agent.test").debug("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in Path(path).read_text()

    def test_unwritable_log_directory(self, reset_logging_manager, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        with pytest.raises(ConfigError, match="Cannot open log file"):
            configure_logging(config={"file_enabled": True, "file_directory": str(blocker / "logs")})

    def test_second_call_keeps_first_setup(self, reset_logging_manager, tmp_path):
        configure_logging(app_name="a")
        assert configure_logging(app_name="b", config={"file_enabled": True, "file_directory": str(tmp_path)}) is None
        assert len(logging.getLogger().handlers) == 1

    def test_component_levels(self, reset_logging_manager):
        configure_logging(app_name="test", config={"components": {"q8agent.engine": "ERROR"}})
        assert logging.getLogger("q8agent.engine").level == logging.ERROR

    def test_default_components(self):
        components = DEFAULT_LOGGING_CONFIG["components"]
        assert components["docker"] == "WARNING"
        assert components["urllib3"] == "WARNING"


class TestQuietMode:

    def test_filter_passes_everything_when_console_enabled(self):
        assert DisplayFilter(console_enabled=True).filter(_record())

    def test_filter_passes_only_display_records_when_quiet(self):
        flt = DisplayFilter(console_enabled=False)
        assert not flt.filter(_record())
        assert not flt.filter(_record(level=logging.ERROR))
        assert flt.filter(_record(display=True))
        assert not flt.filter(_record(level=logging.DEBUG, display=True))

    def test_quiet_console_handler(self, reset_logging_manager):
        configure_logging(config=logging_config_from_settings(LoggingSettings(console=False)))
        handler = _console_handler()
        assert not handler.filter(_record(level=logging.WARNING))
        assert handler.filter(_record(display=True))

    def test_log_display_sets_flag(self, caplog):
        logger = logging.getLogger("q8agent.test.display")
        with caplog.at_level(logging.INFO, logger="q8agent.test.display"):
            log_display(logger, logging.INFO, "listening on %d", 8080, extra={"component": "api"})
        record = caplog.records[-1]
        assert record.display is True
        assert record.component == "api"
        assert record.getMessage() == "listening on 8080"


class TestEntryPoint:

    def test_main_applies_logging_settings(self, reset_logging_manager, tmp_path):
        environ = {
            "Q8_AGENT_ADMIN_TOKEN": "t",
            "Q8_LOG_CONSOLE": "false",
            "Q8_LOG_DIR": str(tmp_path / "logs"),
        }
        with patch.dict("os.environ", environ), patch("q8agent.api_server.main.uvicorn.run") as run:
            assert main(["--port", "9099"]) == 0

        run.assert_called_once()
        assert run.call_args.kwargs["port"] == 9099
        assert not _console_handler().filter(_record(level=logging.WARNING))
        assert (tmp_path / "logs" / "q8-agent.log").exists()

    def test_main_rejects_unusable_log_directory(self, reset_logging_manager, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        with patch.dict("os.environ", {"Q8_LOG_DIR": str(blocker / "logs")}), \
                patch("q8agent.api_server.main.uvicorn.run") as run:
            assert main([]) == 2
        run.assert_not_called()
