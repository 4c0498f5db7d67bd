"""Tests for logging utilities module.

Tests cover:
- get_logger function
- setup_logging handlers and levels
- Per-component level overrides
- ActionLogAdapter records
- log_exception function
- CloseOnEmitFileHandler
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from rich.logging import RichHandler

from streamweave_bot.core.config import LoggingConfig
from streamweave_bot.core.logger import (
    LOGGER_NAMESPACE,
    ActionLogAdapter,
    CloseOnEmitFileHandler,
    action_logger,
    get_logger,
    log_exception,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    """Return to the default configuration after the test."""
    yield
    setup_logging()


# ==============================================================================
# get_logger Tests
# ==============================================================================


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_name_prefix(self):
        """Test get_logger places components under the streamweave namespace."""
        logger = get_logger("automation.engine")

        assert isinstance(logger, logging.Logger)
        assert logger.name == f"{LOGGER_NAMESPACE}.automation.engine"

    def test_get_logger_same_name_returns_same_logger(self):
        """Test get_logger returns same logger for same name."""
        assert get_logger("same_name") is get_logger("same_name")


# ==============================================================================
# setup_logging Tests
# ==============================================================================


@pytest.mark.usefixtures("restore_logging")
class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_single_unfiltered_console_handler(self):
        """Test setup_logging installs one rich handler that leaves filtering to loggers."""
        setup_logging()
        setup_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)
        assert handlers[0].level == logging.NOTSET

    def test_level_applies_to_existing_loggers(self):
        """Test the default level reaches loggers created before setup."""
        logger = get_logger("level_default")
        setup_logging(LoggingConfig(level="debug"))

        assert logger.level == logging.DEBUG
        assert logging.getLogger(LOGGER_NAMESPACE).level == logging.DEBUG

        setup_logging(LoggingConfig(level="INFO"))
        assert logger.level == logging.INFO

    def test_log_file(self, tmp_path):
        """Test setup_logging writes to the configured log file."""
        log_file = tmp_path / "logs" / "bot.log"
        setup_logging(LoggingConfig(log_file=str(log_file)))

        get_logger("file_test").info("written to file")

        assert "written to file" in log_file.read_text(encoding="utf-8")
        assert any(
            isinstance(handler, CloseOnEmitFileHandler) for handler in logging.getLogger().handlers
        )


# ==============================================================================
# Component Level Tests
# ==============================================================================


@pytest.mark.usefixtures("restore_logging")
class TestComponentLevels:
    """Tests for per-component level overrides."""

    def test_config_normalises_component_levels(self):
        """Test override levels are upper-cased and validated."""
        config = LoggingConfig(component_levels={" automation.watcher ": "warning"})

        assert config.component_levels == {"automation.watcher": "WARNING"}
        with pytest.raises(ValidationError):
            LoggingConfig(component_levels={"automation": "CHATTY"})

    def test_longest_prefix_wins(self):
        """Test nested components take the most specific override."""
        setup_logging(
            LoggingConfig(
                component_levels={"automation": "WARNING", "automation.handlers": "DEBUG"}
            )
        )

        assert get_logger("automation.handlers.chat").level == logging.DEBUG
        assert get_logger("automation.engine").level == logging.WARNING
        assert get_logger("automationish").level == logging.INFO
        assert get_logger("cli").level == logging.INFO

    def test_overrides_reach_existing_loggers_and_reset(self):
        """Test overrides apply to earlier loggers and vanish on the next setup."""
        logger = get_logger("automation.watcher")
        setup_logging(LoggingConfig(component_levels={"automation.watcher": "ERROR"}))
        assert logger.level == logging.ERROR

        setup_logging()
        assert logger.level == logging.INFO

    def test_verbose_component_reaches_the_log_file(self, tmp_path):
        """Test a DEBUG override is written although the default is INFO."""
        log_file = tmp_path / "bot.log"
        setup_logging(
            LoggingConfig(
                log_file=str(log_file), component_levels={"automation.handlers": "DEBUG"}
            )
        )

        get_logger("automation.handlers.network").debug("request details")
        get_logger("automation.engine").debug("engine internals")

        content = log_file.read_text(encoding="utf-8")
        assert "request details" in content
        assert "engine internals" not in content


# ==============================================================================
# ActionLogAdapter Tests
# ==============================================================================


class TestActionLogAdapter:
    """Tests for the per-action logger."""

    def test_records_carry_the_action(self, caplog):
        """Test messages are prefixed and extras are attached."""
        run_log = action_logger(get_logger("actions_test"), "a1", "Raid Alert", "raid", "alice")

        with caplog.at_level(logging.INFO, logger=f"{LOGGER_NAMESPACE}.actions_test"):
            run_log.info("Thanks %s", "raiders")

        record = caplog.records[-1]
        assert isinstance(run_log, ActionLogAdapter)
        assert record.getMessage() == "[Raid Alert] Thanks raiders"
        assert record.action_id == "a1"
        assert record.trigger == "raid"
        assert record.user == "alice"

    def test_missing_user_and_call_extras(self, caplog):
        """Test a missing user renders as '-' and call extras are kept."""
        run_log = action_logger(get_logger("actions_test"), "a2", "Timer")

        with caplog.at_level(logging.INFO, logger=f"{LOGGER_NAMESPACE}.actions_test"):
            run_log.info("tick", extra={"step_id": "s1"})

        record = caplog.records[-1]
        assert record.user == "-"
        assert record.trigger == "manual"
        assert record.step_id == "s1"


# ==============================================================================
# log_exception Tests
# ==============================================================================


class TestLogException:
    """Tests for log_exception function."""

    def test_log_exception_with_context(self):
        """Test log_exception prefixes the context."""
        logger = MagicMock()
        error = ValueError("bad")

        log_exception(logger, error, "Loading documents")

        logger.exception.assert_called_once_with("%s: %s", "Loading documents", error)

    def test_log_exception_without_context(self):
        """Test log_exception uses a generic message."""
        logger = MagicMock()
        error = RuntimeError("boom")

        log_exception(logger, error)

        logger.exception.assert_called_once_with("Exception occurred: %s", error)


# ==============================================================================
# CloseOnEmitFileHandler Tests
# ==============================================================================


class TestCloseOnEmitFileHandler:
    """Tests for CloseOnEmitFileHandler."""

    def test_file_is_released_after_emit(self, tmp_path):
        """Test the stream is closed after every record."""
        handler = CloseOnEmitFileHandler(tmp_path / "out.log", delay=True, encoding="utf-8")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)

        handler.emit(record)
        handler.emit(record)

        assert handler.stream is None
        assert (tmp_path / "out.log").read_text(encoding="utf-8").count("hello") == 2
