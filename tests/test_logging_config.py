"""Tests for reachability.logging_config."""

import logging

import pytest

from reachability.logging_config import TRACE_LOGGER_NAME, configure_logging
from reachability.models import ReachabilityFlags
from reachability.monitor import log_reachability_flags


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    trace_logger = logging.getLogger(TRACE_LOGGER_NAME)
    trace_logger.disabled = False
    trace_logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    """Test log level selection from the environment."""

    def test_default_level_is_info(self, monkeypatch, restore_root_logger):
        monkeypatch.delenv("REACHABILITY_LOG_LEVEL", raising=False)

        configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_level_is_case_insensitive(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "debug")

        configure_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_defaults_to_info(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "INVALID")

        configure_logging()

        assert logging.getLogger().level == logging.INFO


class TestTraceFlags:
    """Test the REACHABILITY_TRACE_FLAGS switch for the flag trace."""

    def trace_enabled(self):
        return logging.getLogger(TRACE_LOGGER_NAME).isEnabledFor(logging.DEBUG)

    def test_unset_follows_root_level(self, monkeypatch, restore_root_logger):
        monkeypatch.delenv("REACHABILITY_TRACE_FLAGS", raising=False)
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "INFO")

        configure_logging()
        assert not self.trace_enabled()

        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "DEBUG")
        configure_logging()
        assert self.trace_enabled()

    def test_on_overrides_info_level(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "INFO")
        monkeypatch.setenv("REACHABILITY_TRACE_FLAGS", "1")

        configure_logging()

        assert self.trace_enabled()
        assert not logging.getLogger("reachability.monitor").isEnabledFor(logging.DEBUG)

    def test_off_overrides_debug_level(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("REACHABILITY_TRACE_FLAGS", "false")

        configure_logging()

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger(TRACE_LOGGER_NAME).disabled

    def test_argument_overrides_environment(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "INFO")
        monkeypatch.setenv("REACHABILITY_TRACE_FLAGS", "0")

        configure_logging(trace_flags=True)

        assert self.trace_enabled()

    def test_trace_emitted_when_on(self, monkeypatch, restore_root_logger, caplog):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "WARNING")
        configure_logging(trace_flags=True)
        logging.getLogger().addHandler(caplog.handler)

        log_reachability_flags(ReachabilityFlags.REACHABLE, "test")

        assert "Reachability Flag Status: -R ------- test" in caplog.text

    def test_trace_suppressed_when_off(self, monkeypatch, restore_root_logger, caplog):
        monkeypatch.setenv("REACHABILITY_LOG_LEVEL", "DEBUG")
        configure_logging(trace_flags=False)
        logging.getLogger().addHandler(caplog.handler)

        log_reachability_flags(ReachabilityFlags.REACHABLE, "test")

        assert "Reachability Flag Status" not in caplog.text
