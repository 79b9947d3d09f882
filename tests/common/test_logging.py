"""Tests for structured logging setup."""

from __future__ import annotations

import io
import logging
import sys

import pytest

from fosmis.common.logging import StdoutHandler, get_logger, set_log_level


class TestGetLogger:
    """Test logger creation and configuration."""

    def test_same_tag_returns_same_logger(self):
        assert get_logger("SERIES") is get_logger("SERIES")

    def test_different_tags_return_different_loggers(self):
        assert get_logger("SERIES") is not get_logger("STRATEGY")

    def test_log_output_contains_module_tag(self, capfd):
        get_logger("SIMULATION").info("Test message")
        assert "SIMULATION" in capfd.readouterr().out

    def test_log_output_contains_message_and_level(self, capfd):
        get_logger("SYSTEM").warning("Something odd")
        out = capfd.readouterr().out
        assert "Something odd" in out
        assert "WARNING" in out

    def test_structured_data_in_output(self, capfd):
        get_logger("SUMMARY").info("Summary", extra={"data": {"events": 3, "cash_left": 12.5}})
        out = capfd.readouterr().out
        assert '"events": 3' in out
        assert '"cash_left": 12.5' in out

    def test_unserializable_data_uses_str(self, capfd):
        get_logger("TEST").info("Odd data", extra={"data": {"obj": object()}})
        assert "object object" in capfd.readouterr().out


class TestSetLogLevel:
    """Tests for set_log_level()."""

    @pytest.fixture(autouse=True)
    def _restore_level(self):
        yield
        set_log_level(logging.DEBUG)

    def test_filters_below_level(self, capfd):
        logger = get_logger("CLI")
        set_log_level("WARNING")
        logger.info("hidden line")
        logger.warning("shown line")
        out = capfd.readouterr().out
        assert "hidden line" not in out
        assert "shown line" in out

    def test_applies_to_loggers_created_later(self):
        set_log_level("ERROR")
        logger = get_logger("LOADER")
        assert not logger.isEnabledFor(logging.INFO)
        assert logger.isEnabledFor(logging.ERROR)

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            set_log_level("LOUD")


class TestStdoutHandler:
    """The handler follows sys.stdout replacements."""

    def test_writes_to_current_stdout(self, capsys):
        get_logger("TEST").info("captured by capsys")
        assert "captured by capsys" in capsys.readouterr().out

    def test_stream_cannot_be_replaced(self):
        handler = StdoutHandler()
        with pytest.raises(AttributeError):
            handler.setStream(io.StringIO())
        assert handler.stream is sys.stdout
