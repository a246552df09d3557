"""Tests for logging setup and redaction."""

from __future__ import annotations

import logging

import pytest

from twitch_auth import log
from twitch_auth.config import LogSettings


@pytest.fixture(autouse=True)
def restore_logger():
    """Put the package logger back to its default level and format."""
    yield
    logger = log.get_logger()
    logger.setLevel(logging.WARNING)
    for handler in logger.handlers:
        handler.setFormatter(logging.Formatter(log.DEFAULT_FORMAT))


class TestLogger:
    """Tests for the package logger helpers."""

    def test_get_logger(self):
        """get_logger returns the package logger with one handler."""
        logger = log.get_logger()
        assert logger is log.get_logger()
        assert logger.name == "twitch_auth"
        assert len(logger.handlers) == 1

    def test_auth_logger_is_child(self):
        """Auth modules log through the package logger."""
        assert logging.getLogger("twitch_auth.auth").parent is log.get_logger()

    def test_set_level_accepts_names(self):
        """Level names are case-insensitive."""
        log.set_level("debug")
        assert log.get_logger().level == logging.DEBUG
        log.set_level(logging.ERROR)
        assert log.get_logger().level == logging.ERROR

    def test_set_level_rejects_unknown(self):
        """Unknown level names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown log level"):
            log.set_level("chatty")

    def test_enable_debug(self):
        """enable_debug switches to DEBUG."""
        log.enable_debug()
        assert log.get_logger().level == logging.DEBUG

    def test_configure_from_settings(self):
        """Level and format come from LogSettings."""
        logger = log.configure_from_settings(
            LogSettings(level="INFO", format="%(levelname)s|%(message)s")
        )
        assert logger.level == logging.INFO
        record = logging.LogRecord("twitch_auth", logging.INFO, __file__, 1, "hello", None, None)
        assert logger.handlers[0].format(record) == "INFO|hello"


class TestRedaction:
    """Tests for redact_sensitive_data."""

    def test_redacts_token_keys(self):
        """Token-like keys are masked, others kept."""
        data = {"access_token": "tok1", "state": "S", "Authorization": "Bearer x"}
        assert log.redact_sensitive_data(data) == {
            "access_token": "[REDACTED]",
            "state": "S",
            "Authorization": "[REDACTED]",
        }

    def test_nested(self):
        """Nested structures are traversed."""
        data = {"params": [{"client_secret": "s", "scope": "openid"}]}
        assert log.redact_sensitive_data(data) == {
            "params": [{"client_secret": "[REDACTED]", "scope": "openid"}]
        }

    def test_passthrough(self):
        """Scalars and None pass through."""
        assert log.redact_sensitive_data(None) is None
        assert log.redact_sensitive_data("plain") == "plain"

    def test_max_depth(self):
        """Containers beyond the depth limit are masked whole."""
        assert log.redact_sensitive_data({"a": "b"}, max_depth=0) == "[REDACTED]"
        assert log.redact_sensitive_data({"a": {"b": "c"}}, max_depth=1) == {"a": "[REDACTED]"}

    def test_original_untouched(self):
        """Redaction returns a copy."""
        data = {"access_token": "tok1"}
        log.redact_sensitive_data(data)
        assert data == {"access_token": "tok1"}
