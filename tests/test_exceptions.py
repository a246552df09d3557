"""Tests for twitch_auth.exceptions module.

These tests verify the exception hierarchy, message formatting,
context storage, and inheritance relationships.
"""

from __future__ import annotations

import pytest

from twitch_auth.exceptions import (
    AuthenticationAbortedError,
    AuthenticationDeniedError,
    AuthenticationError,
    AuthFlowTimeout,
    ConfigurationError,
    InvalidStateError,
    ProfileNotFoundError,
    TransportError,
    TwitchAuthException,
)


class TestTwitchAuthException:
    """Test base exception class behavior."""

    def test_message_only(self) -> None:
        """Exception with just a message stores it correctly."""
        exc = TwitchAuthException("Something went wrong")
        assert exc.message == "Something went wrong"
        assert not exc.context
        assert str(exc) == "Something went wrong"

    def test_with_context(self) -> None:
        """Context appears in the string representation."""
        exc = TwitchAuthException("Failed", provider="twitch", attempt=2)
        assert exc.context == {"provider": "twitch", "attempt": 2}
        assert str(exc) == "Failed (provider='twitch', attempt=2)"


class TestSubclasses:
    """Test the specific error types."""

    def test_configuration_error(self) -> None:
        """ConfigurationError records the offending setting."""
        exc = ConfigurationError("missing", setting="oauth.client_id")
        assert exc.setting == "oauth.client_id"
        assert isinstance(exc, TwitchAuthException)
        assert not isinstance(exc, AuthenticationError)

    def test_authentication_error_fields(self) -> None:
        """Provider and flow id are stored as attributes and context."""
        exc = AuthenticationError("nope", provider="twitch", flow_id="f1")
        assert exc.provider == "twitch"
        assert exc.flow_id == "f1"
        assert "flow_id='f1'" in str(exc)

    @pytest.mark.parametrize(
        "cls",
        [
            InvalidStateError,
            AuthenticationDeniedError,
            AuthenticationAbortedError,
            ProfileNotFoundError,
            TransportError,
        ],
    )
    def test_auth_subclasses(self, cls: type[AuthenticationError]) -> None:
        """All sign-in failures are AuthenticationErrors."""
        with pytest.raises(AuthenticationError):
            raise cls("failed", provider="twitch")

    def test_timeout(self) -> None:
        """AuthFlowTimeout carries the timeout value."""
        exc = AuthFlowTimeout("timed out", timeout=120.0, flow_id="f1")
        assert exc.timeout == 120.0
        assert exc.context["timeout"] == 120.0
        assert isinstance(exc, AuthenticationError)

    def test_transport_status(self) -> None:
        """TransportError carries the HTTP status when there was one."""
        assert TransportError("bad", status_code=401).status_code == 401
        assert TransportError("down").status_code is None
