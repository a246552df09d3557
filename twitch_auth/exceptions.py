"""twitch-auth exception hierarchy.

All twitch-auth exceptions inherit from TwitchAuthException, enabling
catch-all handling while supporting specific error types.
"""

from __future__ import annotations

from typing import Any


class TwitchAuthException(Exception):
    """Base exception for all twitch-auth errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize twitch-auth exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (provider, flow_id, status_code, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(TwitchAuthException):
    """Required configuration is missing or invalid.

    Raised when the OAuth client identifier has not been configured.
    """

    def __init__(self, message: str, setting: str | None = None, **context: Any) -> None:
        """Initialize configuration error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        setting : str, optional
            The name of the offending setting.
        **context : Any
            Additional context.
        """
        super().__init__(message, setting=setting, **context)
        self.setting = setting


class AuthenticationError(TwitchAuthException):
    """Base exception for all authentication failures.

    Raised when a sign-in attempt fails for a reason that is not one
    of the more specific subclasses below.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        flow_id: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize authentication error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        provider : str, optional
            The identity provider name (e.g., "twitch").
        flow_id : str, optional
            The unique identifier of the sign-in attempt that failed.
        **context : Any
            Additional context.
        """
        super().__init__(message, provider=provider, flow_id=flow_id, **context)
        self.provider = provider
        self.flow_id = flow_id


class InvalidStateError(AuthenticationError):
    """Returned state does not match the one sent with the request.

    Signals a forged or replayed redirect. Always aborts the attempt.
    """


class AuthenticationDeniedError(AuthenticationError):
    """The user or the provider refused the authorization request."""


class AuthenticationAbortedError(AuthenticationError):
    """The user closed or cancelled the redirect session."""


class ProfileNotFoundError(AuthenticationError):
    """The user resource returned no profile for the access token."""


class AuthFlowTimeout(AuthenticationError):
    """Sign-in timed out.

    Raised when the redirect session does not resolve within the
    configured timeout.
    """

    def __init__(
        self,
        message: str,
        timeout: float,
        provider: str | None = None,
        flow_id: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize timeout error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        timeout : float
            The timeout value in seconds.
        provider : str, optional
            The identity provider name.
        flow_id : str, optional
            The unique identifier of the sign-in attempt.
        **context : Any
            Additional context.
        """
        super().__init__(message, provider=provider, flow_id=flow_id, timeout=timeout, **context)
        self.timeout = timeout


class TransportError(AuthenticationError):
    """An HTTP call to the provider failed.

    Raised when the profile fetch fails at the network or HTTP level.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str | None = None,
        flow_id: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize transport error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        status_code : int, optional
            HTTP status code, if a response was received.
        provider : str, optional
            The identity provider name.
        flow_id : str, optional
            The unique identifier of the sign-in attempt.
        **context : Any
            Additional context.
        """
        super().__init__(
            message, provider=provider, flow_id=flow_id, status_code=status_code, **context
        )
        self.status_code = status_code
