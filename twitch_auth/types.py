"""Type definitions for the sign-in state machine.

Redirect session results, the in-memory session, the observable
auth view, and the enums describing where a sign-in stands.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from .exceptions import AuthenticationAbortedError, AuthenticationDeniedError


if TYPE_CHECKING:
    from .models import UserProfile


class AuthStatus(str, Enum):
    """Which lifecycle operation is in flight, if any."""

    IDLE = "idle"
    SIGNING_IN = "signing_in"
    SIGNING_OUT = "signing_out"


class AuthFlowState(str, Enum):
    """State of the authentication state machine."""

    IDLE = "idle"
    AUTHORIZING = "authorizing"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"
    REVOKING = "revoking"


class SignInOutcome(str, Enum):
    """Non-exceptional outcomes of a sign-in attempt."""

    AUTHENTICATED = "authenticated"
    CANCELLED = "cancelled"
    DENIED = "denied"


@dataclass(frozen=True)
class AuthorizationSuccess:
    """The redirect session completed and returned to the redirect URI.

    Attributes
    ----------
    access_token : str or None
        The bearer token from the redirect fragment.
    state : str or None
        The anti-forgery state echoed back by the provider.
    error : str or None
        Provider error code (e.g. ``"access_denied"``).
    error_description : str or None
        Human-readable provider error text.
    params : dict[str, str]
        Every parameter captured from the redirect.
    """

    access_token: str | None = field(default=None, repr=False)
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    params: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_params(cls, params: dict[str, str]) -> AuthorizationSuccess:
        """Build a success result from raw redirect parameters."""
        return cls(
            access_token=params.get("access_token") or None,
            state=params.get("state"),
            error=params.get("error") or None,
            error_description=params.get("error_description") or None,
            params=dict(params),
        )


@dataclass(frozen=True)
class AuthorizationCancelled:
    """The user dismissed the redirect session."""

    reason: str = "cancelled"


@dataclass(frozen=True)
class AuthorizationFailure:
    """The redirect session itself failed (browser or server error)."""

    reason: str


AuthorizationResult = Union[AuthorizationSuccess, AuthorizationCancelled, AuthorizationFailure]


@dataclass(frozen=True)
class Session:
    """An authenticated session held in process memory only.

    Attributes
    ----------
    access_token : str
        The bearer token. Excluded from ``repr``.
    user : UserProfile
        The signed-in user's profile.
    """

    access_token: str = field(repr=False)
    user: UserProfile


@dataclass(frozen=True)
class AuthView:
    """Read-only snapshot of the auth state published to consumers.

    Attributes
    ----------
    user : UserProfile or None
        The signed-in user, or None when signed out.
    status : AuthStatus
        The operation in flight.
    """

    user: UserProfile | None = None
    status: AuthStatus = AuthStatus.IDLE

    @property
    def is_logging_in(self) -> bool:
        """True while a sign-in is in flight."""
        return self.status is AuthStatus.SIGNING_IN

    @property
    def is_logging_out(self) -> bool:
        """True while a sign-out is in flight."""
        return self.status is AuthStatus.SIGNING_OUT

    @property
    def is_authenticated(self) -> bool:
        """True when a user is signed in."""
        return self.user is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the view (user as provider JSON)."""
        return {
            "user": self.user.model_dump() if self.user is not None else None,
            "isLoggingIn": self.is_logging_in,
            "isLoggingOut": self.is_logging_out,
        }


@dataclass(frozen=True)
class SignInResult:
    """Result of a sign-in attempt that did not raise.

    Attributes
    ----------
    outcome : SignInOutcome
        What happened.
    user : UserProfile or None
        The signed-in user after the attempt (the prior user on
        cancel/deny, if one was signed in).
    flow_id : str or None
        Identifier of the attempt, for log correlation.
    """

    outcome: SignInOutcome
    user: UserProfile | None = None
    flow_id: str | None = None

    @property
    def success(self) -> bool:
        """Whether this attempt established a session."""
        return self.outcome is SignInOutcome.AUTHENTICATED

    def raise_for_outcome(self) -> SignInResult:
        """Raise if the attempt was cancelled or denied.

        Returns
        -------
        SignInResult
            ``self``, when the attempt authenticated.

        Raises
        ------
        AuthenticationAbortedError
            If the user cancelled the redirect session.
        AuthenticationDeniedError
            If the provider returned ``access_denied``.
        """
        if self.outcome is SignInOutcome.CANCELLED:
            msg = "Sign-in was cancelled"
            raise AuthenticationAbortedError(msg, provider="twitch", flow_id=self.flow_id)
        if self.outcome is SignInOutcome.DENIED:
            msg = "Sign-in was denied"
            raise AuthenticationDeniedError(msg, provider="twitch", flow_id=self.flow_id)
        return self
