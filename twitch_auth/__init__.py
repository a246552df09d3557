"""twitch-auth - Twitch sign-in for Python applications.

Implements the OAuth2 implicit grant against Twitch: builds the
authorization request, captures the browser redirect on a loopback
server, validates the anti-forgery state, fetches the user profile and
manages the resulting in-memory session.
"""

from __future__ import annotations

from .auth import (
    AuthManager,
    AuthorizationRequest,
    BrowserRedirectLauncher,
    CredentialSlot,
    RedirectSessionLauncher,
    SessionPublisher,
    TwitchApiClient,
)
from .config import (
    ApiSettings,
    LogSettings,
    OAuthSettings,
    TimeoutSettings,
    TwitchAuthSettings,
    clear_settings,
    get_settings,
    reload_settings,
)
from .exceptions import (
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
from .log import enable_debug
from .models import UserProfile
from .types import (
    AuthFlowState,
    AuthorizationCancelled,
    AuthorizationFailure,
    AuthorizationResult,
    AuthorizationSuccess,
    AuthStatus,
    AuthView,
    Session,
    SignInOutcome,
    SignInResult,
)


__version__ = "0.1.0"

__all__ = [
    "ApiSettings",
    "AuthFlowState",
    "AuthFlowTimeout",
    "AuthManager",
    "AuthStatus",
    "AuthView",
    "AuthenticationAbortedError",
    "AuthenticationDeniedError",
    "AuthenticationError",
    "AuthorizationCancelled",
    "AuthorizationFailure",
    "AuthorizationRequest",
    "AuthorizationResult",
    "AuthorizationSuccess",
    "BrowserRedirectLauncher",
    "ConfigurationError",
    "CredentialSlot",
    "InvalidStateError",
    "LogSettings",
    "OAuthSettings",
    "ProfileNotFoundError",
    "RedirectSessionLauncher",
    "Session",
    "SessionPublisher",
    "SignInOutcome",
    "SignInResult",
    "TimeoutSettings",
    "TransportError",
    "TwitchApiClient",
    "TwitchAuthException",
    "TwitchAuthSettings",
    "UserProfile",
    "__version__",
    "clear_settings",
    "enable_debug",
    "get_settings",
    "reload_settings",
]
