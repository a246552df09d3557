"""Twitch implicit grant authentication.

Provides the sign-in state machine, the authorization request builder,
the browser redirect launcher, and the Helix transport client.
"""

from __future__ import annotations

from .callback_server import RedirectCallbackServer
from .launcher import BrowserRedirectLauncher, RedirectSessionLauncher
from .manager import AuthManager
from .publisher import SessionPublisher
from .request import AuthorizationRequest, generate_state
from .transport import CredentialSlot, TwitchApiClient


__all__ = [
    "AuthManager",
    "AuthorizationRequest",
    "BrowserRedirectLauncher",
    "CredentialSlot",
    "RedirectCallbackServer",
    "RedirectSessionLauncher",
    "SessionPublisher",
    "TwitchApiClient",
    "generate_state",
]
