"""Redirect session launchers.

A launcher opens an interactive session at the authorization URL and
resolves once the provider redirects back, the user cancels, or the
session fails. ``BrowserRedirectLauncher`` drives the system browser
against a loopback ``RedirectCallbackServer``.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..types import AuthorizationCancelled, AuthorizationFailure, AuthorizationSuccess
from .callback_server import RedirectCallbackServer


if TYPE_CHECKING:
    from collections.abc import Callable

    from ..config import OAuthSettings
    from ..types import AuthorizationResult


logger = logging.getLogger("twitch_auth.auth")


@runtime_checkable
class RedirectSessionLauncher(Protocol):
    """Interface the auth manager uses to run the interactive step."""

    def make_redirect_uri(self) -> str:
        """Return the redirect URI the provider should send the user to."""
        ...

    async def launch(self, url: str) -> AuthorizationResult:
        """Open ``url`` and wait for the redirect, a cancel, or an error."""
        ...

    def cancel(self) -> None:
        """Abort a pending ``launch`` so it resolves as cancelled."""
        ...


class BrowserRedirectLauncher:
    """Launch the authorization URL in the system browser.

    Parameters
    ----------
    host : str
        Loopback host of the redirect URI (default ``"localhost"``).
    port : int
        Loopback port (default ``3000``; ``0`` picks a free port).
    path : str
        Callback path (default ``"/callback"``).
    open_browser : callable, optional
        ``open_browser(url) -> bool``. Defaults to ``webbrowser.open``.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3000,
        path: str = "/callback",
        open_browser: Callable[[str], Any] | None = None,
    ) -> None:
        """Initialize the launcher."""
        self._server = RedirectCallbackServer(host=host, port=port, path=path)
        self._open_browser = open_browser or webbrowser.open
        self._cancelled = False

    @classmethod
    def from_settings(cls, settings: OAuthSettings) -> BrowserRedirectLauncher:
        """Create a launcher from the ``oauth`` configuration section."""
        return cls(
            host=settings.redirect_host,
            port=settings.redirect_port,
            path=settings.redirect_path,
        )

    def make_redirect_uri(self) -> str:
        """Start the loopback server (if needed) and return its redirect URI."""
        return self._server.start()

    async def launch(self, url: str) -> AuthorizationResult:
        """Open the browser and wait for the redirect.

        Parameters
        ----------
        url : str
            The authorization URL.

        Returns
        -------
        AuthorizationResult
            Success with the captured parameters, cancelled if ``cancel()``
            was called, or failure if the browser or server could not run.
        """
        self._cancelled = False
        try:
            self._server.start()
            if self._open_browser(url) is False:
                return AuthorizationFailure("No browser available to open the sign-in page")
            params = await asyncio.to_thread(self._server.wait_for_callback, None)
        except OSError as exc:
            logger.warning("Redirect session failed: %s", exc)
            return AuthorizationFailure(str(exc))
        finally:
            await asyncio.to_thread(self._server.stop)

        if self._cancelled or params is None:
            return AuthorizationCancelled()
        return AuthorizationSuccess.from_params(params)

    def cancel(self) -> None:
        """Abort a pending ``launch`` without waiting for the port to close."""
        self._cancelled = True
        self._server.stop(wait=False)
