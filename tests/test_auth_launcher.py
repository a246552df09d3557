"""Unit tests for the browser redirect launcher."""

from __future__ import annotations

import asyncio
import contextlib
import threading
import time

from typing import Any
from urllib.parse import urlencode
from urllib.request import urlopen

from tests.fakes import run
from twitch_auth.auth.launcher import BrowserRedirectLauncher, RedirectSessionLauncher
from twitch_auth.config import OAuthSettings
from twitch_auth.types import AuthorizationCancelled, AuthorizationFailure, AuthorizationSuccess


def _redirect_later(url: str, delay: float = 0.1) -> None:
    def _send() -> None:
        time.sleep(delay)
        with contextlib.suppress(Exception):
            urlopen(url, timeout=5)  # noqa: S310

    threading.Thread(target=_send, daemon=True).start()


class FakeBrowser:
    """Records opened URLs and simulates the provider redirect."""

    def __init__(self, launcher: BrowserRedirectLauncher, query: dict[str, str] | None) -> None:
        self.launcher = launcher
        self.query = query
        self.opened: list[str] = []

    def __call__(self, url: str) -> bool:
        self.opened.append(url)
        if self.query is not None:
            redirect_uri = self.launcher.make_redirect_uri()
            _redirect_later(f"{redirect_uri}/complete?{urlencode(self.query)}")
        return True


def _launcher() -> BrowserRedirectLauncher:
    return BrowserRedirectLauncher(host="127.0.0.1", port=0)


class TestBrowserRedirectLauncher:
    """Tests for BrowserRedirectLauncher."""

    def test_satisfies_protocol(self) -> None:
        """The browser launcher implements the launcher interface."""
        assert isinstance(_launcher(), RedirectSessionLauncher)

    def test_make_redirect_uri(self) -> None:
        """Redirect URI points at the loopback callback path."""
        launcher = _launcher()
        try:
            uri = launcher.make_redirect_uri()
            assert uri.startswith("http://127.0.0.1:")
            assert uri.endswith("/callback")
        finally:
            launcher.cancel()

    def test_from_settings(self) -> None:
        """Host, port and path come from the oauth section."""
        settings = OAuthSettings(redirect_host="127.0.0.1", redirect_port=0, redirect_path="/cb")
        launcher = BrowserRedirectLauncher.from_settings(settings)
        try:
            assert launcher.make_redirect_uri().endswith("/cb")
        finally:
            launcher.cancel()

    def test_launch_returns_success(self) -> None:
        """A redirect with a token resolves as success."""
        launcher = _launcher()
        browser = FakeBrowser(launcher, {"access_token": "tok1", "state": "S"})
        launcher._open_browser = browser

        launcher.make_redirect_uri()
        result = run(launcher.launch("https://id.twitch.tv/oauth2/authorize?x=1"))

        assert isinstance(result, AuthorizationSuccess)
        assert result.access_token == "tok1"
        assert result.state == "S"
        assert browser.opened == ["https://id.twitch.tv/oauth2/authorize?x=1"]
        assert not launcher._server.is_running

    def test_launch_returns_provider_error(self) -> None:
        """A provider error is still a completed redirect."""
        launcher = _launcher()
        launcher._open_browser = FakeBrowser(
            launcher, {"error": "access_denied", "error_description": "denied"}
        )

        result = run(launcher.launch("https://id.twitch.tv/oauth2/authorize"))

        assert isinstance(result, AuthorizationSuccess)
        assert result.error == "access_denied"
        assert result.access_token is None

    def test_browser_unavailable(self) -> None:
        """A browser that cannot open resolves as failure."""
        launcher = BrowserRedirectLauncher(host="127.0.0.1", port=0, open_browser=lambda _: False)

        result = run(launcher.launch("https://id.twitch.tv/oauth2/authorize"))

        assert isinstance(result, AuthorizationFailure)
        assert "browser" in result.reason

    def test_cancel_resolves_pending_launch(self) -> None:
        """cancel() unblocks launch with a cancelled result."""
        launcher = _launcher()
        launcher._open_browser = FakeBrowser(launcher, None)
        threading.Timer(0.2, launcher.cancel).start()

        result = run(launcher.launch("https://id.twitch.tv/oauth2/authorize"))

        assert isinstance(result, AuthorizationCancelled)

    def test_launch_does_not_stall_event_loop(self) -> None:
        """Other tasks keep running while the server starts, waits and shuts down."""
        launcher = _launcher()
        launcher._open_browser = FakeBrowser(launcher, {"access_token": "tok1", "state": "S"})
        gaps: list[float] = []

        async def _with_ticker() -> Any:
            done = asyncio.Event()

            async def _tick() -> None:
                last = time.monotonic()
                while not done.is_set():
                    await asyncio.sleep(0.01)
                    now = time.monotonic()
                    gaps.append(now - last)
                    last = now

            ticker = asyncio.create_task(_tick())
            try:
                return await launcher.launch("https://id.twitch.tv/oauth2/authorize")
            finally:
                done.set()
                await ticker

        result = run(_with_ticker())

        assert isinstance(result, AuthorizationSuccess)
        assert gaps
        assert max(gaps) < 0.25
        assert not launcher._server.is_running

    def test_cancel_returns_immediately(self) -> None:
        """cancel() hands the shutdown to a background thread."""
        launcher = _launcher()
        launcher.make_redirect_uri()

        started = time.monotonic()
        launcher.cancel()
        elapsed = time.monotonic() - started

        assert elapsed < 0.1
        assert not launcher._server.is_running
        launcher._server.stop()
        assert launcher._server.wait_for_callback(timeout=0) is None
