"""Pytest configuration and fixtures."""

# pylint: disable=redefined-outer-name

from __future__ import annotations

import os

from typing import TYPE_CHECKING

import httpx
import pytest

from tests.fakes import FakeHelix
from twitch_auth.auth.transport import CredentialSlot, TwitchApiClient
from twitch_auth.config import OAuthSettings, TwitchAuthSettings, clear_settings


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


_ENV_PREFIX = "TWITCH_AUTH_"


@pytest.fixture(autouse=True)
def clean_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Isolate every test from the developer's environment and config files."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIX) or name.upper() == "CLIENT_ID":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path))
    clear_settings()
    yield
    clear_settings()


@pytest.fixture()
def settings() -> TwitchAuthSettings:
    """Settings with a client ID and short timeouts."""
    return TwitchAuthSettings(
        oauth=OAuthSettings(client_id="abc123", redirect_port=0),
        timeout={"auth": 5.0, "request": 5.0, "revoke": 5.0},
    )


@pytest.fixture()
def helix() -> FakeHelix:
    """A fresh fake Helix API."""
    return FakeHelix()


@pytest.fixture()
def api_client(settings: TwitchAuthSettings, helix: FakeHelix) -> TwitchApiClient:
    """API client wired to the fake Helix API."""
    return TwitchApiClient.from_settings(
        settings,
        credentials=CredentialSlot(settings.oauth.client_id),
        transport=httpx.MockTransport(helix),
    )
