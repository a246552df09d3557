"""Identity transport client for the Twitch Helix API.

Credentials live in a ``CredentialSlot`` handed to the httpx client as
its ``auth``. Every outgoing request takes one locked snapshot of the
slot, so a request never sees a half-updated header set, and only the
slot's owner can change what is sent.
"""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import asyncio
import logging
import threading

from typing import TYPE_CHECKING, Any

import httpx

from ..exceptions import TransportError


if TYPE_CHECKING:
    from collections.abc import Generator

    from ..config import TwitchAuthSettings


logger = logging.getLogger("twitch_auth.auth")


class CredentialSlot(httpx.Auth):
    """Client identifier plus a single writable bearer token.

    Parameters
    ----------
    client_id : str
        Sent as ``Client-Id`` on every request.
    """

    def __init__(self, client_id: str = "") -> None:
        """Initialize the credential slot."""
        self._lock = threading.Lock()
        self._client_id = client_id
        self._access_token: str | None = None

    def __repr__(self) -> str:
        """Show whether a token is held without revealing it."""
        return f"CredentialSlot(client_id={self.client_id!r}, has_token={self.has_token})"

    @property
    def client_id(self) -> str:
        """The client identifier."""
        with self._lock:
            return self._client_id

    @property
    def access_token(self) -> str | None:
        """The bearer token, if one is installed."""
        with self._lock:
            return self._access_token

    @property
    def has_token(self) -> bool:
        """Whether a bearer token is installed."""
        with self._lock:
            return self._access_token is not None

    def set_client_id(self, client_id: str) -> None:
        """Replace the client identifier."""
        with self._lock:
            self._client_id = client_id

    def set_access_token(self, token: str) -> None:
        """Install the bearer token."""
        with self._lock:
            self._access_token = token

    def clear_access_token(self) -> None:
        """Remove the bearer token."""
        with self._lock:
            self._access_token = None

    def headers(self) -> dict[str, str]:
        """Snapshot the headers this slot contributes."""
        with self._lock:
            headers: dict[str, str] = {}
            if self._client_id:
                headers["Client-Id"] = self._client_id
            if self._access_token:
                headers["Authorization"] = f"Bearer {self._access_token}"
            return headers

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        """Apply the snapshot; an explicit ``Authorization`` header wins."""
        for name, value in self.headers().items():
            if name not in request.headers:
                request.headers[name] = value
        yield request


class TwitchApiClient:
    """Async client for the Helix resource API and token revocation.

    Parameters
    ----------
    credentials : CredentialSlot
        Credentials applied to every API request.
    base_url : str
        Helix API root (default ``https://api.twitch.tv/helix``).
    revocation_url : str
        Token revocation endpoint.
    users_path : str
        Path of the user resource (default ``/users``).
    timeout : float
        Request timeout in seconds (default ``10``).
    revoke_timeout : float
        Revocation timeout in seconds (default ``10``).
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        credentials: CredentialSlot,
        base_url: str = "https://api.twitch.tv/helix",
        revocation_url: str = "https://id.twitch.tv/oauth2/revoke",
        users_path: str = "/users",
        timeout: float = 10.0,
        revoke_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the API client."""
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.revocation_url = revocation_url
        self.users_path = users_path
        self.timeout = timeout
        self.revoke_timeout = revoke_timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None
        self._client_loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_settings(
        cls,
        settings: TwitchAuthSettings,
        credentials: CredentialSlot | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> TwitchApiClient:
        """Create a client from loaded settings.

        The ``Client-Id`` header is fixed here, once, from the configured
        client identifier.
        """
        if credentials is None:
            credentials = CredentialSlot(settings.oauth.client_id)
        return cls(
            credentials=credentials,
            base_url=settings.api.base_url,
            revocation_url=settings.oauth.revocation_url,
            users_path=settings.api.users_path,
            timeout=settings.timeout.request,
            revoke_timeout=settings.timeout.revoke,
            transport=transport,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client for the running event loop.

        A client's connection pool belongs to the loop that opened it, so a
        client left over from another loop is dropped rather than reused.
        """
        loop = asyncio.get_running_loop()
        if self._http_client is not None and self._client_loop is not loop:
            logger.debug("Event loop changed; replacing the HTTP client")
            self._http_client = None
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=self.credentials,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
            self._client_loop = loop
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client."""
        client, loop = self._http_client, self._client_loop
        self._http_client = None
        self._client_loop = None
        if client is not None and not client.is_closed and loop is asyncio.get_running_loop():
            await client.aclose()

    async def get(
        self,
        path: str,
        access_token: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET a JSON resource.

        Parameters
        ----------
        path : str
            Path relative to ``base_url``.
        access_token : str, optional
            Bearer token for this request only. When omitted the token in
            ``credentials`` is used.
        params : dict, optional
            Query parameters.

        Returns
        -------
        Any
            The decoded JSON body.

        Raises
        ------
        TransportError
            On network errors, non-2xx responses, or an undecodable body.
        """
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
        try:
            client = await self._get_client()
            resp = await client.get(path, params=params, headers=headers)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            msg = f"Request to {path} failed: {exc.response.status_code}"
            raise TransportError(
                msg, status_code=exc.response.status_code, provider="twitch"
            ) from exc
        except httpx.HTTPError as exc:
            msg = f"Request to {path} failed: {exc.__class__.__name__}"
            raise TransportError(msg, provider="twitch") from exc
        except ValueError as exc:
            msg = f"Response from {path} is not valid JSON"
            raise TransportError(msg, provider="twitch") from exc

    async def fetch_users(self, access_token: str | None = None) -> list[dict[str, Any]]:
        """Fetch the user collection for the token's owner.

        Returns
        -------
        list[dict[str, Any]]
            The ``data`` list of the ``/users`` response (may be empty).
        """
        body = await self.get(self.users_path, access_token=access_token)
        if not isinstance(body, dict):
            msg = "Unexpected user resource payload"
            raise TransportError(msg, provider="twitch")
        return list(body.get("data") or [])

    async def revoke_token(self, token: str) -> bool:
        """Revoke a token at the provider.

        Parameters
        ----------
        token : str
            The access token to revoke.

        Returns
        -------
        bool
            True if revocation succeeded, False if the request failed.
        """
        if not self.revocation_url:
            return False
        try:
            client = await self._get_client()
            resp = await client.post(
                self.revocation_url,
                data={"client_id": self.credentials.client_id, "token": token},
                auth=None,
                timeout=self.revoke_timeout,
            )
        except httpx.HTTPError as exc:
            logger.debug("Token revocation request failed: %s", exc.__class__.__name__)
            return False
        if not resp.is_success:
            logger.debug("Token revocation rejected: %s", resp.status_code)
        return resp.is_success
