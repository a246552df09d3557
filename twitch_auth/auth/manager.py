"""Sign-in state machine for the Twitch implicit grant.

``AuthManager`` builds the authorization request, runs the redirect
session, validates what comes back, fetches the user profile and owns
the resulting in-memory session. ``sign_out`` revokes the token and
tears the session down. Both operations are serialized by one
``asyncio.Lock`` so only one of them is ever in flight.

A manager is driven by one event loop at a time. Successive loops (for
example separate ``asyncio.run`` calls) are fine: the lock and the HTTP
client are recreated when the running loop changes.
"""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import asyncio
import logging
import secrets

from typing import TYPE_CHECKING

from ..config import get_settings
from ..exceptions import (
    AuthenticationError,
    AuthFlowTimeout,
    InvalidStateError,
    ProfileNotFoundError,
    TransportError,
)
from ..models import UserProfile
from ..types import (
    AuthFlowState,
    AuthorizationCancelled,
    AuthorizationSuccess,
    AuthStatus,
    AuthView,
    Session,
    SignInOutcome,
    SignInResult,
)
from .launcher import BrowserRedirectLauncher
from .publisher import SessionPublisher
from .request import AuthorizationRequest
from .transport import CredentialSlot, TwitchApiClient


if TYPE_CHECKING:
    from collections.abc import Callable

    from ..config import TwitchAuthSettings
    from .launcher import RedirectSessionLauncher


logger = logging.getLogger("twitch_auth.auth")

PROVIDER = "twitch"
ACCESS_DENIED = "access_denied"


class AuthManager:
    """Owns the Twitch session and its sign-in/sign-out lifecycle.

    Parameters
    ----------
    launcher : RedirectSessionLauncher, optional
        Runs the interactive step. Defaults to a ``BrowserRedirectLauncher``
        built from settings.
    api_client : TwitchApiClient, optional
        Fetches the profile and revokes tokens. Defaults to a client built
        from settings around a fresh ``CredentialSlot``.
    publisher : SessionPublisher, optional
        Receives every state change.
    settings : callable, optional
        Returns the current settings; read on every sign-in. Defaults to
        ``get_settings``.
    """

    def __init__(
        self,
        launcher: RedirectSessionLauncher | None = None,
        api_client: TwitchApiClient | None = None,
        publisher: SessionPublisher | None = None,
        settings: Callable[[], TwitchAuthSettings] | None = None,
    ) -> None:
        """Initialize the auth manager."""
        self._settings = settings or get_settings
        config = self._settings()

        self.launcher = launcher or BrowserRedirectLauncher.from_settings(config.oauth)
        self.api_client = api_client or TwitchApiClient.from_settings(config)
        self.publisher = publisher or SessionPublisher()

        # Client-Id is installed once, at startup
        if not self.credentials.client_id and config.oauth.client_id:
            self.credentials.set_client_id(config.oauth.client_id)

        self._session: Session | None = None
        self._status = AuthStatus.IDLE
        self._flow_state = AuthFlowState.IDLE
        self._flow_id: str | None = None
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    # ── Observable state ────────────────────────────────────────────

    @property
    def credentials(self) -> CredentialSlot:
        """The credential slot shared with the API client."""
        return self.api_client.credentials

    @property
    def session(self) -> Session | None:
        """The current session, if signed in."""
        return self._session

    @property
    def user(self) -> UserProfile | None:
        """The signed-in user, if any."""
        return self._session.user if self._session else None

    @property
    def status(self) -> AuthStatus:
        """Which operation is in flight."""
        return self._status

    @property
    def flow_state(self) -> AuthFlowState:
        """Current state of the state machine."""
        return self._flow_state

    @property
    def is_logging_in(self) -> bool:
        """True while ``sign_in`` is running."""
        return self._status is AuthStatus.SIGNING_IN

    @property
    def is_logging_out(self) -> bool:
        """True while ``sign_out`` is running."""
        return self._status is AuthStatus.SIGNING_OUT

    @property
    def view(self) -> AuthView:
        """Snapshot of the externally observable state."""
        return AuthView(user=self.user, status=self._status)

    # ── Lifecycle ───────────────────────────────────────────────────

    async def sign_in(self) -> SignInResult:  # noqa: C901
        """Run one implicit grant sign-in.

        A failed, cancelled or denied attempt leaves any existing session
        untouched; it is only replaced once a new profile is fetched.

        Returns
        -------
        SignInResult
            ``AUTHENTICATED`` on success, ``CANCELLED`` if the user closed
            the redirect session, ``DENIED`` if they refused access.

        Raises
        ------
        InvalidStateError
            If the returned state does not match the one sent.
        AuthFlowTimeout
            If the redirect session does not resolve in time.
        ProfileNotFoundError
            If the user resource returns no profile.
        TransportError
            If the profile fetch fails.
        AuthenticationError
            For any other failure, including a missing client ID.
        """
        async with self._get_lock():
            self._flow_id = secrets.token_urlsafe(8)
            flow_id = self._flow_id
            self._set_state(AuthStatus.SIGNING_IN, AuthFlowState.AUTHORIZING)

            try:
                return await self._run_sign_in(flow_id)
            except AuthenticationError:
                raise
            except Exception as exc:
                logger.debug("Sign-in %s failed: %s", flow_id, exc.__class__.__name__)
                msg = "Authentication failed"
                raise AuthenticationError(msg, provider=PROVIDER, flow_id=flow_id) from exc
            finally:
                settled = (
                    AuthFlowState.AUTHENTICATED if self._session else AuthFlowState.IDLE
                )
                self._set_state(AuthStatus.IDLE, settled)

    async def _run_sign_in(self, flow_id: str) -> SignInResult:
        config = self._settings()
        client_id = config.require_client_id()

        # make_redirect_uri may start a loopback server; stop it if the build fails
        try:
            request = AuthorizationRequest.build(
                authorize_url=config.oauth.authorize_url,
                client_id=client_id,
                redirect_uri=self.launcher.make_redirect_uri(),
                scopes=config.oauth.scopes,
                force_verify=config.oauth.force_verify,
                state_length=config.oauth.state_length,
            )
        except Exception:
            self.launcher.cancel()
            raise
        logger.info("Sign-in %s: opening redirect session", flow_id)

        timeout = config.timeout.auth
        try:
            result = await asyncio.wait_for(self.launcher.launch(request.url), timeout=timeout)
        except asyncio.TimeoutError:
            self.launcher.cancel()
            msg = f"Sign-in timed out after {timeout}s"
            raise AuthFlowTimeout(
                msg, timeout=timeout, provider=PROVIDER, flow_id=flow_id
            ) from None

        # Order matters: result type, then access_denied, then state.
        if isinstance(result, AuthorizationCancelled):
            logger.info("Sign-in %s cancelled", flow_id)
            return SignInResult(SignInOutcome.CANCELLED, user=self.user, flow_id=flow_id)
        if not isinstance(result, AuthorizationSuccess):
            msg = f"Redirect session failed: {result.reason}"
            raise AuthenticationError(msg, provider=PROVIDER, flow_id=flow_id)

        if result.error == ACCESS_DENIED:
            logger.info("Sign-in %s denied by user", flow_id)
            return SignInResult(SignInOutcome.DENIED, user=self.user, flow_id=flow_id)

        if result.state is None or not secrets.compare_digest(result.state, request.state):
            logger.warning("Sign-in %s: state mismatch, discarding redirect", flow_id)
            msg = "State parameter mismatch (possible CSRF attack)"
            raise InvalidStateError(msg, provider=PROVIDER, flow_id=flow_id)

        if result.error:
            msg = f"Provider returned error: {result.error_description or result.error}"
            raise AuthenticationError(msg, provider=PROVIDER, flow_id=flow_id)
        if not result.access_token:
            msg = "No access token in redirect"
            raise AuthenticationError(msg, provider=PROVIDER, flow_id=flow_id)

        self._set_state(AuthStatus.SIGNING_IN, AuthFlowState.VALIDATING)
        access_token = result.access_token

        try:
            users = await self.api_client.fetch_users(access_token=access_token)
        except TransportError as exc:
            raise TransportError(
                exc.message, status_code=exc.status_code, provider=PROVIDER, flow_id=flow_id
            ) from exc

        if not users:
            msg = "No user profile returned for the access token"
            raise ProfileNotFoundError(msg, provider=PROVIDER, flow_id=flow_id)

        profile = UserProfile.model_validate(users[0])

        # Commit: session and credential slot change together
        self._session = Session(access_token=access_token, user=profile)
        self.credentials.set_access_token(access_token)
        logger.info("Sign-in %s completed for user %s", flow_id, profile.id)

        return SignInResult(SignInOutcome.AUTHENTICATED, user=profile, flow_id=flow_id)

    async def sign_out(self) -> None:
        """Revoke the token and clear the session. Never raises.

        Revocation is best-effort; the local session is cleared whether
        or not the provider accepted it.
        """
        async with self._get_lock():
            self._set_state(AuthStatus.SIGNING_OUT, AuthFlowState.REVOKING)
            session = self._session

            try:
                if session is None:
                    logger.debug("Sign-out without a session; skipping revocation")
                elif not await self.api_client.revoke_token(session.access_token):
                    logger.info("Token revocation was not confirmed by the provider")
            except Exception:
                logger.warning("Token revocation failed", exc_info=True)
            finally:
                self._session = None
                self.credentials.clear_access_token()
                self._set_state(AuthStatus.IDLE, AuthFlowState.IDLE)
                logger.info("Signed out")

    async def close(self) -> None:
        """Release the HTTP client."""
        await self.api_client.close()

    def _get_lock(self) -> asyncio.Lock:
        # asyncio.Lock binds to the first loop that waits on it
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def _set_state(self, status: AuthStatus, flow_state: AuthFlowState) -> None:
        self._status = status
        self._flow_state = flow_state
        self.publisher.publish(self.view)
