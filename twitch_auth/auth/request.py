"""Implicit grant authorization request.

Builds the ``/oauth2/authorize`` URL for ``response_type=token`` and
generates the single-use anti-forgery state value sent with it.
"""

from __future__ import annotations

import secrets
import string

from dataclasses import dataclass
from urllib.parse import quote, urlencode


STATE_ALPHABET = string.ascii_letters + string.digits


def generate_state(size: int = 30) -> str:
    """Generate a random alphanumeric state token.

    Parameters
    ----------
    size : int
        Number of characters (default 30).

    Returns
    -------
    str
        A fresh token drawn from ``secrets``.
    """
    if size <= 0:
        msg = "State size must be positive"
        raise ValueError(msg)
    return "".join(secrets.choice(STATE_ALPHABET) for _ in range(size))


@dataclass(frozen=True)
class AuthorizationRequest:
    """One implicit grant authorization request.

    Attributes
    ----------
    authorize_url : str
        The provider's authorization endpoint.
    client_id : str
        The OAuth2 client ID.
    redirect_uri : str
        Where the provider sends the user back to.
    scopes : tuple[str, ...]
        Requested scopes, in order.
    state : str
        Anti-forgery token, unique to this request.
    force_verify : bool
        Ask the provider to re-prompt the user even if already approved.
    response_type : str
        Always ``"token"`` (implicit grant).
    """

    authorize_url: str
    client_id: str
    redirect_uri: str
    scopes: tuple[str, ...]
    state: str
    force_verify: bool = True
    response_type: str = "token"

    @classmethod
    def build(
        cls,
        authorize_url: str,
        client_id: str,
        redirect_uri: str,
        scopes: list[str] | tuple[str, ...],
        force_verify: bool = True,
        state_length: int = 30,
    ) -> AuthorizationRequest:
        """Create a request with a freshly generated state.

        Parameters
        ----------
        authorize_url : str
            The provider's authorization endpoint.
        client_id : str
            The OAuth2 client ID.
        redirect_uri : str
            The registered redirect URI.
        scopes : list[str] or tuple[str, ...]
            Requested scopes. Duplicates are dropped, order is kept.
        force_verify : bool
            Whether to force re-approval (default ``True``).
        state_length : int
            Length of the generated state (default 30).

        Returns
        -------
        AuthorizationRequest
            A new immutable request.
        """
        return cls(
            authorize_url=authorize_url,
            client_id=client_id,
            redirect_uri=redirect_uri,
            scopes=tuple(dict.fromkeys(scopes)),
            state=generate_state(state_length),
            force_verify=force_verify,
        )

    @property
    def scope(self) -> str:
        """Space-joined scope string."""
        return " ".join(self.scopes)

    @property
    def params(self) -> dict[str, str]:
        """Query parameters in wire order."""
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
            "scope": self.scope,
            "force_verify": "true" if self.force_verify else "false",
            "state": self.state,
        }

    @property
    def url(self) -> str:
        """The full authorization URL.

        Values are percent-encoded with ``%20`` for spaces so the scope
        travels as a single encoded unit.
        """
        return f"{self.authorize_url}?{urlencode(self.params, quote_via=quote)}"
