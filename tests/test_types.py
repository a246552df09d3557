"""Tests for result types, the auth view and the user profile model."""

from __future__ import annotations

import pytest

from pydantic import ValidationError

from tests.fakes import PROFILE
from twitch_auth.exceptions import AuthenticationAbortedError, AuthenticationDeniedError
from twitch_auth.models import UserProfile
from twitch_auth.types import (
    AuthorizationSuccess,
    AuthStatus,
    AuthView,
    Session,
    SignInOutcome,
    SignInResult,
)


class TestAuthorizationSuccess:
    """Tests for AuthorizationSuccess."""

    def test_from_params(self) -> None:
        """Known parameters are lifted out, all are kept."""
        params = {"access_token": "tok1", "state": "S", "scope": "openid"}
        result = AuthorizationSuccess.from_params(params)
        assert result.access_token == "tok1"
        assert result.state == "S"
        assert result.error is None
        assert result.params == params

    def test_empty_values_become_none(self) -> None:
        """Empty token and error strings are treated as absent."""
        result = AuthorizationSuccess.from_params({"access_token": "", "error": ""})
        assert result.access_token is None
        assert result.error is None

    def test_repr_hides_token(self) -> None:
        """The token never appears in repr."""
        result = AuthorizationSuccess.from_params({"access_token": "secret-tok"})
        assert "secret-tok" not in repr(result)


class TestSession:
    """Tests for Session."""

    def test_repr_hides_token(self) -> None:
        """repr shows the user but not the token."""
        session = Session(access_token="secret-tok", user=UserProfile(id=1))
        assert "secret-tok" not in repr(session)
        assert "UserProfile" in repr(session)


class TestAuthView:
    """Tests for AuthView."""

    def test_defaults(self) -> None:
        """Default view is signed out and idle."""
        view = AuthView()
        assert not view.is_authenticated
        assert not view.is_logging_in
        assert not view.is_logging_out

    @pytest.mark.parametrize(
        ("status", "logging_in", "logging_out"),
        [
            (AuthStatus.IDLE, False, False),
            (AuthStatus.SIGNING_IN, True, False),
            (AuthStatus.SIGNING_OUT, False, True),
        ],
    )
    def test_flags_follow_status(self, status, logging_in, logging_out) -> None:
        """At most one in-flight flag is ever set."""
        view = AuthView(status=status)
        assert view.is_logging_in is logging_in
        assert view.is_logging_out is logging_out

    def test_to_dict(self) -> None:
        """to_dict exposes the user as provider JSON."""
        view = AuthView(user=UserProfile.model_validate(PROFILE), status=AuthStatus.SIGNING_OUT)
        assert view.to_dict() == {"user": PROFILE, "isLoggingIn": False, "isLoggingOut": True}

    def test_to_dict_signed_out(self) -> None:
        """A signed-out view serializes the user as None."""
        assert AuthView().to_dict()["user"] is None


class TestSignInResult:
    """Tests for SignInResult."""

    def test_success(self) -> None:
        """Only AUTHENTICATED counts as success."""
        assert SignInResult(SignInOutcome.AUTHENTICATED).success
        assert not SignInResult(SignInOutcome.CANCELLED).success
        assert not SignInResult(SignInOutcome.DENIED).success

    def test_raise_for_outcome_authenticated(self) -> None:
        """An authenticated result is returned unchanged."""
        result = SignInResult(SignInOutcome.AUTHENTICATED, flow_id="f1")
        assert result.raise_for_outcome() is result

    def test_raise_for_cancelled(self) -> None:
        """Cancelled results raise AuthenticationAbortedError."""
        with pytest.raises(AuthenticationAbortedError) as exc_info:
            SignInResult(SignInOutcome.CANCELLED, flow_id="f1").raise_for_outcome()
        assert exc_info.value.flow_id == "f1"

    def test_raise_for_denied(self) -> None:
        """Denied results raise AuthenticationDeniedError."""
        with pytest.raises(AuthenticationDeniedError):
            SignInResult(SignInOutcome.DENIED).raise_for_outcome()


class TestUserProfile:
    """Tests for UserProfile."""

    def test_round_trips_provider_element(self) -> None:
        """Unknown provider fields survive model_dump."""
        profile = UserProfile.model_validate(PROFILE)
        assert profile.display_name == "Ninja"
        assert profile.model_dump() == PROFILE

    def test_string_id_kept(self) -> None:
        """Helix string ids are not coerced."""
        assert UserProfile.model_validate({"id": "141981764"}).id == "141981764"

    def test_missing_optional_fields(self) -> None:
        """Only id is required."""
        profile = UserProfile(id=7)
        assert profile.email == ""
        assert profile.profile_image_url == ""

    def test_id_required(self) -> None:
        """A profile without an id is invalid."""
        with pytest.raises(ValidationError):
            UserProfile.model_validate({"display_name": "nobody"})

    def test_frozen(self) -> None:
        """Profiles are immutable."""
        profile = UserProfile(id=1)
        with pytest.raises(ValidationError):
            profile.display_name = "changed"  # type: ignore[misc]
