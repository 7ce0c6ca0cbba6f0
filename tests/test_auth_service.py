from datetime import timedelta

import pytest

from quizhub.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from quizhub.schemas.user import Principal, Role
from quizhub.utils.token_manager import TokenFailure, TokenManager

from conftest import ACCESS_SECRET, REFRESH_SECRET


def _principal(result) -> Principal:
    return Principal(id=result.user.id, email=result.user.email, role=result.user.role)


def test_register_then_login_yields_same_user(auth_service, token_manager) -> None:
    registered = auth_service.register("a@x.com", "password1", name="Alice")
    logged_in = auth_service.login("a@x.com", "password1")

    assert registered.user.id == logged_in.user.id
    assert registered.user.role is Role.USER
    assert logged_in.user.last_login_at is not None

    for result in (registered, logged_in):
        claims = token_manager.verify_access(result.access_token).claims
        assert claims.user_id == registered.user.id


def test_register_never_exposes_password_hash(auth_service) -> None:
    result = auth_service.register("a@x.com", "password1")

    dumped = result.model_dump(by_alias=True)
    assert "passwordHash" not in dumped["user"]
    assert "password_hash" not in dumped["user"]


@pytest.mark.parametrize("password, name", [("password1", None), ("different-pw", "Bob")])
def test_register_with_used_email_conflicts(auth_service, password, name) -> None:
    auth_service.register("a@x.com", "password1")

    with pytest.raises(ConflictError):
        auth_service.register("a@x.com", password, name)


def test_login_failures_are_indistinguishable(auth_service, user_manager) -> None:
    auth_service.register("a@x.com", "password1")
    inactive = auth_service.register("off@x.com", "password1")
    user_manager.set_active(inactive.user.id, False)

    messages = []
    for email, password in [
        ("a@x.com", "wrong-password"),
        ("nobody@x.com", "whatever"),
        ("off@x.com", "password1"),
    ]:
        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.login(email, password)
        messages.append((exc_info.value.status_code, exc_info.value.message))

    assert messages == [(401, "Invalid credentials")] * 3


def test_refresh_issues_pair_with_matching_claims(auth_service, token_manager) -> None:
    registered = auth_service.register("a@x.com", "password1")

    pair = auth_service.refresh(registered.refresh_token)

    original = token_manager.verify_access(registered.access_token).claims
    refreshed = token_manager.verify_access(pair.access_token).claims
    assert refreshed == original
    assert token_manager.verify_refresh(pair.refresh_token).ok
    # No revocation store: the presented refresh token keeps working
    assert auth_service.refresh(registered.refresh_token).access_token


@pytest.mark.parametrize("token", [None, ""])
def test_refresh_without_token_is_bad_request(auth_service, token) -> None:
    with pytest.raises(BadRequestError):
        auth_service.refresh(token)


def test_refresh_rejects_expired_tampered_and_access_tokens(auth_service, user_manager) -> None:
    registered = auth_service.register("a@x.com", "password1")
    stale_issuer = TokenManager(
        ACCESS_SECRET, REFRESH_SECRET, refresh_ttl=timedelta(seconds=-5)
    )
    user = user_manager.get_user_by_id(registered.user.id)
    expired = stale_issuer.issue_pair(user).refresh_token
    tampered = TokenManager("forged-access", "forged-refresh").issue_pair(user).refresh_token

    reasons = []
    for token in (expired, tampered, registered.access_token):
        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.refresh(token)
        assert exc_info.value.message == "Invalid refresh token"
        reasons.append(exc_info.value.reason)

    assert reasons == [
        TokenFailure.EXPIRED,
        TokenFailure.SIGNATURE_INVALID,
        TokenFailure.SIGNATURE_INVALID,
    ]


def test_refresh_rejects_inactive_or_missing_user(auth_service, user_manager, token_manager) -> None:
    registered = auth_service.register("a@x.com", "password1")
    user_manager.set_active(registered.user.id, False)

    with pytest.raises(AuthenticationError):
        auth_service.refresh(registered.refresh_token)

    ghost = user_manager.get_user_by_id(registered.user.id).model_copy(
        update={"user_id": "deleted-user"}
    )
    with pytest.raises(AuthenticationError):
        auth_service.refresh(token_manager.issue_pair(ghost).refresh_token)


def test_change_password_with_wrong_current_keeps_old_hash(auth_service) -> None:
    registered = auth_service.register("a@x.com", "password1")

    with pytest.raises(BadRequestError):
        auth_service.change_password(_principal(registered), "wrong-password", "new-password")

    assert auth_service.login("a@x.com", "password1").user.id == registered.user.id


def test_change_password_replaces_hash(auth_service) -> None:
    registered = auth_service.register("a@x.com", "password1")

    auth_service.change_password(_principal(registered), "password1", "new-password")

    with pytest.raises(AuthenticationError):
        auth_service.login("a@x.com", "password1")
    assert auth_service.login("a@x.com", "new-password").user.id == registered.user.id


def test_change_password_for_missing_user_is_not_found(auth_service) -> None:
    ghost = Principal(id="missing", email="ghost@x.com", role=Role.USER)

    with pytest.raises(NotFoundError):
        auth_service.change_password(ghost, "password1", "new-password")


def test_profile_roundtrip(auth_service) -> None:
    principal = _principal(auth_service.register("a@x.com", "password1"))

    assert auth_service.update_profile(principal, "Alice").name == "Alice"
    assert auth_service.get_profile(principal).name == "Alice"


def test_disable_two_factor_clears_flag(auth_service, user_manager) -> None:
    registered = auth_service.register("a@x.com", "password1")
    user_manager.set_two_factor_enabled(registered.user.id, True)

    assert not auth_service.disable_two_factor(_principal(registered)).two_factor_enabled


def test_reactivated_user_can_login_again(auth_service) -> None:
    registered = auth_service.register("a@x.com", "password1")

    auth_service.set_user_active(registered.user.id, False)
    with pytest.raises(AuthenticationError):
        auth_service.login("a@x.com", "password1")

    auth_service.set_user_active(registered.user.id, True)
    assert auth_service.login("a@x.com", "password1").user.is_active


def test_login_with_unknown_email_still_checks_a_password(auth_service, user_manager, monkeypatch) -> None:
    checked = []
    verify_password = user_manager.verify_password

    def recording_verify(plain_password, hashed_password):
        checked.append(hashed_password)
        return verify_password(plain_password, hashed_password)

    monkeypatch.setattr(user_manager, "verify_password", recording_verify)

    with pytest.raises(AuthenticationError):
        auth_service.login("nobody@x.com", "whatever")
    assert checked == [user_manager.dummy_hash()]
