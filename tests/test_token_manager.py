import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from quizhub.core.exceptions import ConfigurationError
from quizhub.schemas.user import Role, User
from quizhub.utils.token_manager import TokenFailure, TokenManager

from conftest import ACCESS_SECRET, REFRESH_SECRET


def _user(role: Role = Role.USER) -> User:
    return User(
        user_id="user-1",
        email="a@x.com",
        password_hash="not-used",
        role=role,
    )


def _tamper_payload(token: str, **changes) -> str:
    header, payload, signature = token.split(".")
    padded = payload + "=" * (-len(payload) % 4)
    claims = json.loads(base64.urlsafe_b64decode(padded))
    claims.update(changes)
    forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()
    return ".".join([header, forged, signature])


def test_issue_pair_carries_identity_claims(token_manager) -> None:
    pair = token_manager.issue_pair(_user(Role.ADMIN))

    access = jwt.decode(pair.access_token, ACCESS_SECRET, algorithms=["HS256"])
    refresh = jwt.decode(pair.refresh_token, REFRESH_SECRET, algorithms=["HS256"])

    for claims in (access, refresh):
        assert claims["userId"] == "user-1"
        assert claims["email"] == "a@x.com"
        assert claims["role"] == "ADMIN"
    assert access["type"] == "access"
    assert refresh["type"] == "refresh"
    assert access["exp"] - access["iat"] == 15 * 60
    assert refresh["exp"] - refresh["iat"] == 7 * 24 * 60 * 60


def test_verify_access_returns_claims(token_manager) -> None:
    pair = token_manager.issue_pair(_user())

    result = token_manager.verify_access(pair.access_token)

    assert result.ok
    assert result.failure is None
    assert result.claims.to_principal().model_dump() == {
        "id": "user-1",
        "email": "a@x.com",
        "role": Role.USER,
    }


def test_tokens_are_signed_with_distinct_secrets(token_manager) -> None:
    pair = token_manager.issue_pair(_user())

    assert token_manager.verify_access(pair.refresh_token).failure is TokenFailure.SIGNATURE_INVALID
    assert token_manager.verify_refresh(pair.access_token).failure is TokenFailure.SIGNATURE_INVALID


def test_each_issue_produces_new_tokens(token_manager) -> None:
    first = token_manager.issue_pair(_user())
    second = token_manager.issue_pair(_user())

    assert first.access_token != second.access_token
    assert first.refresh_token != second.refresh_token


def test_expired_token_is_classified_as_expired(token_manager) -> None:
    stale_issuer = TokenManager(
        ACCESS_SECRET,
        REFRESH_SECRET,
        access_ttl=timedelta(seconds=-5),
        refresh_ttl=timedelta(seconds=-5),
    )
    pair = stale_issuer.issue_pair(_user())

    assert token_manager.verify_access(pair.access_token).failure is TokenFailure.EXPIRED
    assert token_manager.verify_refresh(pair.refresh_token).failure is TokenFailure.EXPIRED


def test_tampered_token_fails_signature_check(token_manager) -> None:
    pair = token_manager.issue_pair(_user())
    forged = _tamper_payload(pair.access_token, role="ADMIN")

    result = token_manager.verify_access(forged)

    assert not result.ok
    assert result.failure is TokenFailure.SIGNATURE_INVALID


@pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c", "...."])
def test_garbage_is_classified_as_malformed(token_manager, token) -> None:
    assert token_manager.verify_access(token).failure is TokenFailure.MALFORMED


@pytest.mark.parametrize("token", [None, ""])
def test_absent_token_is_classified_as_missing(token_manager, token) -> None:
    assert token_manager.verify_access(token).failure is TokenFailure.MISSING


def test_token_without_identity_claims_is_malformed(token_manager) -> None:
    token = jwt.encode({"type": "access", "role": "USER"}, ACCESS_SECRET, algorithm="HS256")

    assert token_manager.verify_access(token).failure is TokenFailure.MALFORMED


def test_token_with_unknown_role_is_malformed(token_manager) -> None:
    token = jwt.encode(
        {"type": "access", "userId": "u", "email": "a@x.com", "role": "ROOT"},
        ACCESS_SECRET,
        algorithm="HS256",
    )

    assert token_manager.verify_access(token).failure is TokenFailure.MALFORMED


@pytest.mark.parametrize(
    "access_secret, refresh_secret",
    [(None, "refresh"), ("access", None), ("", ""), ("same", "same")],
)
def test_missing_or_shared_secrets_are_rejected(access_secret, refresh_secret) -> None:
    with pytest.raises(ConfigurationError):
        TokenManager(access_secret, refresh_secret)
