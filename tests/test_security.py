from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from restomatch.core.security import (
    Claims,
    InvalidToken,
    TokenService,
    hash_password,
    verify_password,
)
from restomatch.models import UserRole

SECRET = "unit-test-secret"


@pytest.fixture
def tokens():
    return TokenService(SECRET, ttl=timedelta(hours=1))


def test_verify_returns_issued_claims(tokens):
    claims = Claims(user_id=42, role=UserRole.STAFF)

    assert tokens.verify(tokens.issue(claims)) == claims


def test_expired_token_is_rejected(tokens):
    token = tokens.issue(Claims(user_id=1, role=UserRole.CLIENT), ttl=timedelta(seconds=-1))

    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_token_is_valid_until_expiry(tokens):
    issued = datetime.now(timezone.utc) - timedelta(minutes=59)
    token = tokens.issue(Claims(user_id=1, role=UserRole.CLIENT), issued_at=issued)

    assert tokens.verify(token).user_id == 1


def test_token_signed_with_another_secret_is_rejected(tokens):
    other = TokenService("another-secret")
    token = other.issue(Claims(user_id=1, role=UserRole.ADMIN))

    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_tampered_token_is_rejected(tokens):
    token = tokens.issue(Claims(user_id=1, role=UserRole.CLIENT))
    header, payload, signature = token.split(".")
    forged = jwt.encode({"sub": "1", "role": "admin"}, "guess").split(".")[1]

    with pytest.raises(InvalidToken):
        tokens.verify(f"{header}.{forged}.{signature}")


def test_garbage_is_rejected(tokens):
    with pytest.raises(InvalidToken):
        tokens.verify("not-a-token")


@pytest.mark.parametrize("payload", [
    {"sub": "abc", "role": "client"},
    {"sub": "1"},
    {"sub": "1", "role": "superuser"},
])
def test_malformed_payload_is_rejected(tokens, payload):
    expires = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({**payload, "exp": int(expires.timestamp())}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenService("")


def test_password_hash_round_trip():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong-password", hashed)
