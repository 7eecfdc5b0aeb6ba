from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.core.errors import UnauthorizedError
from app.core.jwt_auth import TokenIssuer

SECRET = "token-test-secret-with-enough-entropy-0123456789"


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(SECRET, expire_minutes=60)


def test_issued_token_verifies_to_its_subject(issuer):
    token = issuer.issue("S1")
    assert issuer.verify(token) == "S1"


def test_token_carries_expiry_one_ttl_after_issue(issuer):
    token = issuer.issue("S1")
    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["sub"] == "S1"
    assert claims["exp"] - claims["iat"] == 3600


def test_corrupted_signature_fails_verification(issuer):
    token = issuer.issue("S1")
    header, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    with pytest.raises(UnauthorizedError):
        issuer.verify(".".join([header, payload, flipped]))


def test_token_signed_with_other_secret_fails(issuer):
    foreign = TokenIssuer("another-secret-with-enough-entropy-9876543210").issue("S1")
    with pytest.raises(UnauthorizedError):
        issuer.verify(foreign)


def test_expired_token_fails_with_unauthorized(issuer):
    token = issuer.issue("S1", expires_in=timedelta(seconds=-1))
    with pytest.raises(UnauthorizedError) as exc_info:
        issuer.verify(token)
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid or expired token"


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_fails_closed(issuer, token):
    with pytest.raises(UnauthorizedError):
        issuer.verify(token)


def test_token_without_subject_is_rejected(issuer):
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(UnauthorizedError):
        issuer.verify(token)


def test_unsigned_token_is_rejected(issuer):
    token = jwt.encode(
        {"sub": "S1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        None,
        algorithm="none",
    )
    with pytest.raises(UnauthorizedError):
        issuer.verify(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenIssuer("")
