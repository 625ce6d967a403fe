from datetime import timedelta

import jwt
import pytest

from clarence.core.errors import UnauthorizedError
from clarence.core.security import TokenIssuer, hash_password, verify_password


@pytest.fixture
def issuer():
    return TokenIssuer(secret_key="access-secret", refresh_secret_key="refresh-secret")


def test_password_hash_round_trip():
    hashed = hash_password("s3cret-pass", rounds=4)
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)
    assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")


def test_pair_carries_subject_and_unique_jti(issuer):
    first = issuer.issue_pair("user-1", "+14155550100")
    second = issuer.issue_pair("user-1", "+14155550100")

    access = issuer.decode_access_token(first.access_token)
    refresh = issuer.decode_refresh_token(first.refresh_token)

    assert access["sub"] == "user-1"
    assert access["phone"] == "+14155550100"
    assert refresh["sub"] == "user-1"
    assert refresh["jti"] != issuer.decode_refresh_token(second.refresh_token)["jti"]
    assert first.expires_in == 15 * 60


def test_token_kinds_are_not_interchangeable(issuer):
    pair = issuer.issue_pair("user-1", "+14155550100")
    verification, _ = issuer.issue_verification_token("+14155550100", "registration")

    with pytest.raises(UnauthorizedError):
        issuer.decode_refresh_token(pair.access_token)
    with pytest.raises(UnauthorizedError):
        issuer.decode_access_token(pair.refresh_token)
    with pytest.raises(UnauthorizedError):
        issuer.decode_access_token(verification)


def test_expired_token_is_unauthorized():
    issuer = TokenIssuer(
        secret_key="access-secret",
        refresh_secret_key="refresh-secret",
        access_ttl=timedelta(seconds=-1),
    )
    pair = issuer.issue_pair("user-1", "+14155550100")

    with pytest.raises(UnauthorizedError, match="expired"):
        issuer.decode_access_token(pair.access_token)


def test_foreign_signature_is_unauthorized(issuer):
    forged = jwt.encode({"sub": "user-1", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(UnauthorizedError):
        issuer.decode_access_token(forged)
