"""
Password hashing and JWT issuing/decoding.

Three token kinds are issued, all HS256-signed with an explicit `type`
claim so one kind can never be replayed as another:

    verification — {phone, purpose}, proves a phone was verified
    access       — {sub, phone}, short-lived bearer token
    refresh      — {sub, phone, jti}, long-lived, individually revocable
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from clarence.core.constants import TokenType
from clarence.core.errors import UnauthorizedError


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int  # access token lifetime, seconds


class TokenIssuer:
    """Signs and verifies every JWT the service hands out."""

    def __init__(
        self,
        *,
        secret_key: str,
        refresh_secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        verification_ttl: timedelta = timedelta(minutes=15),
    ) -> None:
        self._secret_key = secret_key
        self._refresh_secret_key = refresh_secret_key
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.verification_ttl = verification_ttl

    # ─── Issue ─────────────────────────────────────────
    def issue_verification_token(self, phone: str, purpose: str) -> tuple[str, datetime]:
        """Return (token, expires_at) proving `phone` passed verification."""
        expires_at = self._now() + self.verification_ttl
        token = self._encode(
            {"phone": phone, "purpose": purpose, "type": TokenType.VERIFICATION.value},
            expires_at,
            self._secret_key,
        )
        return token, expires_at

    def issue_pair(self, user_id: str, phone: str) -> TokenPair:
        """Issue a fresh access + refresh token pair with a new jti."""
        now = self._now()
        access_token = self._encode(
            {"sub": str(user_id), "phone": phone, "type": TokenType.ACCESS.value},
            now + self.access_ttl,
            self._secret_key,
        )
        refresh_token = self._encode(
            {
                "sub": str(user_id),
                "phone": phone,
                "type": TokenType.REFRESH.value,
                "jti": uuid.uuid4().hex,
            },
            now + self.refresh_ttl,
            self._refresh_secret_key,
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.access_ttl.total_seconds()),
        )

    # ─── Decode ────────────────────────────────────────
    def decode_access_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, self._secret_key, TokenType.ACCESS)

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        payload = self._decode(token, self._refresh_secret_key, TokenType.REFRESH)
        if not payload.get("jti") or not payload.get("sub"):
            raise UnauthorizedError("Invalid refresh token")
        return payload

    def decode_verification_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, self._secret_key, TokenType.VERIFICATION)

    # ─── Internals ─────────────────────────────────────
    def _encode(self, claims: dict[str, Any], expires_at: datetime, key: str) -> str:
        payload = {**claims, "iat": self._now(), "exp": expires_at}
        return jwt.encode(payload, key, algorithm=self._algorithm)

    def _decode(self, token: str, key: str, expected_type: TokenType) -> dict[str, Any]:
        try:
            payload = jwt.decode(token, key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired") from None
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid token") from None

        if payload.get("type") != expected_type.value:
            raise UnauthorizedError("Invalid token type")
        return payload

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
