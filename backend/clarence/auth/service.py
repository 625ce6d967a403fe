"""
AuthService — phone-verified registration, login, token rotation and
password reset.

Every flow that needs a one-time code goes through a
VerificationSessionStore; every flow that returns tokens goes through
the TokenIssuer; refresh tokens are revoked by jti.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from clarence.auth.limits import LoginGuard, RateLimiter
from clarence.auth.revocation import TokenBlacklist
from clarence.auth.verification import VerificationSessionStore
from clarence.core.constants import VerificationPurpose
from clarence.core.errors import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from clarence.core.logging import get_logger
from clarence.core.security import TokenIssuer, TokenPair, hash_password, verify_password
from clarence.db.models.user import User
from clarence.db.session import SessionFactory
from clarence.repositories import users as user_repository

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthResult:
    user: User
    tokens: TokenPair


class AuthService:
    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        tokens: TokenIssuer,
        blacklist: TokenBlacklist,
        verification_sessions: VerificationSessionStore,
        reset_sessions: VerificationSessionStore,
        rate_limiter: RateLimiter,
        login_guard: LoginGuard,
        bcrypt_rounds: int = 12,
    ) -> None:
        self._session_factory = session_factory
        self.tokens = tokens
        self._blacklist = blacklist
        self._verification = verification_sessions
        self._reset = reset_sessions
        self._rate_limiter = rate_limiter
        self._login_guard = login_guard
        self._bcrypt_rounds = bcrypt_rounds

    # ─── Phone verification ───────────────────────────
    async def check_phone(self, phone: str) -> dict[str, Any]:
        async with self._session_factory() as db:
            user = await user_repository.get_user_by_phone(db, phone)
        return {
            "exists": user is not None,
            "message": (
                "This number is already registered. Please log in."
                if user
                else "Phone number is available"
            ),
        }

    async def send_verification_code(
        self,
        phone: str,
        purpose: VerificationPurpose = VerificationPurpose.REGISTRATION,
    ) -> dict[str, Any]:
        await self._rate_limiter.hit("sms", phone)
        issued = await self._verification.create(phone, purpose.value)
        return {
            "verification_id": issued.session_id,
            "expires_at": issued.expires_at,
            "message": "Verification code sent to your phone",
        }

    async def verify_code(self, verification_id: str, code: str) -> dict[str, Any]:
        verified = await self._verification.verify(verification_id, code)
        token, expires_at = self.tokens.issue_verification_token(verified.phone, verified.purpose)
        return {"verified": True, "verification_token": token, "expires_at": expires_at}

    # ─── Registration / login ─────────────────────────
    async def register(
        self,
        *,
        verification_token: str,
        password: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> AuthResult:
        try:
            payload = self.tokens.decode_verification_token(verification_token)
        except UnauthorizedError:
            raise ValidationError("Invalid or expired verification token") from None

        if payload.get("purpose") != VerificationPurpose.REGISTRATION.value:
            raise ValidationError("Invalid verification token")

        phone = payload["phone"]
        async with self._session_factory() as db, db.begin():
            if await user_repository.get_user_by_phone(db, phone):
                raise ConflictError("An account with this phone number already exists")

            user = await user_repository.create_user(
                db,
                phone=phone,
                password_hash=hash_password(password, self._bcrypt_rounds),
                email=email,
                first_name=first_name,
                last_name=last_name,
            )
            await user_repository.record_login(db, user.id)

        logger.info("User registered", user_id=str(user.id))
        return AuthResult(user=user, tokens=self.tokens.issue_pair(str(user.id), user.phone))

    async def login(self, phone: str, password: str) -> AuthResult:
        await self._login_guard.ensure_not_locked(phone)

        async with self._session_factory() as db, db.begin():
            user = await user_repository.get_user_by_phone(db, phone)
            valid = (
                user is not None
                and user.is_active
                and verify_password(password, user.password_hash)
            )
            if valid:
                await user_repository.record_login(db, user.id)

        if not valid:
            await self._login_guard.record_failure(phone)
            raise UnauthorizedError("Invalid phone number or password")

        await self._login_guard.clear(phone)
        return AuthResult(user=user, tokens=self.tokens.issue_pair(str(user.id), user.phone))

    # ─── Tokens ───────────────────────────────────────
    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate: revoke the presented refresh token and issue a new pair."""
        payload = self.tokens.decode_refresh_token(refresh_token)
        jti = payload["jti"]

        # Atomic claim before the user lookup; a replayed token loses
        claimed = await self._blacklist.revoke(jti, user_id=payload["sub"], expires_at=payload.get("exp"))
        if not claimed:
            raise UnauthorizedError("Token has been revoked")

        user = await self._get_active_user(payload["sub"])
        if user is None:
            raise UnauthorizedError("User not found")

        return self.tokens.issue_pair(str(user.id), user.phone)

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token.  Never fails: bad tokens are already useless."""
        try:
            payload = self.tokens.decode_refresh_token(refresh_token)
        except UnauthorizedError:
            logger.debug("Logout with invalid refresh token ignored")
            return
        await self._blacklist.revoke(payload["jti"], user_id=payload["sub"], expires_at=payload.get("exp"))

    async def authenticate(self, access_token: str) -> User:
        """Resolve the active user behind a bearer access token."""
        payload = self.tokens.decode_access_token(access_token)
        user = await self._get_active_user(payload.get("sub"))
        if user is None:
            raise UnauthorizedError("Invalid or inactive user")
        return user

    # ─── Password reset ───────────────────────────────
    async def forgot_password(self, phone: str) -> dict[str, Any]:
        async with self._session_factory() as db:
            user = await user_repository.get_user_by_phone(db, phone)
        if user is None:
            raise NotFoundError("No account found with this phone number")

        await self._rate_limiter.hit("password-reset", phone)
        issued = await self._reset.create(phone, VerificationPurpose.PASSWORD_RESET.value)
        return {
            "reset_id": issued.session_id,
            "expires_at": issued.expires_at,
            "message": "Password reset code sent to your phone",
        }

    async def reset_password(self, reset_id: str, code: str, new_password: str) -> dict[str, Any]:
        verified = await self._reset.verify(reset_id, code)

        async with self._session_factory() as db, db.begin():
            user = await user_repository.get_user_by_phone(db, verified.phone)
            if user is None:
                raise NotFoundError("User not found")
            await user_repository.update_password_hash(
                db, user.id, hash_password(new_password, self._bcrypt_rounds)
            )

        logger.info("Password reset", user_id=str(user.id))
        return {"message": "Password reset successful. You can now login with your new password."}

    # ─── Helpers ──────────────────────────────────────
    async def _get_active_user(self, subject: Any) -> User | None:
        try:
            user_id = uuid.UUID(str(subject))
        except (TypeError, ValueError):
            raise UnauthorizedError("Invalid authentication token") from None

        async with self._session_factory() as db:
            return await user_repository.get_active_user_by_id(db, user_id)