"""
Verification sessions — short-lived, attempt-limited one-time codes.

One store instance per purpose (phone verification, password reset),
each with its own key prefix and TTL.  The code itself only ever leaves
the process by SMS; callers get back an opaque session id.

TTL policy: a failed attempt re-persists the session with its *remaining*
TTL, so repeated wrong guesses can never extend a session's life.
"""

from __future__ import annotations

import asyncio
import secrets
import time
import uuid
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from clarence.cache.base import KeyValueStore
from clarence.core.errors import InvalidCodeError, NotFoundError, TooManyAttemptsError
from clarence.core.logging import get_logger
from clarence.notifications.sms import SmsDeliveryError, SmsSender

logger = get_logger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    session_id: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifiedSession:
    phone: str
    purpose: str


def generate_code() -> str:
    """Random 6-digit numeric code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


class VerificationSessionStore:
    def __init__(
        self,
        store: KeyValueStore,
        sms: SmsSender,
        *,
        key_prefix: str,
        ttl_seconds: int,
        message_template: str,
        max_attempts: int = 3,
    ) -> None:
        self._store = store
        self._sms = sms
        self._prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self._template = message_template
        self.max_attempts = max_attempts
        # Serialises read-modify-write of the attempt counter per session
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}:{session_id}"

    def _lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def create(self, phone: str, purpose: str) -> IssuedSession:
        """Store a new session, text the code, and return the session id."""
        code = generate_code()
        session_id = str(uuid.uuid4())
        key = self._key(session_id)
        await self._store.set_json(
            key,
            {
                "phone": phone,
                "code": code,
                "attempts": 0,
                "purpose": purpose,
                "created_at": time.time(),
            },
            self.ttl_seconds,
        )

        try:
            await self._sms.send(
                phone,
                self._template.format(code=code, minutes=self.ttl_seconds // 60),
            )
        except SmsDeliveryError:
            # The code never reached the phone, so the session is unusable
            await self._store.delete(key)
            logger.warning("Verification session dropped, SMS failed", prefix=self._prefix)
            raise

        logger.info("Verification session created", prefix=self._prefix, purpose=purpose)
        return IssuedSession(
            session_id=session_id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds),
        )

    async def verify(self, session_id: str, candidate: str) -> VerifiedSession:
        key = self._key(session_id)
        async with self._lock(session_id):
            session = await self._store.get_json(key)
            if not session:
                raise NotFoundError("Verification session not found or expired")

            if session["attempts"] >= self.max_attempts:
                await self._store.delete(key)
                raise TooManyAttemptsError(
                    "Too many failed attempts. Please request a new code."
                )

            if not secrets.compare_digest(str(session["code"]), str(candidate)):
                session["attempts"] += 1
                remaining_ttl = await self._store.ttl(key)
                if remaining_ttl == -2:
                    raise NotFoundError("Verification session not found or expired")
                await self._store.set_json(
                    key,
                    session,
                    remaining_ttl if remaining_ttl > 0 else self.ttl_seconds,
                )
                remaining = self.max_attempts - session["attempts"]
                logger.info(
                    "Verification code mismatch",
                    prefix=self._prefix,
                    attempts=session["attempts"],
                )
                raise InvalidCodeError(
                    f"Invalid verification code. {remaining} attempts remaining.",
                    attempts_remaining=remaining,
                )

            await self._store.delete(key)

        return VerifiedSession(phone=session["phone"], purpose=session["purpose"])
