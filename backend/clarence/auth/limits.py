"""Fixed-window counters: SMS rate limiting and failed-login lockout."""

from __future__ import annotations

import math

from clarence.cache.base import KeyValueStore
from clarence.core.errors import AccountLockedError, RateLimitedError


def _retry_hint(seconds: int) -> str:
    minutes = max(1, math.ceil(seconds / 60))
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


class RateLimiter:
    """At most `limit` events per key within a window of `window_seconds`."""

    def __init__(self, store: KeyValueStore, *, limit: int = 3, window_seconds: int = 3600) -> None:
        self._store = store
        self.limit = limit
        self.window_seconds = window_seconds

    async def hit(self, kind: str, subject: str) -> None:
        key = f"rate-limit:{kind}:{subject}"
        # Count first: the returned value is this caller's slot in the window
        count = await self._store.incr(key, self.window_seconds)
        if count > self.limit:
            retry_after = await self._store.ttl(key)
            retry_after = retry_after if retry_after > 0 else self.window_seconds
            raise RateLimitedError(
                f"Too many requests. Please try again in {_retry_hint(retry_after)}.",
                retry_after=retry_after,
            )


class LoginGuard:
    """Locks a phone out of login after repeated failures."""

    def __init__(self, store: KeyValueStore, *, max_failures: int = 5, lock_seconds: int = 900) -> None:
        self._store = store
        self.max_failures = max_failures
        self.lock_seconds = lock_seconds

    def _key(self, phone: str) -> str:
        return f"failed-login:{phone}"

    async def ensure_not_locked(self, phone: str) -> None:
        attempts = await self._store.get(self._key(phone))
        if attempts is not None and int(attempts) >= self.max_failures:
            raise self._locked(await self._store.ttl(self._key(phone)))

    async def record_failure(self, phone: str) -> None:
        key = self._key(phone)
        attempts = await self._store.incr(key)
        # Each failure restarts the lock window
        await self._store.set(key, str(attempts), self.lock_seconds)
        if attempts >= self.max_failures:
            raise self._locked(self.lock_seconds)

    async def clear(self, phone: str) -> None:
        await self._store.delete(self._key(phone))

    def _locked(self, retry_after: int) -> AccountLockedError:
        retry_after = retry_after if retry_after > 0 else self.lock_seconds
        return AccountLockedError(
            "Account temporarily locked due to too many failed login attempts. "
            f"Try again in {_retry_hint(retry_after)}.",
            retry_after=retry_after,
        )
