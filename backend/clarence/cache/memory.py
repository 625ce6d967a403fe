"""
In-memory KeyValueStore for local development and tests.

Expiry is tracked against a monotonic clock; pass `clock=` to drive it
by hand in tests.
"""

from __future__ import annotations

import math
import time
from typing import Callable

from clarence.cache.base import KeyValueStore


class InMemoryStore(KeyValueStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (value, expires_at or None)
        self._data: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    def _expiry(self, ttl: int | None) -> float | None:
        return self._clock() + ttl if ttl else None

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        self._data[key] = (value, self._expiry(ttl))

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        if self._live(key) is not None:
            return False
        self._data[key] = (value, self._expiry(ttl))
        return True

    async def incr(self, key: str, ttl: int | None = None) -> int:
        entry = self._live(key)
        if entry is None:
            self._data[key] = ("1", self._expiry(ttl))
            return 1
        value, expires_at = entry
        count = int(value) + 1
        self._data[key] = (str(count), expires_at)
        return count

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def ttl(self, key: str) -> int:
        entry = self._live(key)
        if entry is None:
            return -2
        _, expires_at = entry
        if expires_at is None:
            return -1
        return max(1, math.ceil(expires_at - self._clock()))
