"""Abstract key-value store with per-key expiry."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """
    Minimal string store with optional TTLs.

    `ttl()` follows Redis semantics: -2 when the key does not exist,
    -1 when it exists without an expiry, otherwise whole seconds left.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...

    @abstractmethod
    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Atomically create `key`; False when it already holds a live value."""

    @abstractmethod
    async def incr(self, key: str, ttl: int | None = None) -> int:
        """Increment a counter; `ttl` is applied only when the key is created."""

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    @abstractmethod
    async def exists(self, key: str) -> bool: ...

    @abstractmethod
    async def ttl(self, key: str) -> int: ...

    async def get_json(self, key: str) -> Any | None:
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.set(key, json.dumps(value, default=str), ttl)

    async def set_json_if_absent(self, key: str, value: Any, ttl: int | None = None) -> bool:
        return await self.set_if_absent(key, json.dumps(value, default=str), ttl)

    async def close(self) -> None:
        """Release connections.  No-op by default."""
        return None
