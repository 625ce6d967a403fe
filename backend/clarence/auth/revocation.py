"""Refresh-token revocation list keyed by jti."""

from __future__ import annotations

import time

from clarence.cache.base import KeyValueStore


class TokenBlacklist:
    def __init__(self, store: KeyValueStore, *, default_ttl: int = 7 * 24 * 3600) -> None:
        self._store = store
        self._default_ttl = default_ttl

    @staticmethod
    def _key(jti: str) -> str:
        return f"blacklist:{jti}"

    async def revoke(self, jti: str, *, user_id: str, expires_at: int | None = None) -> bool:
        """
        Blacklist `jti` until the token would have expired anyway.

        Returns True only for the caller that actually revoked it; a jti
        that was already blacklisted yields False.
        """
        ttl = self._default_ttl
        if expires_at is not None:
            ttl = max(1, int(expires_at - time.time()))
        return await self._store.set_json_if_absent(
            self._key(jti),
            {"user_id": user_id, "blacklisted_at": time.time()},
            ttl,
        )

    async def is_revoked(self, jti: str) -> bool:
        return await self._store.exists(self._key(jti))
