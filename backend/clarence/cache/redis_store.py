"""Redis-backed KeyValueStore for production."""

from __future__ import annotations

import redis.asyncio as redis

from clarence.cache.base import KeyValueStore


class RedisStore(KeyValueStore):
    def __init__(self, url: str = "redis://localhost:6379/0", *, client: redis.Redis | None = None) -> None:
        self._client = client if client is not None else redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl:
            await self._client.set(key, value, ex=ttl)
        else:
            await self._client.set(key, value)

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        # SET NX returns None when the key is already present
        return bool(await self._client.set(key, value, ex=ttl or None, nx=True))

    async def incr(self, key: str, ttl: int | None = None) -> int:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            if ttl:
                # NX: only arm the window on the first increment
                pipe.expire(key, ttl, nx=True)
            results = await pipe.execute()
        return int(results[0])

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def exists(self, key: str) -> bool:
        return bool(await self._client.exists(key))

    async def ttl(self, key: str) -> int:
        return int(await self._client.ttl(key))

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()
