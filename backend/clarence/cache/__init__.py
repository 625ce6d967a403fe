"""
Key-value TTL stores backing verification sessions, token revocation
and rate counters.

    RedisStore     — production (redis.asyncio)
    InMemoryStore  — local development and tests
"""

from clarence.cache.base import KeyValueStore
from clarence.cache.memory import InMemoryStore
from clarence.cache.redis_store import RedisStore

__all__ = ["KeyValueStore", "InMemoryStore", "RedisStore"]
