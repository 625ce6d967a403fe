import asyncio

import pytest

from clarence.auth.limits import RateLimiter
from clarence.auth.revocation import TokenBlacklist
from clarence.cache import InMemoryStore
from clarence.core.errors import RateLimitedError


class SlowStore(InMemoryStore):
    """Yields to the event loop before every call, like a network round-trip."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def incr(self, key, ttl=None):
        await asyncio.sleep(0)
        return await super().incr(key, ttl)

    async def set_if_absent(self, key, value, ttl=None):
        await asyncio.sleep(0)
        return await super().set_if_absent(key, value, ttl)

    async def ttl(self, key):
        await asyncio.sleep(0)
        return await super().ttl(key)


@pytest.mark.asyncio
async def test_concurrent_hits_never_exceed_limit(clock):
    limiter = RateLimiter(SlowStore(clock=clock), limit=3, window_seconds=3600)

    outcomes = await asyncio.gather(
        *(limiter.hit("sms", "+14155550100") for _ in range(6)),
        return_exceptions=True,
    )

    assert outcomes.count(None) == 3
    limited = [o for o in outcomes if isinstance(o, RateLimitedError)]
    assert len(limited) == 3
    assert all(o.retry_after == 3600 for o in limited)


@pytest.mark.asyncio
async def test_limit_is_per_subject(kv_store):
    limiter = RateLimiter(kv_store, limit=1, window_seconds=60)

    await limiter.hit("sms", "+14155550100")
    await limiter.hit("sms", "+14155550101")
    with pytest.raises(RateLimitedError):
        await limiter.hit("sms", "+14155550100")


@pytest.mark.asyncio
async def test_only_first_revocation_claims_the_jti(clock):
    blacklist = TokenBlacklist(SlowStore(clock=clock), default_ttl=60)

    first, second = await asyncio.gather(
        blacklist.revoke("jti-1", user_id="u1"),
        blacklist.revoke("jti-1", user_id="u1"),
    )

    assert sorted([first, second]) == [False, True]
    assert await blacklist.is_revoked("jti-1")
    clock.advance(60)
    assert not await blacklist.is_revoked("jti-1")
