"""
ServiceContainer — builds and owns every long-lived service object.

The API lifespan and the Celery tasks each build one container; services
receive their collaborators from here instead of importing singletons.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from clarence.auth.limits import LoginGuard, RateLimiter
from clarence.auth.revocation import TokenBlacklist
from clarence.auth.service import AuthService
from clarence.auth.verification import VerificationSessionStore
from clarence.cache import InMemoryStore, KeyValueStore, RedisStore
from clarence.carriers.client import CarrierClient
from clarence.carriers.health import CarrierHealthMonitor
from clarence.carriers.registry import CarrierRegistry
from clarence.core.config import Settings
from clarence.core.constants import DispatchMode
from clarence.core.logging import get_logger
from clarence.core.security import TokenIssuer
from clarence.db.session import SessionFactory, build_engine, build_session_factory
from clarence.notifications.sms import (
    PASSWORD_RESET_TEMPLATE,
    VERIFICATION_TEMPLATE,
    SmsSender,
)
from clarence.policies.service import PolicyService
from clarence.quotes.dispatcher import CeleryDispatcher, InlineDispatcher
from clarence.quotes.orchestrator import QuoteOrchestrator

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    engine: AsyncEngine
    session_factory: SessionFactory
    kv_store: KeyValueStore
    sms: SmsSender
    carrier_client: CarrierClient
    tokens: TokenIssuer
    auth: AuthService
    registry: CarrierRegistry
    quotes: QuoteOrchestrator
    policies: PolicyService
    health: CarrierHealthMonitor
    dispatcher: InlineDispatcher | CeleryDispatcher

    async def aclose(self) -> None:
        """Stop background work, then release clients and connections."""
        await self.dispatcher.shutdown()
        await self.carrier_client.aclose()
        await self.sms.aclose()
        await self.kv_store.close()
        await self.engine.dispose()


def build_kv_store(settings: Settings) -> KeyValueStore:
    if settings.KV_BACKEND == "memory":
        logger.warning("Using in-memory key-value store; sessions are per-process")
        return InMemoryStore()
    return RedisStore(settings.REDIS_URL)


def build_container(
    settings: Settings,
    *,
    database_url: str | None = None,
    engine: AsyncEngine | None = None,
    kv_store: KeyValueStore | None = None,
    sms: SmsSender | None = None,
    carrier_transport: httpx.AsyncBaseTransport | None = None,
    dispatch_mode: str | None = None,
) -> ServiceContainer:
    """Wire the whole service graph; keyword overrides are for tests and workers."""
    engine = engine or build_engine(database_url or settings.DATABASE_URL)
    session_factory = build_session_factory(engine)
    kv_store = kv_store or build_kv_store(settings)
    sms = sms or SmsSender(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_PHONE_NUMBER,
        api_base_url=settings.TWILIO_API_BASE_URL,
    )

    tokens = TokenIssuer(
        secret_key=settings.JWT_SECRET_KEY,
        refresh_secret_key=settings.JWT_REFRESH_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        access_ttl=timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl=timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
        verification_ttl=timedelta(minutes=settings.JWT_VERIFICATION_TOKEN_EXPIRE_MINUTES),
    )

    auth = AuthService(
        session_factory=session_factory,
        tokens=tokens,
        blacklist=TokenBlacklist(
            kv_store,
            default_ttl=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        ),
        verification_sessions=VerificationSessionStore(
            kv_store,
            sms,
            key_prefix="verification",
            ttl_seconds=settings.VERIFICATION_CODE_TTL_SECONDS,
            message_template=VERIFICATION_TEMPLATE,
            max_attempts=settings.VERIFICATION_MAX_ATTEMPTS,
        ),
        reset_sessions=VerificationSessionStore(
            kv_store,
            sms,
            key_prefix="reset",
            ttl_seconds=settings.PASSWORD_RESET_TTL_SECONDS,
            message_template=PASSWORD_RESET_TEMPLATE,
            max_attempts=settings.VERIFICATION_MAX_ATTEMPTS,
        ),
        rate_limiter=RateLimiter(kv_store, limit=settings.SMS_RATE_LIMIT_PER_HOUR, window_seconds=3600),
        login_guard=LoginGuard(
            kv_store,
            max_failures=settings.MAX_FAILED_LOGINS,
            lock_seconds=settings.ACCOUNT_LOCK_SECONDS,
        ),
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )

    carrier_client = CarrierClient(
        quote_timeout=settings.CARRIER_QUOTE_TIMEOUT,
        bind_timeout=settings.CARRIER_BIND_TIMEOUT,
        health_timeout=settings.CARRIER_HEALTH_TIMEOUT,
        transport=carrier_transport,
    )
    registry = CarrierRegistry(session_factory=session_factory, skip_down=settings.CARRIER_SKIP_DOWN)

    quotes = QuoteOrchestrator(
        session_factory=session_factory,
        registry=registry,
        client=carrier_client,
        max_concurrency=settings.CARRIER_MAX_CONCURRENCY,
        estimated_completion=timedelta(seconds=settings.QUOTE_ESTIMATED_COMPLETION_SECONDS),
    )

    mode = dispatch_mode or settings.QUOTE_DISPATCH_MODE
    if mode == DispatchMode.CELERY:
        dispatcher: InlineDispatcher | CeleryDispatcher = CeleryDispatcher()
    else:
        dispatcher = InlineDispatcher(quotes.process)
    quotes.dispatcher = dispatcher

    return ServiceContainer(
        engine=engine,
        session_factory=session_factory,
        kv_store=kv_store,
        sms=sms,
        carrier_client=carrier_client,
        tokens=tokens,
        auth=auth,
        registry=registry,
        quotes=quotes,
        policies=PolicyService(session_factory=session_factory, client=carrier_client),
        health=CarrierHealthMonitor(session_factory=session_factory, client=carrier_client),
        dispatcher=dispatcher,
    )
