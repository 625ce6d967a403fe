"""Pytest fixtures: SQLite database, in-memory KV store, fake SMS and carrier APIs."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest

from clarence.cache import InMemoryStore
from clarence.container import build_container
from clarence.core.config import Settings
from clarence.db.session import build_engine, build_session_factory, create_tables
from clarence.notifications.sms import SmsSender
from clarence.repositories import carriers as carrier_repository

CARRIER_BASE_URL = "http://carriers.test/api/v1"

COMPLETE_REQUEST_FIELDS = {
    "legal_business_name": "Acme Widgets LLC",
    "industry": "Manufacturing",
    "industry_code": "332710",
    "year_started": 2012,
    "street_address": "100 Market St",
    "city": "San Francisco",
    "state": "CA",
    "zip_code": "94105",
    "contact_first_name": "Dana",
    "contact_last_name": "Reyes",
    "contact_email": "dana@acme.test",
    "contact_phone": "+14155550100",
    "full_time_employees": 12,
}


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSmsSender(SmsSender):
    """Captures outbound messages instead of calling Twilio."""

    def __init__(self) -> None:
        super().__init__()
        self.messages: list[tuple[str, str]] = []

    async def send(self, phone: str, message: str) -> None:
        self.messages.append((phone, message))

    def last_code(self) -> str:
        _, message = self.messages[-1]
        return message.split(": ")[1][:6]


def quote_body(
    coverage_type: str,
    *,
    status: str = "quoted",
    annual: Any = 1200,
    monthly: Any = None,
    quote_id: str | None = None,
    valid_until: datetime | None = None,
    **extra: Any,
) -> dict[str, Any]:
    premium: dict[str, Any] = {"annual": annual}
    if monthly is not None:
        premium["monthly"] = monthly
    entry = {
        "quote_id": quote_id or f"Q-{coverage_type}",
        "status": status,
        "coverage_type": coverage_type,
        "premium": premium,
        "coverage_limits": {"per_occurrence": 1_000_000, "general_aggregate": 2_000_000},
        "deductible": 500,
        "effective_date": "2026-12-01",
        "expiration_date": "2027-12-01",
        "highlights": ["Primary and non-contributory"],
        **extra,
    }
    valid_until = valid_until or datetime.now(timezone.utc) + timedelta(days=30)
    return {"quotes": [entry], "valid_until": valid_until.isoformat(), "cached": False}


Handler = Callable[[httpx.Request, dict[str, Any]], httpx.Response]


class CarrierSimulator:
    """
    Routes `/carriers/{code}/{action}` to per-carrier handlers.

    Unrouted quote calls answer with a standard quoted body; unrouted
    health calls answer 200.
    """

    def __init__(self) -> None:
        self.handlers: dict[tuple[str, str], Handler] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.transport = httpx.MockTransport(self._handle)

    def on(self, code: str, action: str, handler: Handler) -> None:
        self.handlers[(code, action)] = handler

    def calls_for(self, code: str, action: str = "quote") -> list[dict[str, Any]]:
        return [body for c, a, body in self.calls if c == code and a == action]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.rstrip("/").split("/")
        code, action = parts[-2], parts[-1]
        body = json.loads(request.content) if request.content else {}
        self.calls.append((code, action, body))

        handler = self.handlers.get((code, action))
        if handler is not None:
            return handler(request, body)
        if action == "quote":
            coverage_type = body["coverage_requests"][0]["coverage_type"]
            return httpx.Response(200, json=quote_body(coverage_type, quote_id=f"{code}-{coverage_type}"))
        if action == "health":
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(404, json={"error": "not found"})


def timeout_handler(request: httpx.Request, body: dict[str, Any]) -> httpx.Response:
    raise httpx.ReadTimeout("carrier timed out", request=request)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv_store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def sms():
    return RecordingSmsSender()


@pytest.fixture
def carrier_api():
    return CarrierSimulator()


@pytest.fixture
def test_settings():
    return Settings(
        BCRYPT_ROUNDS=4,
        KV_BACKEND="memory",
        QUOTE_DISPATCH_MODE="inline",
        JWT_SECRET_KEY="test-secret",
        JWT_REFRESH_SECRET_KEY="test-refresh-secret",
        CARRIER_MAX_CONCURRENCY=5,
    )


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'clarence.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def container(test_settings, engine, kv_store, sms, carrier_api):
    container = build_container(
        test_settings,
        engine=engine,
        kv_store=kv_store,
        sms=sms,
        carrier_transport=carrier_api.transport,
        dispatch_mode="inline",
    )
    yield container
    await container.aclose()


@pytest.fixture
def add_carrier(session_factory):
    async def _add(code: str, coverages: list[str], **fields: Any):
        values = {
            "name": code.replace("_", " ").title(),
            "api_base_url": CARRIER_BASE_URL,
            "api_key": f"key-{code}",
            "supports_personal": True,
            "supports_commercial": True,
            "is_active": True,
            **fields,
        }
        async with session_factory() as db, db.begin():
            return await carrier_repository.create_carrier(
                db, code=code, supported_coverages=coverages, **values
            )

    return _add


@pytest.fixture
def draft_request(container):
    """A complete commercial draft with the given coverages selected."""

    async def _draft(coverages: list[str], session_id: str = "sess-1", **overrides: Any):
        quote_request = await container.quotes.create(
            session_id=session_id,
            insurance_type="commercial",
            request_type="new_coverage",
            **{**COMPLETE_REQUEST_FIELDS, **overrides},
        )
        if coverages:
            await container.quotes.select_coverages(quote_request.id, coverages)
        return quote_request

    return _draft
