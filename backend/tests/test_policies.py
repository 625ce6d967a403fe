import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import func, select

from clarence.core.constants import PolicyStatus
from clarence.core.errors import (
    BindRejectedError,
    ConflictError,
    NotFoundError,
    QuoteExpiredError,
    ValidationError,
)
from clarence.db.models.policy import Policy
from clarence.policies.service import monthly_amount_for, payment_schedule
from clarence.repositories import users as user_repository

from conftest import quote_body


def bound_response(policy_number="POL-1001", **policy_fields):
    return {
        "success": True,
        "bind_id": "BIND-1",
        "policy": {
            "policy_id": f"CP-{policy_number}",
            "policy_number": policy_number,
            "status": "bound",
            "effective_date": "2026-12-01",
            "expiration_date": "2027-12-01",
            "documents": [{"type": "policy", "url": "https://docs.test/policy.pdf"}],
            **policy_fields,
        },
    }


@pytest.fixture
async def user(session_factory):
    async with session_factory() as db, db.begin():
        return await user_repository.create_user(db, phone="+14155550199", password_hash="x")


@pytest.fixture
def quoted(container, add_carrier, draft_request, carrier_api):
    """Run a request through quoting with the given quote body; return the stored quote."""

    async def _quoted(code="acme", **body_kwargs):
        carrier = await add_carrier(code, ["general_liability"])
        carrier_api.on(
            code,
            "quote",
            lambda request, body: httpx.Response(
                200, json=quote_body("general_liability", **body_kwargs)
            ),
        )
        quote_request = await draft_request(["general_liability"], session_id=f"sess-{code}")
        await container.quotes.submit(quote_request.id)
        await container.dispatcher.drain()
        view = await container.quotes.get_with_quotes(quote_request.id)
        [quote] = [q for q in view.quotes if q.carrier_id == carrier.id]
        return quote

    return _quoted


async def _policy_count(session_factory):
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(Policy))).scalar_one()


# ─── Pure helpers ─────────────────────────────
def test_monthly_amount_only_for_monthly_plan():
    quote = type("Q", (), {"monthly_premium": None, "annual_premium": Decimal("1250.00")})()

    assert monthly_amount_for(quote, "monthly") == Decimal("105")
    assert monthly_amount_for(quote, "annual") is None

    quote.monthly_premium = Decimal("110.00")
    assert monthly_amount_for(quote, "monthly") == Decimal("110.00")


def test_payment_schedule():
    assert payment_schedule(date(2026, 12, 1), "monthly") == (date(2026, 12, 16), 12)
    assert payment_schedule(date(2026, 12, 1), "quarterly") == (date(2026, 12, 16), 4)
    assert payment_schedule(date(2026, 12, 1), "annual") == (date(2026, 12, 16), None)
    assert payment_schedule(None, "monthly") == (None, 12)


# ─── Bind ─────────────────────────────────────
@pytest.mark.asyncio
async def test_bind_creates_policy_snapshot(container, quoted, user, carrier_api):
    quote = await quoted(annual=1250)
    carrier_api.on("acme", "bind", lambda request, body: httpx.Response(200, json=bound_response()))

    policy = await container.policies.bind(
        quote.id, user.id, "monthly", payment_method_ref="pm_1", signer_ip="203.0.113.9"
    )

    assert policy.policy_number == "POL-1001"
    assert policy.carrier_policy_id == "CP-POL-1001"
    assert policy.carrier_bind_id == "BIND-1"
    assert policy.status == PolicyStatus.BOUND
    assert policy.carrier_quote_id == quote.id
    assert policy.annual_premium == Decimal("1250")
    assert policy.monthly_amount == Decimal("105")
    assert policy.first_payment_due == date(2026, 12, 16)
    assert policy.next_payment_date == date(2026, 12, 16)
    assert policy.payments_remaining == 12
    assert policy.insured_name == "Acme Widgets LLC"
    assert policy.insured_address == "100 Market St, San Francisco, CA 94105"
    assert policy.policy_document_url == "https://docs.test/policy.pdf"
    assert policy.carrier.code == "acme"

    [bind_call] = carrier_api.calls_for("acme", "bind")
    assert bind_call["quote_id"] == quote.carrier_quote_id
    assert bind_call["payment_plan"] == "monthly"
    assert bind_call["signature"]["ip_address"] == "203.0.113.9"


@pytest.mark.asyncio
async def test_expired_quote_is_not_bound(container, quoted, user, carrier_api, session_factory):
    quote = await quoted(valid_until=datetime.now(timezone.utc) - timedelta(minutes=1))

    with pytest.raises(QuoteExpiredError):
        await container.policies.bind(quote.id, user.id, "annual")

    assert carrier_api.calls_for("acme", "bind") == []
    assert await _policy_count(session_factory) == 0


@pytest.mark.asyncio
async def test_declined_quote_cannot_be_bound(container, quoted, user):
    quote = await quoted(status="declined", annual=None)

    with pytest.raises(ValidationError):
        await container.policies.bind(quote.id, user.id, "annual")


@pytest.mark.asyncio
async def test_unknown_quote_and_plan(container, user):
    with pytest.raises(NotFoundError):
        await container.policies.bind(uuid.uuid4(), user.id, "annual")
    with pytest.raises(ValidationError):
        await container.policies.bind(uuid.uuid4(), user.id, "weekly")


@pytest.mark.asyncio
async def test_quote_binds_at_most_once(container, quoted, user, carrier_api, session_factory):
    quote = await quoted()
    carrier_api.on("acme", "bind", lambda request, body: httpx.Response(200, json=bound_response()))

    await container.policies.bind(quote.id, user.id, "annual")
    with pytest.raises(ConflictError):
        await container.policies.bind(quote.id, user.id, "annual")

    assert len(carrier_api.calls_for("acme", "bind")) == 1
    assert await _policy_count(session_factory) == 1


@pytest.mark.asyncio
async def test_carrier_rejection_creates_no_policy(container, quoted, user, carrier_api, session_factory):
    quote = await quoted()
    carrier_api.on(
        "acme",
        "bind",
        lambda request, body: httpx.Response(
            200, json={"status": "failed", "error_message": "Payment declined"}
        ),
    )

    with pytest.raises(BindRejectedError) as exc_info:
        await container.policies.bind(quote.id, user.id, "annual")

    assert exc_info.value.message == "Payment declined"
    assert await _policy_count(session_factory) == 0


@pytest.mark.asyncio
async def test_carrier_error_on_bind_is_a_rejection(container, quoted, user, carrier_api):
    quote = await quoted()
    carrier_api.on("acme", "bind", lambda request, body: httpx.Response(503, json={}))

    with pytest.raises(BindRejectedError) as exc_info:
        await container.policies.bind(quote.id, user.id, "annual")

    assert exc_info.value.details["http_status"] == 503


# ─── Reads / cancel ───────────────────────────
@pytest.mark.asyncio
async def test_lookup_is_scoped_to_owner(container, quoted, user, carrier_api):
    quote = await quoted()
    carrier_api.on("acme", "bind", lambda request, body: httpx.Response(200, json=bound_response()))
    policy = await container.policies.bind(quote.id, user.id, "annual")

    assert (await container.policies.get(policy.id, user_id=user.id)).id == policy.id
    assert (await container.policies.get_by_number("POL-1001", user_id=user.id)).id == policy.id
    assert [p.id for p in await container.policies.list_for_user(user.id)] == [policy.id]

    with pytest.raises(NotFoundError):
        await container.policies.get(policy.id, user_id=uuid.uuid4())
    with pytest.raises(NotFoundError):
        await container.policies.get_by_number("POL-404")


@pytest.mark.asyncio
async def test_cancel_policy(container, quoted, user, carrier_api):
    quote = await quoted()
    carrier_api.on("acme", "bind", lambda request, body: httpx.Response(200, json=bound_response()))
    policy = await container.policies.bind(quote.id, user.id, "annual")

    with pytest.raises(NotFoundError):
        await container.policies.cancel(policy.id, user_id=uuid.uuid4())

    cancelled = await container.policies.cancel(policy.id, "Sold the business", user_id=user.id)
    assert cancelled.status == PolicyStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancellation_reason == "Sold the business"

    with pytest.raises(ConflictError):
        await container.policies.cancel(policy.id, user_id=user.id)


@pytest.mark.asyncio
async def test_active_and_expiring_lists(container, quoted, user, carrier_api, session_factory):
    soon = datetime.now(timezone.utc).date() + timedelta(days=20)
    later = datetime.now(timezone.utc).date() + timedelta(days=200)

    policies = []
    for code, number, expires in (("acme", "POL-A", soon), ("beta", "POL-B", later)):
        quote = await quoted(code=code)
        carrier_api.on(
            code,
            "bind",
            lambda request, body, number=number, expires=expires: httpx.Response(
                200, json=bound_response(number, expiration_date=expires.isoformat())
            ),
        )
        policies.append(await container.policies.bind(quote.id, user.id, "annual"))

    assert await container.policies.list_active(user.id) == []

    async with session_factory() as db, db.begin():
        for policy in policies:
            (await db.get(Policy, policy.id)).status = PolicyStatus.ACTIVE.value

    active = await container.policies.list_active(user.id)
    assert [p.policy_number for p in active] == ["POL-A", "POL-B"]

    expiring = await container.policies.list_expiring_soon(user.id)
    assert [p.policy_number for p in expiring] == ["POL-A"]
    assert len(await container.policies.list_expiring_soon(user.id, days=365)) == 2
