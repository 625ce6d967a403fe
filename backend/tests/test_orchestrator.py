import uuid
from decimal import Decimal

import httpx
import pytest

from clarence.core.constants import QuoteRequestStatus
from clarence.core.errors import (
    AlreadySubmittedError,
    ConflictError,
    NoCoveragesSelectedError,
    NotFoundError,
    StructuralProcessingError,
    ValidationError,
)
from clarence.repositories import quote_requests as quote_request_repository

from conftest import quote_body, timeout_handler


async def _status(container, quote_request_id):
    view = await container.quotes.get_with_quotes(quote_request_id)
    return view.quote_request.status


async def _submit_and_wait(container, quote_request_id):
    submitted = await container.quotes.submit(quote_request_id)
    await container.dispatcher.drain()
    return submitted


# ─── Fan-out ──────────────────────────────────
@pytest.mark.asyncio
async def test_single_carrier_quote_reaches_quotes_ready(container, add_carrier, draft_request):
    await add_carrier("acme", ["general_liability"])
    quote_request = await draft_request(["general_liability"])

    submitted = await _submit_and_wait(container, quote_request.id)
    assert submitted.status == QuoteRequestStatus.SUBMITTED
    assert submitted.submitted_at is not None

    view = await container.quotes.get_with_quotes(quote_request.id)
    assert view.quote_request.status == QuoteRequestStatus.QUOTES_READY
    assert view.quote_request.quotes_ready_at is not None
    [quote] = view.quotes
    assert quote.status == "quoted"
    assert quote.annual_premium == Decimal("1200")
    assert quote.coverage_type == "general_liability"
    assert quote.carrier_quote_id == "acme-general_liability"
    assert quote.carrier_response["quotes"][0]["quote_id"] == "acme-general_liability"


@pytest.mark.asyncio
async def test_carrier_timeout_still_reaches_quotes_ready(
    container, add_carrier, draft_request, carrier_api
):
    await add_carrier("acme", ["general_liability"])
    carrier_api.on("acme", "quote", timeout_handler)
    quote_request = await draft_request(["general_liability"])

    await _submit_and_wait(container, quote_request.id)

    view = await container.quotes.get_with_quotes(quote_request.id)
    assert view.quote_request.status == QuoteRequestStatus.QUOTES_READY
    assert view.quotes == []


@pytest.mark.asyncio
async def test_one_failing_carrier_does_not_affect_others(
    container, add_carrier, draft_request, carrier_api
):
    await add_carrier("acme", ["general_liability"])
    await add_carrier("broken", ["general_liability"])
    await add_carrier("garbled", ["general_liability"])
    carrier_api.on("broken", "quote", lambda request, body: httpx.Response(500, json={"error": "boom"}))
    carrier_api.on("garbled", "quote", lambda request, body: httpx.Response(200, text="<html>"))

    quote_request = await draft_request(["general_liability"])
    await _submit_and_wait(container, quote_request.id)

    view = await container.quotes.get_with_quotes(quote_request.id)
    assert view.quote_request.status == QuoteRequestStatus.QUOTES_READY
    assert [q.carrier_quote_id for q in view.quotes] == ["acme-general_liability"]


@pytest.mark.asyncio
async def test_one_call_per_supported_coverage(container, add_carrier, draft_request, carrier_api):
    await add_carrier("acme", ["general_liability"])
    await add_carrier("wide", ["general_liability", "cyber_liability"])
    await add_carrier("cyber_only", ["cyber_liability"], supports_commercial=False)

    quote_request = await draft_request(["general_liability", "cyber_liability"])
    await _submit_and_wait(container, quote_request.id)

    acme_calls = carrier_api.calls_for("acme")
    assert [c["coverage_requests"][0]["coverage_type"] for c in acme_calls] == ["general_liability"]
    wide_coverages = sorted(
        c["coverage_requests"][0]["coverage_type"] for c in carrier_api.calls_for("wide")
    )
    assert wide_coverages == ["cyber_liability", "general_liability"]
    assert carrier_api.calls_for("cyber_only") == []

    view = await container.quotes.get_with_quotes(quote_request.id)
    assert len(view.quotes) == 3


@pytest.mark.asyncio
async def test_declined_and_referred_answers_are_stored(
    container, add_carrier, draft_request, carrier_api
):
    await add_carrier("picky", ["general_liability"])
    await add_carrier("odd", ["general_liability"])
    carrier_api.on(
        "picky",
        "quote",
        lambda request, body: httpx.Response(
            200,
            json=quote_body(
                "general_liability",
                status="declined",
                annual=None,
                decline_reason="Industry outside appetite",
            ),
        ),
    )
    carrier_api.on(
        "odd",
        "quote",
        lambda request, body: httpx.Response(
            200, json=quote_body("general_liability", status="needs_review", quote_id="ODD-1")
        ),
    )

    quote_request = await draft_request(["general_liability"])
    await _submit_and_wait(container, quote_request.id)

    view = await container.quotes.get_with_quotes(quote_request.id)
    by_status = {q.status: q for q in view.quotes}
    assert set(by_status) == {"declined", "referred"}
    assert by_status["declined"].annual_premium is None
    assert by_status["declined"].decline_reason == "Industry outside appetite"


@pytest.mark.asyncio
async def test_quotes_listed_cheapest_first(container, add_carrier, draft_request, carrier_api):
    await add_carrier("pricey", ["general_liability"])
    await add_carrier("cheap", ["general_liability"])
    carrier_api.on(
        "pricey",
        "quote",
        lambda request, body: httpx.Response(200, json=quote_body("general_liability", annual=2400)),
    )
    carrier_api.on(
        "cheap",
        "quote",
        lambda request, body: httpx.Response(200, json=quote_body("general_liability", annual=900)),
    )

    quote_request = await draft_request(["general_liability"])
    await _submit_and_wait(container, quote_request.id)

    view = await container.quotes.get_with_quotes(quote_request.id)
    assert [q.annual_premium for q in view.quotes] == [Decimal("900"), Decimal("2400")]


@pytest.mark.asyncio
async def test_no_eligible_carriers_is_still_ready(container, draft_request):
    quote_request = await draft_request(["general_liability"])

    await _submit_and_wait(container, quote_request.id)

    assert await _status(container, quote_request.id) == QuoteRequestStatus.QUOTES_READY


# ─── Structural failures ──────────────────────
@pytest.mark.asyncio
async def test_structural_failure_reverts_to_draft(container, add_carrier, draft_request, monkeypatch):
    await add_carrier("acme", ["general_liability"])
    quote_request = await draft_request(["general_liability"])
    container.quotes.dispatcher = None

    await container.quotes.submit(quote_request.id)

    async def explode(*args, **kwargs):
        raise RuntimeError("registry unavailable")

    monkeypatch.setattr(container.registry, "find_eligible", explode)

    with pytest.raises(StructuralProcessingError) as exc_info:
        await container.quotes.process(quote_request.id)

    assert exc_info.value.quote_request_id == str(quote_request.id)
    assert await _status(container, quote_request.id) == QuoteRequestStatus.DRAFT


@pytest.mark.asyncio
async def test_dispatch_failure_reverts_submit(container, draft_request):
    class BrokenDispatcher:
        def dispatch(self, quote_request_id):
            raise ConnectionError("broker down")

    quote_request = await draft_request(["general_liability"])
    container.quotes.dispatcher = BrokenDispatcher()

    with pytest.raises(ConnectionError):
        await container.quotes.submit(quote_request.id)

    assert await _status(container, quote_request.id) == QuoteRequestStatus.DRAFT


@pytest.mark.asyncio
async def test_process_skips_request_not_in_submitted(container, draft_request):
    quote_request = await draft_request(["general_liability"])

    assert await container.quotes.process(quote_request.id) is None
    assert await _status(container, quote_request.id) == QuoteRequestStatus.DRAFT


# ─── Submit validation ────────────────────────
@pytest.mark.asyncio
async def test_submit_twice_is_rejected(container, draft_request):
    quote_request = await draft_request(["general_liability"])
    await _submit_and_wait(container, quote_request.id)

    with pytest.raises(AlreadySubmittedError):
        await container.quotes.submit(quote_request.id)


@pytest.mark.asyncio
async def test_submit_lists_missing_fields(container, draft_request):
    quote_request = await draft_request(["general_liability"], contact_email=None, city="")

    with pytest.raises(ValidationError) as exc_info:
        await container.quotes.submit(quote_request.id)

    assert exc_info.value.details["missing_fields"] == ["city", "contact_email"]
    assert "city, contact_email" in exc_info.value.message
    assert await _status(container, quote_request.id) == QuoteRequestStatus.DRAFT


@pytest.mark.asyncio
async def test_submit_needs_a_coverage(container, draft_request):
    quote_request = await draft_request([])

    with pytest.raises(NoCoveragesSelectedError):
        await container.quotes.submit(quote_request.id)


@pytest.mark.asyncio
async def test_submit_unknown_request(container):
    with pytest.raises(NotFoundError):
        await container.quotes.submit(uuid.uuid4())


@pytest.mark.asyncio
async def test_status_transition_is_compare_and_set(container, draft_request):
    quote_request = await draft_request(["general_liability"])

    results = []
    for _ in range(2):
        async with container.session_factory() as db, db.begin():
            results.append(
                await quote_request_repository.transition_status(
                    db,
                    quote_request.id,
                    from_status=QuoteRequestStatus.DRAFT,
                    to_status=QuoteRequestStatus.SUBMITTED,
                )
            )

    assert results == [True, False]


# ─── Draft editing ────────────────────────────
@pytest.mark.asyncio
async def test_create_rejects_unknown_insurance_type(container):
    with pytest.raises(ValidationError):
        await container.quotes.create(
            session_id="sess-x", insurance_type="marine", request_type="new_coverage"
        )


@pytest.mark.asyncio
async def test_update_only_while_draft(container, draft_request):
    quote_request = await draft_request(["general_liability"])

    updated = await container.quotes.update(quote_request.id, industry="Retail", status="purchased")
    assert updated.industry == "Retail"
    assert updated.status == QuoteRequestStatus.DRAFT

    await _submit_and_wait(container, quote_request.id)
    with pytest.raises(ConflictError):
        await container.quotes.update(quote_request.id, industry="Logistics")
    with pytest.raises(ConflictError):
        await container.quotes.select_coverages(quote_request.id, ["cyber_liability"])


@pytest.mark.asyncio
async def test_select_coverages_replaces_and_dedupes(container, draft_request):
    quote_request = await draft_request(["general_liability"])

    rows = await container.quotes.select_coverages(
        quote_request.id,
        ["cyber_liability", "workers_comp", "cyber_liability"],
        recommended={"cyber_liability": "Stores customer data"},
    )

    assert sorted(r.coverage_type for r in rows) == ["cyber_liability", "workers_comp"]
    view = await container.quotes.get_with_quotes(quote_request.id)
    by_type = {c.coverage_type: c for c in view.coverages}
    assert set(by_type) == {"cyber_liability", "workers_comp"}
    assert by_type["cyber_liability"].is_recommended is True
    assert by_type["cyber_liability"].recommendation_reason == "Stores customer data"
    assert by_type["workers_comp"].is_recommended is False


@pytest.mark.asyncio
async def test_get_by_session_returns_latest(container, draft_request):
    await draft_request(["general_liability"], session_id="sess-9")
    latest = await draft_request(["cyber_liability"], session_id="sess-9")

    found = await container.quotes.get_by_session("sess-9")
    assert found.id == latest.id

    with pytest.raises(NotFoundError):
        await container.quotes.get_by_session("missing")


@pytest.mark.asyncio
async def test_inline_dispatcher_tracks_tasks(container, add_carrier, draft_request):
    await add_carrier("acme", ["general_liability"])
    quote_request = await draft_request(["general_liability"])

    await container.quotes.submit(quote_request.id)
    assert container.dispatcher.pending == 1

    await container.dispatcher.drain()
    assert container.dispatcher.pending == 0
    assert await _status(container, quote_request.id) == QuoteRequestStatus.QUOTES_READY
