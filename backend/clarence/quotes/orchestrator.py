"""
QuoteOrchestrator — drives a quote request from draft to quotes_ready.

    draft ──submit──▶ submitted ──process──▶ processing ──▶ quotes_ready
                                                 │
                                                 └─ structural error ─▶ draft

`submit` validates and hands the request id to a dispatcher; it never
waits on carriers.  `process` runs in the background: it resolves the
eligible carriers, issues one quote call per (carrier, supported
coverage) pair concurrently, and only then marks the request ready.
Each pair is its own branch; a branch failure is logged and contributes
no CarrierQuote row.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from clarence.carriers.client import CarrierClient
from clarence.carriers.normalizer import normalize_quote
from clarence.carriers.payloads import build_quote_payload
from clarence.carriers.registry import CarrierRegistry
from clarence.core.constants import InsuranceType, QuoteRequestStatus, RequestType
from clarence.core.errors import (
    AlreadySubmittedError,
    CarrierQuoteFailure,
    CarrierRequestError,
    ConflictError,
    NoCoveragesSelectedError,
    NotFoundError,
    StructuralProcessingError,
    ValidationError,
)
from clarence.core.logging import get_logger
from clarence.db.models.carrier import Carrier
from clarence.db.models.carrier_quote import CarrierQuote
from clarence.db.models.quote_request import QuoteRequest
from clarence.db.models.quote_request_coverage import QuoteRequestCoverage
from clarence.db.session import SessionFactory
from clarence.repositories import carrier_quotes as carrier_quote_repository
from clarence.repositories import quote_requests as quote_request_repository

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "legal_business_name",
    "industry",
    "street_address",
    "city",
    "state",
    "zip_code",
    "contact_first_name",
    "contact_last_name",
    "contact_email",
    "contact_phone",
)


class QuoteDispatcher(Protocol):
    def dispatch(self, quote_request_id: uuid.UUID) -> Any: ...


@dataclass(frozen=True)
class QuoteRequestView:
    quote_request: QuoteRequest
    coverages: list[QuoteRequestCoverage]
    quotes: list[CarrierQuote]


@dataclass(frozen=True)
class ProcessingSummary:
    quote_request_id: uuid.UUID
    carriers: int
    attempted: int
    quoted: int
    duration_ms: int


def missing_required_fields(quote_request: QuoteRequest) -> list[str]:
    return [name for name in REQUIRED_FIELDS if not getattr(quote_request, name)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuoteOrchestrator:
    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        registry: CarrierRegistry,
        client: CarrierClient,
        dispatcher: QuoteDispatcher | None = None,
        max_concurrency: int = 20,
        estimated_completion: timedelta = timedelta(seconds=30),
    ) -> None:
        self._session_factory = session_factory
        self._registry = registry
        self._client = client
        self.dispatcher = dispatcher
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._estimated_completion = estimated_completion

    # ─── Draft editing ────────────────────────────
    async def create(
        self,
        *,
        session_id: str,
        insurance_type: str,
        request_type: str,
        **fields: Any,
    ) -> QuoteRequest:
        if insurance_type not in set(InsuranceType):
            raise ValidationError(f"Unknown insurance type: {insurance_type}")
        if request_type not in set(RequestType):
            raise ValidationError(f"Unknown request type: {request_type}")

        async with self._session_factory() as db, db.begin():
            quote_request = await quote_request_repository.create_quote_request(
                db,
                session_id=session_id,
                insurance_type=insurance_type,
                request_type=request_type,
                **fields,
            )

        logger.info(
            "Quote request created",
            quote_request_id=str(quote_request.id),
            session_id=session_id,
        )
        return quote_request

    async def update(self, quote_request_id: uuid.UUID, **fields: Any) -> QuoteRequest:
        async with self._session_factory() as db, db.begin():
            quote_request = await self._get_draft(db, quote_request_id)
            await quote_request_repository.apply_fields(db, quote_request, fields)
        return quote_request

    async def select_coverages(
        self,
        quote_request_id: uuid.UUID,
        coverage_types: Iterable[str],
        *,
        recommended: dict[str, str] | None = None,
    ) -> list[QuoteRequestCoverage]:
        """Replace the request's coverage selection wholesale."""
        unique_types = list(dict.fromkeys(coverage_types))
        async with self._session_factory() as db, db.begin():
            await self._get_draft(db, quote_request_id)
            return await quote_request_repository.replace_coverages(
                db, quote_request_id, unique_types, recommended=recommended
            )

    # ─── Submission ───────────────────────────────
    async def submit(self, quote_request_id: uuid.UUID) -> QuoteRequest:
        """
        draft → submitted, then hand off to the dispatcher.

        Returns as soon as the status is committed; carrier calls happen
        in background processing.
        """
        async with self._session_factory() as db, db.begin():
            quote_request = await self._get_or_404(db, quote_request_id)
            if quote_request.status != QuoteRequestStatus.DRAFT:
                raise AlreadySubmittedError(
                    "Quote request already submitted",
                    details={"status": quote_request.status},
                )

            missing = missing_required_fields(quote_request)
            if missing:
                raise ValidationError(
                    f"Missing required fields: {', '.join(missing)}",
                    details={"missing_fields": missing},
                )

            coverages = await quote_request_repository.list_coverages(
                db, quote_request_id, selected_only=True
            )
            if not coverages:
                raise NoCoveragesSelectedError("No coverages selected")

            now = _utcnow()
            won = await quote_request_repository.transition_status(
                db,
                quote_request_id,
                from_status=QuoteRequestStatus.DRAFT,
                to_status=QuoteRequestStatus.SUBMITTED,
                submitted_at=now,
                estimated_completion_time=now + self._estimated_completion,
            )
            if not won:
                raise AlreadySubmittedError("Quote request already submitted")
            await db.refresh(quote_request)

        logger.info(
            "Quote request submitted",
            quote_request_id=str(quote_request_id),
            coverages=[c.coverage_type for c in coverages],
        )

        if self.dispatcher is not None:
            try:
                self.dispatcher.dispatch(quote_request_id)
            except Exception:
                logger.exception(
                    "Could not dispatch quote processing",
                    quote_request_id=str(quote_request_id),
                )
                await self._revert_to_draft(quote_request_id, QuoteRequestStatus.SUBMITTED)
                raise

        return quote_request

    # ─── Background processing ────────────────────
    async def process(self, quote_request_id: uuid.UUID) -> ProcessingSummary | None:
        """
        Fan out to every eligible carrier and wait for all branches.

        Returns None when the request was not in `submitted` (already
        picked up elsewhere).  Raises StructuralProcessingError after
        reverting the request to draft if anything outside a single
        branch fails.
        """
        log = logger.bind(quote_request_id=str(quote_request_id))
        started = time.perf_counter()

        async with self._session_factory() as db, db.begin():
            moved = await quote_request_repository.transition_status(
                db,
                quote_request_id,
                from_status=QuoteRequestStatus.SUBMITTED,
                to_status=QuoteRequestStatus.PROCESSING,
            )
            if not moved:
                log.warning("Quote request not in submitted state, skipping")
                return None
            quote_request = await quote_request_repository.get_quote_request(db, quote_request_id)
            coverages = await quote_request_repository.list_coverages(
                db, quote_request_id, selected_only=True
            )

        selected = [c.coverage_type for c in coverages]
        log.info("Quote processing started", coverages=selected)

        try:
            carriers = await self._registry.find_eligible(quote_request.insurance_type, selected)
            branches = [
                (carrier, coverage_type)
                for carrier in carriers
                for coverage_type in selected
                if carrier.supports(coverage_type)
            ]
            log.info(
                "Requesting quotes",
                carriers=[c.code for c in carriers],
                calls=len(branches),
            )

            outcomes = await asyncio.gather(
                *(
                    self._run_branch(quote_request, carrier, coverage_type)
                    for carrier, coverage_type in branches
                )
            )

            async with self._session_factory() as db, db.begin():
                await quote_request_repository.transition_status(
                    db,
                    quote_request_id,
                    from_status=QuoteRequestStatus.PROCESSING,
                    to_status=QuoteRequestStatus.QUOTES_READY,
                    quotes_ready_at=_utcnow(),
                )
        except Exception as exc:
            log.exception("Quote processing failed, reverting to draft")
            await self._revert_to_draft(quote_request_id, QuoteRequestStatus.PROCESSING)
            raise StructuralProcessingError(
                f"Processing failed for quote request {quote_request_id}: {exc}",
                quote_request_id=str(quote_request_id),
            ) from exc

        summary = ProcessingSummary(
            quote_request_id=quote_request_id,
            carriers=len(carriers),
            attempted=len(branches),
            quoted=sum(1 for outcome in outcomes if outcome is not None),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        log.info(
            "Quotes ready",
            carriers=summary.carriers,
            attempted=summary.attempted,
            quoted=summary.quoted,
            duration_ms=summary.duration_ms,
        )
        return summary

    async def _run_branch(
        self,
        quote_request: QuoteRequest,
        carrier: Carrier,
        coverage_type: str,
    ) -> CarrierQuote | None:
        """One (carrier, coverage) call; never raises."""
        log = logger.bind(
            quote_request_id=str(quote_request.id),
            carrier_code=carrier.code,
            coverage_type=coverage_type,
        )
        try:
            quote = await self.request_coverage_quote(quote_request, carrier, coverage_type)
        except CarrierQuoteFailure as exc:
            log.warning("Carrier quote failed", error=exc.message, **exc.details)
            return None
        except Exception:
            log.exception("Carrier quote branch crashed")
            return None

        log.info("Carrier quote stored", status=quote.status, duration_ms=quote.response_time_ms)
        return quote

    async def request_coverage_quote(
        self,
        quote_request: QuoteRequest,
        carrier: Carrier,
        coverage_type: str,
    ) -> CarrierQuote:
        """Call one carrier for one coverage and persist the normalized answer."""
        payload = build_quote_payload(quote_request, coverage_type)

        async with self._semaphore:
            try:
                response = await self._client.request_quote(carrier, payload)
            except CarrierRequestError as exc:
                raise CarrierQuoteFailure(
                    exc.message,
                    carrier_code=carrier.code,
                    coverage_type=coverage_type,
                    details={"http_status": exc.http_status, "timed_out": exc.timed_out},
                ) from exc

        values = normalize_quote(
            response.data,
            carrier_code=carrier.code,
            coverage_type=coverage_type,
            insurance_type=quote_request.insurance_type,
            response_time_ms=response.elapsed_ms,
        )

        async with self._session_factory() as db, db.begin():
            quote = await carrier_quote_repository.add_carrier_quote(
                db,
                quote_request_id=quote_request.id,
                carrier_id=carrier.id,
                **values,
            )
        return quote

    # ─── Reads ────────────────────────────────────
    async def get_with_quotes(self, quote_request_id: uuid.UUID) -> QuoteRequestView:
        async with self._session_factory() as db:
            quote_request = await self._get_or_404(db, quote_request_id)
            coverages = await quote_request_repository.list_coverages(db, quote_request_id)
            quotes = await carrier_quote_repository.list_for_request(db, quote_request_id)
        return QuoteRequestView(quote_request=quote_request, coverages=coverages, quotes=quotes)

    async def get_by_session(self, session_id: str) -> QuoteRequest:
        async with self._session_factory() as db:
            quote_request = await quote_request_repository.get_latest_for_session(db, session_id)
        if quote_request is None:
            raise NotFoundError("Quote request not found", details={"session_id": session_id})
        return quote_request

    # ─── Helpers ──────────────────────────────────
    async def _get_or_404(self, db: AsyncSession, quote_request_id: uuid.UUID) -> QuoteRequest:
        quote_request = await quote_request_repository.get_quote_request(db, quote_request_id)
        if quote_request is None:
            raise NotFoundError(
                "Quote request not found",
                details={"quote_request_id": str(quote_request_id)},
            )
        return quote_request

    async def _get_draft(self, db: AsyncSession, quote_request_id: uuid.UUID) -> QuoteRequest:
        quote_request = await self._get_or_404(db, quote_request_id)
        if quote_request.status != QuoteRequestStatus.DRAFT:
            raise ConflictError(
                "Quote request can only be changed while in draft",
                details={"status": quote_request.status},
            )
        return quote_request

    async def _revert_to_draft(
        self,
        quote_request_id: uuid.UUID,
        from_status: QuoteRequestStatus,
    ) -> None:
        async with self._session_factory() as db, db.begin():
            await quote_request_repository.transition_status(
                db,
                quote_request_id,
                from_status=from_status,
                to_status=QuoteRequestStatus.DRAFT,
            )
