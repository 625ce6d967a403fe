"""Data access for quote requests and their coverage selections."""

from __future__ import annotations

import uuid
from typing import Any, Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clarence.core.constants import QuoteRequestStatus
from clarence.db.models.quote_request import QuoteRequest
from clarence.db.models.quote_request_coverage import QuoteRequestCoverage

# Columns callers may set through create/update; everything else is
# lifecycle-managed.
EDITABLE_FIELDS = frozenset(
    column.name
    for column in QuoteRequest.__table__.columns
    if column.name not in {
        "id",
        "session_id",
        "status",
        "submitted_at",
        "quotes_ready_at",
        "estimated_completion_time",
        "created_at",
        "updated_at",
    }
)


async def create_quote_request(
    db: AsyncSession,
    *,
    session_id: str,
    insurance_type: str,
    request_type: str,
    **fields: Any,
) -> QuoteRequest:
    """Insert a new request in draft."""
    quote_request = QuoteRequest(
        session_id=session_id,
        insurance_type=insurance_type,
        request_type=request_type,
        status=QuoteRequestStatus.DRAFT.value,
        **{k: v for k, v in fields.items() if k in EDITABLE_FIELDS},
    )
    db.add(quote_request)
    await db.flush()
    return quote_request


async def get_quote_request(db: AsyncSession, quote_request_id: uuid.UUID) -> QuoteRequest | None:
    return await db.get(QuoteRequest, quote_request_id)


async def get_latest_for_session(db: AsyncSession, session_id: str) -> QuoteRequest | None:
    """Most recently created request for a browser session."""
    stmt = (
        select(QuoteRequest)
        .where(QuoteRequest.session_id == session_id)
        .order_by(QuoteRequest.created_at.desc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def apply_fields(
    db: AsyncSession,
    quote_request: QuoteRequest,
    fields: dict[str, Any],
) -> QuoteRequest:
    """Copy editable fields onto the request; unknown names are ignored."""
    for key, value in fields.items():
        if key in EDITABLE_FIELDS:
            setattr(quote_request, key, value)
    await db.flush()
    return quote_request


async def transition_status(
    db: AsyncSession,
    quote_request_id: uuid.UUID,
    *,
    from_status: QuoteRequestStatus,
    to_status: QuoteRequestStatus,
    **values: Any,
) -> bool:
    """
    Compare-and-set the status column.

    Returns False when the row was not in `from_status`, so two racing
    writers cannot both win the same transition.
    """
    stmt = (
        update(QuoteRequest)
        .where(
            QuoteRequest.id == quote_request_id,
            QuoteRequest.status == from_status.value,
        )
        .values(status=to_status.value, **values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount == 1


# ─── Coverages ────────────────────────────────
async def replace_coverages(
    db: AsyncSession,
    quote_request_id: uuid.UUID,
    coverage_types: Iterable[str],
    *,
    recommended: dict[str, str] | None = None,
) -> list[QuoteRequestCoverage]:
    """Delete every coverage row for the request, then insert the new selection."""
    recommended = recommended or {}
    await db.execute(
        delete(QuoteRequestCoverage).where(
            QuoteRequestCoverage.quote_request_id == quote_request_id
        )
    )

    rows = [
        QuoteRequestCoverage(
            quote_request_id=quote_request_id,
            coverage_type=coverage_type,
            is_selected=True,
            is_recommended=coverage_type in recommended,
            recommendation_reason=recommended.get(coverage_type),
        )
        for coverage_type in coverage_types
    ]
    db.add_all(rows)
    await db.flush()
    return rows


async def list_coverages(
    db: AsyncSession,
    quote_request_id: uuid.UUID,
    *,
    selected_only: bool = False,
) -> list[QuoteRequestCoverage]:
    stmt = (
        select(QuoteRequestCoverage)
        .where(QuoteRequestCoverage.quote_request_id == quote_request_id)
        .order_by(QuoteRequestCoverage.created_at, QuoteRequestCoverage.coverage_type)
    )
    if selected_only:
        stmt = stmt.where(QuoteRequestCoverage.is_selected.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())
