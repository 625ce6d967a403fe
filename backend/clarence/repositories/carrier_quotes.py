"""Data access for normalized carrier quotes (append-only)."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clarence.db.models.carrier_quote import CarrierQuote


async def add_carrier_quote(db: AsyncSession, **fields: object) -> CarrierQuote:
    quote = CarrierQuote(**fields)
    db.add(quote)
    await db.flush()
    return quote


async def get_carrier_quote(db: AsyncSession, carrier_quote_id: uuid.UUID) -> CarrierQuote | None:
    """Fetch one quote with its carrier loaded."""
    return await db.get(CarrierQuote, carrier_quote_id)


async def list_for_request(db: AsyncSession, quote_request_id: uuid.UUID) -> list[CarrierQuote]:
    """All quotes for a request, cheapest annual premium first."""
    stmt = (
        select(CarrierQuote)
        .where(CarrierQuote.quote_request_id == quote_request_id)
        .order_by(CarrierQuote.annual_premium.asc().nulls_last(), CarrierQuote.created_at)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
