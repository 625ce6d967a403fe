"""Data access for carrier integration profiles."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clarence.core.constants import CarrierHealthStatus
from clarence.db.models.carrier import Carrier


async def get_carrier(db: AsyncSession, carrier_id: uuid.UUID) -> Carrier | None:
    return await db.get(Carrier, carrier_id)


async def list_active_carriers(db: AsyncSession) -> list[Carrier]:
    """Active carriers ordered by display name."""
    stmt = select(Carrier).where(Carrier.is_active.is_(True)).order_by(Carrier.name)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_carriers(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Carrier))
    return int(result.scalar_one())


async def create_carrier(db: AsyncSession, **fields: object) -> Carrier:
    carrier = Carrier(**fields)
    db.add(carrier)
    await db.flush()
    return carrier


async def record_health(
    db: AsyncSession,
    carrier_id: uuid.UUID,
    status: CarrierHealthStatus,
    checked_at: datetime,
) -> Carrier | None:
    carrier = await get_carrier(db, carrier_id)
    if carrier is None:
        return None
    carrier.health_status = status.value
    carrier.last_health_check = checked_at
    await db.flush()
    return carrier
