"""Data access for bound policies."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clarence.core.constants import PolicyStatus
from clarence.db.models.policy import Policy


async def add_policy(db: AsyncSession, **fields: object) -> Policy:
    policy = Policy(**fields)
    db.add(policy)
    await db.flush()
    return policy


async def get_policy(db: AsyncSession, policy_id: uuid.UUID) -> Policy | None:
    return await db.get(Policy, policy_id)


async def get_policy_by_number(db: AsyncSession, policy_number: str) -> Policy | None:
    result = await db.execute(select(Policy).where(Policy.policy_number == policy_number))
    return result.scalar_one_or_none()


async def get_policy_for_quote(db: AsyncSession, carrier_quote_id: uuid.UUID) -> Policy | None:
    result = await db.execute(select(Policy).where(Policy.carrier_quote_id == carrier_quote_id))
    return result.scalar_one_or_none()


async def list_policies(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    status: PolicyStatus | None = None,
    expiring_between: tuple[date, date] | None = None,
) -> list[Policy]:
    """
    List a user's policies.

    With `status` only rows in that status; with `expiring_between`
    (exclusive start, inclusive end) ordered by expiration date,
    otherwise newest first.
    """
    stmt = select(Policy).where(Policy.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Policy.status == status.value)
    if expiring_between is not None:
        start, end = expiring_between
        stmt = stmt.where(Policy.expiration_date > start, Policy.expiration_date <= end)
    if status is not None or expiring_between is not None:
        stmt = stmt.order_by(Policy.expiration_date.asc())
    else:
        stmt = stmt.order_by(Policy.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())
