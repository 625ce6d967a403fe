"""
User repository containing all data-access operations for the users table.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clarence.core.constants import AccountStatus
from clarence.db.models.user import User


async def create_user(
    db: AsyncSession,
    *,
    phone: str,
    password_hash: str,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """Create a new active user.  The caller hashes the password."""
    user = User(
        phone=phone.strip(),
        password_hash=password_hash,
        email=email.lower().strip() if email else None,
        first_name=first_name.strip() if first_name else None,
        last_name=last_name.strip() if last_name else None,
        account_status=AccountStatus.ACTIVE.value,
    )
    db.add(user)
    await db.flush()
    return user


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch a user by primary key."""
    return await db.get(User, user_id)


async def get_active_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch an active user by primary key."""
    stmt = select(User).where(
        User.id == user_id,
        User.account_status == AccountStatus.ACTIVE.value,
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_phone(db: AsyncSession, phone: str) -> User | None:
    """Fetch a user by phone number."""
    stmt = select(User).where(User.phone == phone.strip())
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def update_password_hash(
    db: AsyncSession,
    user_id: uuid.UUID,
    password_hash: str,
) -> bool:
    """Replace a user's password hash. Returns True when user exists."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        return False
    user.password_hash = password_hash
    await db.flush()
    return True


async def record_login(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Stamp last_login_at on successful authentication."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        return
    user.last_login_at = datetime.now(timezone.utc)
    await db.flush()
