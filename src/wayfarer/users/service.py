"""User lookups shared by authentication and badge endpoints."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import User


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch a non-deleted user by id."""
    result = await db.execute(
        select(User).where(User.id == user_id, User.deleted.is_(False))
    )
    return result.scalar_one_or_none()
