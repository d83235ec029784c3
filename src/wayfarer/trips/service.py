"""Trip lifecycle changes that can unlock badges."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import Trip
from wayfarer.gamification.evaluator import schedule_badge_evaluation
from wayfarer.gamification.stats import TRIP_COMPLETED

logger = logging.getLogger(__name__)


async def get_owned_trip(db: AsyncSession, trip_id: uuid.UUID, owner_id: uuid.UUID) -> Trip | None:
    """Fetch a non-deleted trip belonging to owner_id."""
    result = await db.execute(
        select(Trip).where(
            Trip.id == trip_id,
            Trip.owner_id == owner_id,
            Trip.deleted.is_(False),
        )
    )
    return result.scalar_one_or_none()


async def complete_trip(
    db: AsyncSession,
    trip_id: uuid.UUID,
    owner_id: uuid.UUID,
    redis: Any = None,  # noqa: ANN401
) -> Trip | None:
    """Mark a trip completed, then trigger badge evaluation in the background.

    Returns None if the trip does not exist for this owner.
    """
    trip = await get_owned_trip(db, trip_id, owner_id)
    if trip is None:
        return None

    if trip.trip_status != TRIP_COMPLETED:
        trip.trip_status = TRIP_COMPLETED
        trip.completed_at = datetime.now(timezone.utc)
        await db.commit()
        logger.info("Trip %s completed by user %s", trip_id, owner_id)

    schedule_badge_evaluation(owner_id, redis=redis)
    return trip


async def set_trip_visibility(
    db: AsyncSession,
    trip_id: uuid.UUID,
    owner_id: uuid.UUID,
    is_public: bool,
    redis: Any = None,  # noqa: ANN401
) -> Trip | None:
    """Share or unshare a trip. Making a trip public triggers badge evaluation."""
    trip = await get_owned_trip(db, trip_id, owner_id)
    if trip is None:
        return None

    trip.is_public = is_public
    await db.commit()

    if is_public:
        schedule_badge_evaluation(owner_id, redis=redis)
    return trip
