"""Journal entries and photos: content that counts toward creator badges."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import JournalEntry, Photo
from wayfarer.gamification.evaluator import schedule_badge_evaluation
from wayfarer.trips.service import get_owned_trip


async def create_journal_entry(
    db: AsyncSession,
    trip_id: uuid.UUID,
    user_id: uuid.UUID,
    title: str,
    content: str | None = None,
    redis: Any = None,  # noqa: ANN401
) -> JournalEntry | None:
    """Add an entry to one of the user's trips. Returns None if the trip is not theirs."""
    trip = await get_owned_trip(db, trip_id, user_id)
    if trip is None:
        return None

    entry = JournalEntry(trip_id=trip.id, user_id=user_id, title=title, content=content)
    db.add(entry)
    await db.commit()

    schedule_badge_evaluation(user_id, redis=redis)
    return entry


async def add_photo(
    db: AsyncSession,
    journal_entry_id: uuid.UUID,
    user_id: uuid.UUID,
    url: str,
    caption: str | None = None,
    redis: Any = None,  # noqa: ANN401
) -> Photo | None:
    """Attach an uploaded photo to the user's journal entry."""
    result = await db.execute(
        select(JournalEntry).where(
            JournalEntry.id == journal_entry_id,
            JournalEntry.user_id == user_id,
            JournalEntry.deleted.is_(False),
        )
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        return None

    photo = Photo(journal_entry_id=entry.id, url=url, caption=caption)
    db.add(photo)
    await db.commit()

    schedule_badge_evaluation(user_id, redis=redis)
    return photo
