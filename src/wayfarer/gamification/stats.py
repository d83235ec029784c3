"""User statistics snapshot used to evaluate badge criteria."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import (
    Expense,
    JournalEntry,
    Location,
    Photo,
    PhotoComment,
    PhotoLike,
    Trip,
)

TRIP_COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class UserStats:
    """Lifetime activity counters for one user, computed on demand."""

    completed_trips: int = 0
    distinct_countries: int = 0
    public_trips: int = 0
    total_photo_likes: int = 0
    total_photo_comments: int = 0
    budget_trips: int = 0
    total_savings: Decimal = field(default_factory=lambda: Decimal(0))
    journal_entries: int = 0
    photos: int = 0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


async def fetch_user_stats(db: AsyncSession, user_id: uuid.UUID) -> UserStats:
    """Compute a fresh stats snapshot for a user.

    Counters come from a single SELECT of scalar subqueries; the budget
    rollup needs per-trip expense sums and runs as a second query.
    Any query failure propagates to the caller.
    """
    owned_trip = (Trip.owner_id == user_id, Trip.deleted.is_(False))
    completed = Trip.trip_status == TRIP_COMPLETED
    own_journal = (JournalEntry.user_id == user_id, JournalEntry.deleted.is_(False))

    counters = select(
        (
            select(func.count()).select_from(Trip).where(*owned_trip, completed)
        ).scalar_subquery().label("completed_trips"),
        (
            select(func.count()).select_from(Trip).where(*owned_trip, Trip.is_public.is_(True))
        ).scalar_subquery().label("public_trips"),
        (
            select(func.count(JournalEntry.id))
            .join(Trip, JournalEntry.trip_id == Trip.id)
            .where(*owned_trip, JournalEntry.deleted.is_(False))
        ).scalar_subquery().label("journal_entries"),
        (
            select(func.count(PhotoLike.id))
            .join(Photo, PhotoLike.photo_id == Photo.id)
            .join(JournalEntry, Photo.journal_entry_id == JournalEntry.id)
            .where(*own_journal)
        ).scalar_subquery().label("total_photo_likes"),
        (
            select(func.count(PhotoComment.id))
            .join(Photo, PhotoComment.photo_id == Photo.id)
            .join(JournalEntry, Photo.journal_entry_id == JournalEntry.id)
            .where(*own_journal)
        ).scalar_subquery().label("total_photo_comments"),
        (
            select(func.count(distinct(Location.country_code)))
            .select_from(Trip)
            .join(Location, Trip.location_id == Location.id)
            .where(*owned_trip, completed, Location.country_code.is_not(None))
        ).scalar_subquery().label("distinct_countries"),
        (
            select(func.count(Photo.id))
            .join(JournalEntry, Photo.journal_entry_id == JournalEntry.id)
            .join(Trip, JournalEntry.trip_id == Trip.id)
            .where(*owned_trip, JournalEntry.deleted.is_(False))
        ).scalar_subquery().label("photos"),
    )
    row = (await db.execute(counters)).one()

    budget_rows = await db.execute(
        select(
            Trip.estimated_budget,
            func.coalesce(func.sum(Expense.amount), 0).label("total_expenses"),
        )
        .outerjoin(Expense, Expense.trip_id == Trip.id)
        .where(*owned_trip, completed, Trip.estimated_budget > 0)
        .group_by(Trip.id, Trip.estimated_budget)
    )

    budget_trips = 0
    total_savings = Decimal(0)
    for estimated_budget, total_expenses in budget_rows:
        budget = Decimal(str(estimated_budget))
        spent = Decimal(str(total_expenses))
        if budget >= spent:
            budget_trips += 1
            total_savings += budget - spent

    return UserStats(
        completed_trips=row.completed_trips,
        distinct_countries=row.distinct_countries,
        public_trips=row.public_trips,
        total_photo_likes=row.total_photo_likes,
        total_photo_comments=row.total_photo_comments,
        budget_trips=budget_trips,
        total_savings=total_savings,
        journal_entries=row.journal_entries,
        photos=row.photos,
    )
