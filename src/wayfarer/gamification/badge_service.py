"""Badge award transaction and catalog/user badge reads."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.database import dialect_insert
from wayfarer.db.models import Badge, User, UserBadge
from wayfarer.notifications.service import notify_badge_earned

if TYPE_CHECKING:
    from wayfarer.gamification.evaluator import CandidateBadge

logger = logging.getLogger(__name__)


async def get_badge_by_slug(db: AsyncSession, slug: str) -> Badge | None:
    """Fetch a badge by slug."""
    result = await db.execute(select(Badge).where(Badge.slug == slug))
    return result.scalar_one_or_none()


async def has_badge(db: AsyncSession, user_id: uuid.UUID, badge_id: uuid.UUID) -> bool:
    """Check if user already has a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def award_badge(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: uuid.UUID,
    badge: CandidateBadge,
) -> bool:
    """Award a badge to a user.

    Returns True if a new UserBadge row was created, False if the user
    already had it (including when a concurrent evaluation won the race).

    Within one transaction:
    1. Re-check for an existing user_badges row
    2. INSERT ... ON CONFLICT DO NOTHING on (user_id, badge_id)
    3. If a row was inserted, increment users.total_points by badge.points
    Both writes commit together or neither does. The notification is sent
    after commit and cannot undo the award.
    """
    try:
        if await has_badge(db, user_id, badge.id):
            logger.info("User %s already has badge %s, skipping award", user_id, badge.slug)
            await db.commit()
            return False

        stmt = (
            dialect_insert(db, UserBadge)
            .values(
                id=uuid.uuid4(),
                user_id=user_id,
                badge_id=badge.id,
                earned_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:
            # Race condition: badge awarded by a concurrent evaluation
            logger.info("Badge %s already awarded to user %s concurrently", badge.slug, user_id)
            await db.commit()
            return False

        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(total_points=User.total_points + badge.points)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Awarded badge %s (+%d points) to user %s", badge.slug, badge.points, user_id)

    try:
        await notify_badge_earned(db, redis, user_id, badge)
    except Exception:
        logger.warning("Badge notification failed for user %s", user_id, exc_info=True)

    return True


async def get_all_badges(db: AsyncSession) -> list[Badge]:
    """All active badges, sorted for display."""
    result = await db.execute(
        select(Badge)
        .where(Badge.is_active.is_(True))
        .order_by(Badge.category, Badge.sort_order, Badge.points.desc())
    )
    return list(result.scalars().all())


async def get_badges_by_category(db: AsyncSession, category: str) -> list[Badge]:
    """Active badges of one category."""
    result = await db.execute(
        select(Badge)
        .where(Badge.category == category, Badge.is_active.is_(True))
        .order_by(Badge.sort_order, Badge.points.desc())
    )
    return list(result.scalars().all())


async def get_user_earned_badges(db: AsyncSession, user_id: uuid.UUID) -> list[UserBadge]:
    """Badges a user has earned, newest first, with badge details loaded."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc())
    )
    return list(result.scalars().unique().all())


async def get_user_badge_stats(db: AsyncSession, user_id: uuid.UUID) -> dict[str, Any] | None:
    """Badge totals for a user. Returns None if the user does not exist."""
    total_points = (
        await db.execute(select(User.total_points).where(User.id == user_id))
    ).scalar_one_or_none()
    if total_points is None:
        return None

    rows = await db.execute(
        select(Badge.category, Badge.rarity)
        .join(UserBadge, UserBadge.badge_id == Badge.id)
        .where(UserBadge.user_id == user_id)
    )
    pairs = rows.all()

    return {
        "total_badges": len(pairs),
        "total_points": total_points,
        "category_stats": dict(Counter(category for category, _ in pairs)),
        "rarity_stats": dict(Counter(rarity for _, rarity in pairs)),
    }
