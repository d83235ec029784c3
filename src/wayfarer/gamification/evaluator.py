"""Badge evaluation orchestrator.

Entry point after any user action that could newly satisfy a badge
(trip completed, trip made public, journal entry or photo added).
Evaluation is fire-and-forget: it never raises to the triggering
operation. Every failure is logged and swallowed here.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wayfarer.database import get_session_factory
from wayfarer.db.models import Badge, UserBadge
from wayfarer.gamification.badge_service import award_badge
from wayfarer.gamification.criteria import check_badge_criteria
from wayfarer.gamification.stats import UserStats, fetch_user_stats

logger = logging.getLogger(__name__)

# Strong references to in-flight evaluation tasks so they are not garbage collected
_background_tasks: set[asyncio.Task[list[str]]] = set()


@dataclass(frozen=True)
class CandidateBadge:
    """Plain snapshot of a badge row, safe to use across commits and rollbacks."""

    id: uuid.UUID
    slug: str
    name: str
    points: int
    criteria: Any = field(default_factory=dict)


class BadgeEvaluator:
    """Evaluates a user's unearned badges against a fresh stats snapshot."""

    def __init__(self, db: AsyncSession, redis: Any = None) -> None:  # noqa: ANN401
        self.db = db
        self.redis = redis

    async def evaluate(self, user_id: uuid.UUID) -> list[str]:
        """Award every newly qualifying badge.

        Returns list of badge slugs awarded (may be empty). Never raises.
        """
        try:
            return await self._evaluate(user_id)
        except Exception:
            logger.exception("Badge evaluation failed for user %s", user_id)
            return []

    async def _evaluate(self, user_id: uuid.UUID) -> list[str]:
        logger.info("Starting badge evaluation for user %s", user_id)

        try:
            stats = await fetch_user_stats(self.db, user_id)
        except Exception:
            logger.exception("Could not aggregate stats for user %s, evaluation aborted", user_id)
            await self.db.rollback()
            return []
        logger.debug("User stats for %s: %s", user_id, stats.as_dict())

        candidates = await self._load_candidates(user_id)
        if not candidates:
            logger.info("No unearned badges for user %s", user_id)
            return []

        qualifying = [b for b in candidates if self._qualifies(user_id, b, stats)]
        if not qualifying:
            await self.db.commit()
            return []

        logger.info("User %s qualifies for %d new badge(s)", user_id, len(qualifying))

        # Each award is its own transaction; one failure does not block the rest
        awarded: list[str] = []
        for badge in qualifying:
            try:
                if await award_badge(self.db, self.redis, user_id, badge):
                    awarded.append(badge.slug)
            except Exception:
                logger.exception("Failed to award badge %s to user %s", badge.slug, user_id)

        if awarded:
            logger.info("Awarded badges to user %s: %s", user_id, ", ".join(awarded))
        return awarded

    async def _load_candidates(self, user_id: uuid.UUID) -> list[CandidateBadge]:
        """Active badges the user has not earned yet."""
        earned = select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
        result = await self.db.execute(
            select(Badge.id, Badge.slug, Badge.name, Badge.points, Badge.criteria)
            .where(Badge.is_active.is_(True), Badge.id.not_in(earned))
            .order_by(Badge.sort_order)
        )
        return [
            CandidateBadge(id=row.id, slug=row.slug, name=row.name, points=row.points, criteria=row.criteria)
            for row in result
        ]

    @staticmethod
    def _qualifies(user_id: uuid.UUID, badge: CandidateBadge, stats: UserStats) -> bool:
        try:
            result = check_badge_criteria(badge.slug, stats, badge.criteria)
        except Exception:
            logger.exception("Error checking badge %s for user %s", badge.slug, user_id)
            return False
        if result is None:
            logger.debug("No criteria checker for badge %s, skipping", badge.slug)
            return False
        return result


async def evaluate_user_achievements(
    user_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    redis: Any = None,  # noqa: ANN401
) -> list[str]:
    """Run a badge evaluation in its own session. Never raises."""
    try:
        factory = session_factory or get_session_factory()
        async with factory() as db:
            return await BadgeEvaluator(db, redis).evaluate(user_id)
    except Exception:
        logger.exception("Badge evaluation could not start for user %s", user_id)
        return []


def schedule_badge_evaluation(
    user_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    redis: Any = None,  # noqa: ANN401
) -> asyncio.Task[list[str]]:
    """Launch a detached badge evaluation; callers do not await the result."""
    task = asyncio.create_task(evaluate_user_achievements(user_id, session_factory, redis))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
