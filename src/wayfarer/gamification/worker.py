"""Badge evaluation arq worker.

Runs queued per-user evaluations and a nightly sweep over every user as
a catch-all for triggers that were missed.

Usage: arq wayfarer.gamification.worker.WorkerSettings
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from arq import cron
from arq.connections import ArqRedis, RedisSettings
from sqlalchemy import select

from wayfarer.config import get_settings
from wayfarer.database import close_db, get_session_factory, init_db
from wayfarer.db.models import User
from wayfarer.gamification.evaluator import evaluate_user_achievements
from wayfarer.middleware.logging import setup_logging

logger = logging.getLogger(__name__)


async def badge_worker_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize the DB connection on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    ctx["session_factory"] = get_session_factory()
    logger.info("Badge worker started")


async def badge_worker_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_db()
    logger.info("Badge worker shut down")


async def enqueue_badge_evaluation(pool: ArqRedis, user_id: uuid.UUID) -> None:
    """Queue a badge evaluation for one user."""
    await pool.enqueue_job("evaluate_user_badges", str(user_id))


async def evaluate_user_badges(ctx: dict, user_id: str) -> list[str]:  # type: ignore[type-arg]
    """Job: evaluate badges for a single user."""
    if not user_id:
        msg = "Job data is missing user_id"
        raise ValueError(msg)
    return await evaluate_user_achievements(
        uuid.UUID(user_id),
        session_factory=ctx["session_factory"],
        redis=ctx.get("redis"),
    )


async def evaluate_all_users(
    ctx: dict,  # type: ignore[type-arg]
    batch_size: int | None = None,
    delay_seconds: float | None = None,
) -> int:
    """Scheduled task: evaluate every non-deleted user in batches.

    Users in a batch are evaluated concurrently, each in its own session.
    A failing batch is logged and the sweep moves on. Returns the number
    of users processed.
    """
    settings = get_settings()
    batch_size = batch_size or settings.badge_batch_size
    delay_seconds = settings.badge_batch_delay_seconds if delay_seconds is None else delay_seconds
    session_factory = ctx["session_factory"]
    redis: Any = ctx.get("redis")

    async with session_factory() as db:
        result = await db.execute(
            select(User.id)
            .where(User.deleted.is_(False))
            .order_by(User.created_at.asc(), User.id)
        )
        user_ids = list(result.scalars().all())

    logger.info("Nightly badge sweep: %d users in batches of %d", len(user_ids), batch_size)
    processed = 0

    for start in range(0, len(user_ids), batch_size):
        batch = user_ids[start:start + batch_size]
        batch_number = start // batch_size + 1
        try:
            await asyncio.gather(
                *(evaluate_user_achievements(uid, session_factory, redis) for uid in batch)
            )
            processed += len(batch)
            logger.info("Batch %d done (%d/%d users)", batch_number, processed, len(user_ids))
        except Exception:
            logger.exception("Error processing badge batch %d", batch_number)

        if start + batch_size < len(user_ids) and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)

    logger.info("Nightly badge sweep completed")
    return processed


class WorkerSettings:
    """arq worker settings for badge evaluation."""

    functions = [evaluate_user_badges, evaluate_all_users]
    cron_jobs = [
        cron(evaluate_all_users, hour={get_settings().badge_sweep_hour}, minute={0}, unique=True),
    ]
    redis_settings = RedisSettings.from_dsn(get_settings().arq_redis_url)
    on_startup = badge_worker_startup
    on_shutdown = badge_worker_shutdown
    max_jobs = 10
