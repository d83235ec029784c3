"""Badge worker job tests: single-user job and nightly sweep."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from wayfarer.db.models import UserBadge
from wayfarer.gamification.worker import (
    WorkerSettings,
    enqueue_badge_evaluation,
    evaluate_all_users,
    evaluate_user_badges,
)


async def _badge_count(db, user_id) -> int:
    return (
        await db.execute(select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user_id))
    ).scalar_one()


class TestEvaluateUserBadgesJob:

    @pytest.mark.asyncio
    async def test_job_evaluates_user(self, seeded_db, session_factory, user, make_trip):
        await make_trip(user, status="COMPLETED")

        awarded = await evaluate_user_badges({"session_factory": session_factory}, str(user.id))
        assert awarded == ["FIRST_TRIP"]

    @pytest.mark.asyncio
    async def test_job_completes_when_stats_fail(self, seeded_db, session_factory, user, make_trip, monkeypatch):
        await make_trip(user, status="COMPLETED")
        monkeypatch.setattr(
            "wayfarer.gamification.evaluator.fetch_user_stats",
            AsyncMock(side_effect=RuntimeError("db gone")),
        )

        awarded = await evaluate_user_badges({"session_factory": session_factory}, str(user.id))
        assert awarded == []
        assert await _badge_count(seeded_db, user.id) == 0

    @pytest.mark.asyncio
    async def test_job_requires_user_id(self, session_factory):
        with pytest.raises(ValueError, match="user_id"):
            await evaluate_user_badges({"session_factory": session_factory}, "")

    @pytest.mark.asyncio
    async def test_enqueue(self, user):
        pool = AsyncMock()
        await enqueue_badge_evaluation(pool, user.id)
        pool.enqueue_job.assert_awaited_once_with("evaluate_user_badges", str(user.id))


class TestNightlySweep:

    @pytest.mark.asyncio
    async def test_sweeps_active_users_in_batches(self, seeded_db, session_factory, make_user, make_trip):
        traveler = await make_user()
        idle = await make_user()
        gone = await make_user(deleted=True)
        await make_trip(traveler, status="COMPLETED")
        await make_trip(gone, status="COMPLETED")

        processed = await evaluate_all_users({"session_factory": session_factory}, batch_size=1, delay_seconds=0)

        assert processed == 2
        assert await _badge_count(seeded_db, traveler.id) == 1
        assert await _badge_count(seeded_db, idle.id) == 0
        assert await _badge_count(seeded_db, gone.id) == 0

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_stop_sweep(self, seeded_db, session_factory, make_user, monkeypatch):
        await make_user()
        await make_user()
        await make_user()
        calls = AsyncMock(side_effect=[RuntimeError("boom"), [], []])
        monkeypatch.setattr("wayfarer.gamification.worker.evaluate_user_achievements", calls)

        processed = await evaluate_all_users({"session_factory": session_factory}, batch_size=1, delay_seconds=0)

        assert processed == 2
        assert calls.await_count == 3

    @pytest.mark.asyncio
    async def test_no_users(self, seeded_db, session_factory):
        assert await evaluate_all_users({"session_factory": session_factory}, delay_seconds=0) == 0


class TestWorkerSettings:

    def test_registers_jobs_and_cron(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {"evaluate_user_badges", "evaluate_all_users"}
        assert len(WorkerSettings.cron_jobs) == 1
