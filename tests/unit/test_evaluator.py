"""Badge evaluation orchestrator tests."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from wayfarer.db.models import Badge, User, UserBadge
from wayfarer.gamification import evaluator as evaluator_module
from wayfarer.gamification.badge_service import award_badge, get_badge_by_slug
from wayfarer.gamification.criteria import BADGE_CHECKERS, BadgeSlug
from wayfarer.gamification.evaluator import (
    BadgeEvaluator,
    evaluate_user_achievements,
    schedule_badge_evaluation,
)


async def _earned_slugs(db, user_id) -> set[str]:
    result = await db.execute(
        select(Badge.slug).join(UserBadge, UserBadge.badge_id == Badge.id).where(UserBadge.user_id == user_id)
    )
    return set(result.scalars().all())


async def _points(db, user_id) -> int:
    return (await db.execute(select(User.total_points).where(User.id == user_id))).scalar_one()


class TestEvaluate:

    @pytest.mark.asyncio
    async def test_first_completed_trip_awards_first_trip(self, seeded_db, user, make_trip):
        await make_trip(user, status="COMPLETED", country_code="FR")

        awarded = await BadgeEvaluator(seeded_db).evaluate(user.id)

        assert awarded == ["FIRST_TRIP"]
        assert await _earned_slugs(seeded_db, user.id) == {"FIRST_TRIP"}
        assert await _points(seeded_db, user.id) == 100

    @pytest.mark.asyncio
    async def test_five_trips_in_three_countries(self, seeded_db, user, make_trip):
        for code in ("FR", "FR", "JP", "PE", "JP"):
            await make_trip(user, status="COMPLETED", country_code=code)

        awarded = await BadgeEvaluator(seeded_db).evaluate(user.id)

        assert awarded == ["FIRST_TRIP", "FREQUENT_TRIP"]
        assert "WORLD_WANDERER" not in await _earned_slugs(seeded_db, user.id)
        assert await _points(seeded_db, user.id) == 300

    @pytest.mark.asyncio
    async def test_nothing_to_award(self, seeded_db, user, make_trip):
        await make_trip(user, status="PLANNING")

        assert await BadgeEvaluator(seeded_db).evaluate(user.id) == []
        assert await _points(seeded_db, user.id) == 0

    @pytest.mark.asyncio
    async def test_multiple_badges_in_sort_order(self, seeded_db, user, make_trip):
        await make_trip(user, status="COMPLETED", is_public=True, budget=1000, expenses=[200])

        awarded = await BadgeEvaluator(seeded_db).evaluate(user.id)

        assert awarded == ["FIRST_TRIP", "SOCIAL_STARTER", "BUDGET_TRAVELER"]
        assert await _points(seeded_db, user.id) == 300

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, seeded_db, user, make_trip):
        await make_trip(user, status="COMPLETED")

        await BadgeEvaluator(seeded_db).evaluate(user.id)
        assert await BadgeEvaluator(seeded_db).evaluate(user.id) == []

        count = (
            await seeded_db.execute(select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user.id))
        ).scalar_one()
        assert count == 1
        assert await _points(seeded_db, user.id) == 100

    @pytest.mark.asyncio
    async def test_all_earned_short_circuits(self, seeded_db, user, monkeypatch):
        badges = (await seeded_db.execute(select(Badge))).scalars().all()
        for badge in badges:
            seeded_db.add(UserBadge(user_id=user.id, badge_id=badge.id, earned_at=badge.created_at))
        await seeded_db.commit()

        checker = AsyncMock()
        monkeypatch.setattr(evaluator_module, "check_badge_criteria", checker)

        assert await BadgeEvaluator(seeded_db).evaluate(user.id) == []
        checker.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_badge_not_awarded(self, seeded_db, user, make_trip):
        badge = await get_badge_by_slug(seeded_db, "FIRST_TRIP")
        badge.is_active = False
        await seeded_db.commit()
        await make_trip(user, status="COMPLETED")

        assert await BadgeEvaluator(seeded_db).evaluate(user.id) == []

    @pytest.mark.asyncio
    async def test_threshold_read_from_badge_row(self, seeded_db, user, make_trip):
        badge = await get_badge_by_slug(seeded_db, "FREQUENT_TRIP")
        badge.criteria = {"completed_trips": 2}
        await seeded_db.commit()
        await make_trip(user, status="COMPLETED")
        await make_trip(user, status="COMPLETED")

        awarded = await BadgeEvaluator(seeded_db).evaluate(user.id)
        assert "FREQUENT_TRIP" in awarded

    @pytest.mark.asyncio
    async def test_points_equal_sum_of_earned_badges(self, seeded_db, user, make_trip, make_entry):
        trip = await make_trip(user, status="COMPLETED", is_public=True, budget=500)
        for _ in range(5):
            await make_entry(trip)

        await BadgeEvaluator(seeded_db).evaluate(user.id)

        earned_points = (
            await seeded_db.execute(
                select(func.sum(Badge.points))
                .join(UserBadge, UserBadge.badge_id == Badge.id)
                .where(UserBadge.user_id == user.id)
            )
        ).scalar_one()
        assert await _points(seeded_db, user.id) == earned_points == 400


class TestFailureIsolation:

    @pytest.mark.asyncio
    async def test_stats_failure_awards_nothing(self, seeded_db, user, make_trip, monkeypatch):
        user_id = user.id
        await make_trip(user, status="COMPLETED")
        monkeypatch.setattr(evaluator_module, "fetch_user_stats", AsyncMock(side_effect=RuntimeError("db gone")))

        assert await BadgeEvaluator(seeded_db).evaluate(user_id) == []
        assert await _earned_slugs(seeded_db, user_id) == set()

    @pytest.mark.asyncio
    async def test_malformed_criteria_skips_only_that_badge(self, seeded_db, user, make_trip):
        badge = await get_badge_by_slug(seeded_db, "FIRST_TRIP")
        badge.criteria = {"completed_trips": "lots"}
        await seeded_db.commit()
        await make_trip(user, status="COMPLETED", is_public=True)

        awarded = await BadgeEvaluator(seeded_db).evaluate(user.id)
        assert awarded == ["SOCIAL_STARTER"]

    @pytest.mark.asyncio
    async def test_raising_predicate_skips_only_that_badge(self, seeded_db, user, make_trip, monkeypatch):
        def broken(_stats, _criteria):
            raise ZeroDivisionError

        monkeypatch.setitem(BADGE_CHECKERS, BadgeSlug.FIRST_TRIP, broken)
        await make_trip(user, status="COMPLETED", is_public=True)

        assert await BadgeEvaluator(seeded_db).evaluate(user.id) == ["SOCIAL_STARTER"]

    @pytest.mark.asyncio
    async def test_unknown_slug_skipped(self, seeded_db, user, make_trip):
        seeded_db.add(
            Badge(
                slug="MOON_WALKER",
                name="Moon Walker",
                description="Not yet supported.",
                category="TRAVEL_MILESTONES",
                rarity="LEGENDARY",
                points=9999,
                criteria={},
                sort_order=0,
            )
        )
        await seeded_db.commit()
        await make_trip(user, status="COMPLETED")

        assert await BadgeEvaluator(seeded_db).evaluate(user.id) == ["FIRST_TRIP"]

    @pytest.mark.asyncio
    async def test_award_failure_does_not_block_others(self, seeded_db, user, make_trip, monkeypatch):
        async def flaky_award(db, redis, user_id, badge):
            if badge.slug == "FIRST_TRIP":
                raise RuntimeError("write failed")
            return await award_badge(db, redis, user_id, badge)

        monkeypatch.setattr(evaluator_module, "award_badge", flaky_award)
        user_id = user.id
        await make_trip(user, status="COMPLETED", is_public=True)

        assert await BadgeEvaluator(seeded_db).evaluate(user_id) == ["SOCIAL_STARTER"]
        assert await _earned_slugs(seeded_db, user_id) == {"SOCIAL_STARTER"}

    @pytest.mark.asyncio
    async def test_never_raises_when_session_cannot_open(self, user):
        def broken_factory():
            raise RuntimeError("pool exhausted")

        assert await evaluate_user_achievements(user.id, session_factory=broken_factory) == []


class TestConcurrentEvaluation:

    @pytest.mark.asyncio
    async def test_parallel_evaluations_award_once(self, seeded_db, session_factory, user, make_trip):
        await make_trip(user, status="COMPLETED")

        first, second = await asyncio.gather(
            evaluate_user_achievements(user.id, session_factory),
            evaluate_user_achievements(user.id, session_factory),
        )

        assert sorted(first + second) == ["FIRST_TRIP"]
        async with session_factory() as db:
            count = (
                await db.execute(select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user.id))
            ).scalar_one()
            assert count == 1
            assert await _points(db, user.id) == 100


class TestScheduleBadgeEvaluation:

    @pytest.mark.asyncio
    async def test_runs_detached_in_own_session(self, seeded_db, session_factory, user, make_trip):
        await make_trip(user, status="COMPLETED")

        task = schedule_badge_evaluation(user.id, session_factory)
        assert task in evaluator_module._background_tasks

        assert await task == ["FIRST_TRIP"]
        await asyncio.sleep(0)
        assert task not in evaluator_module._background_tasks

    @pytest.mark.asyncio
    async def test_uses_default_session_factory(self, seeded_db, user, make_trip):
        await make_trip(user, status="COMPLETED")

        assert await schedule_badge_evaluation(user.id) == ["FIRST_TRIP"]
