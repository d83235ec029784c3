"""Badge API endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.auth.dependencies import get_current_user, require_admin
from wayfarer.database import get_session
from wayfarer.db.models import User
from wayfarer.gamification.badge_service import (
    get_all_badges,
    get_badges_by_category,
    get_user_badge_stats,
    get_user_earned_badges,
)
from wayfarer.gamification.criteria import BadgeCategory
from wayfarer.gamification.evaluator import BadgeEvaluator
from wayfarer.gamification.schemas import (
    BadgeListResponse,
    BadgeResponse,
    EarnedBadgeResponse,
    EvaluationResponse,
    UserBadgesResponse,
    UserBadgeStatsResponse,
)
from wayfarer.redis_client import get_redis_or_none

router = APIRouter(prefix="/api/v1", tags=["Badges"])


# ── Public endpoints ──


@router.get("/badges", response_model=BadgeListResponse)
async def list_badges(db: AsyncSession = Depends(get_session)):
    """Get all active badges."""
    badges = await get_all_badges(db)
    return BadgeListResponse(badges=[BadgeResponse.model_validate(b) for b in badges])


@router.get("/badges/category/{category}", response_model=BadgeListResponse)
async def list_badges_by_category(category: str, db: AsyncSession = Depends(get_session)):
    """Get active badges of one category (case-insensitive)."""
    try:
        normalized = BadgeCategory(category.upper())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid badge category") from None

    badges = await get_badges_by_category(db, normalized.value)
    return BadgeListResponse(badges=[BadgeResponse.model_validate(b) for b in badges])


# ── Authenticated endpoints ──


@router.get("/users/{user_id}/badges", response_model=UserBadgesResponse)
async def list_user_badges(
    user_id: uuid.UUID,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get badges earned by a user, newest first."""
    earned = await get_user_earned_badges(db, user_id)
    return UserBadgesResponse(
        user_id=user_id,
        earned=[
            EarnedBadgeResponse(badge=BadgeResponse.model_validate(ub.badge), earned_at=ub.earned_at)
            for ub in earned
        ],
        total_earned=len(earned),
    )


@router.get("/users/{user_id}/badges/stats", response_model=UserBadgeStatsResponse)
async def user_badge_stats(
    user_id: uuid.UUID,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get badge counts by category and rarity plus total points."""
    stats = await get_user_badge_stats(db, user_id)
    if stats is None:
        raise HTTPException(status_code=404, detail=f"User with ID {user_id} not found")
    return UserBadgeStatsResponse(**stats)


# ── Admin endpoints ──


@router.post("/users/{user_id}/badges/evaluate", response_model=EvaluationResponse)
async def evaluate_user_badges(
    user_id: uuid.UUID,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Manually re-run badge evaluation for a user."""
    awarded = await BadgeEvaluator(db, get_redis_or_none()).evaluate(user_id)
    return EvaluationResponse(user_id=user_id, awarded=awarded)
