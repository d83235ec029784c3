"""Pydantic response models for badge endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class BadgeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    name: str
    description: str
    category: str
    rarity: str
    points: int
    criteria: Any = None
    icon_url: str | None = None


class BadgeListResponse(BaseModel):
    badges: list[BadgeResponse]


class EarnedBadgeResponse(BaseModel):
    badge: BadgeResponse
    earned_at: datetime


class UserBadgesResponse(BaseModel):
    user_id: uuid.UUID
    earned: list[EarnedBadgeResponse]
    total_earned: int


class UserBadgeStatsResponse(BaseModel):
    total_badges: int
    total_points: int
    category_stats: dict[str, int]
    rarity_stats: dict[str, int]


class EvaluationResponse(BaseModel):
    user_id: uuid.UUID
    awarded: list[str]
