"""Badge criteria rule table.

Maps each badge slug to a predicate over a user's stats snapshot and the
badge's criteria payload. Adding a badge means seeding a catalog row and
adding one entry to ``BADGE_CHECKERS``.

Criteria keys are ``UserStats`` field names; a missing key falls back to
the threshold hard-coded here. Every comparison is ``stat >= threshold``.
A threshold present in the payload is used as written: ``0`` or a
negative value makes the badge free for every user.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from wayfarer.gamification.stats import UserStats


class BadgeSlug(str, enum.Enum):
    FIRST_TRIP = "FIRST_TRIP"
    FREQUENT_TRIP = "FREQUENT_TRIP"
    WORLD_WANDERER = "WORLD_WANDERER"
    LEGENDARY_NOMAD = "LEGENDARY_NOMAD"
    SOCIAL_STARTER = "SOCIAL_STARTER"
    SOCIAL_INFLUENCER = "SOCIAL_INFLUENCER"
    TRAVEL_AMBASSADOR = "TRAVEL_AMBASSADOR"
    ENGAGEMENT_STAR = "ENGAGEMENT_STAR"
    BUDGET_TRAVELER = "BUDGET_TRAVELER"
    FINANCIAL_NINJA = "FINANCIAL_NINJA"
    SAVINGS_MASTERMIND = "SAVINGS_MASTERMIND"
    FIRST_JOURNAL_ENTRY = "FIRST_JOURNAL_ENTRY"
    STORYTELLER = "STORYTELLER"
    PHOTOGRAPHER = "PHOTOGRAPHER"
    CREATOR_LEGEND = "CREATOR_LEGEND"
    VISUAL_STORYTELLER = "VISUAL_STORYTELLER"


class BadgeCategory(str, enum.Enum):
    TRAVEL_MILESTONES = "TRAVEL_MILESTONES"
    SOCIAL_ENGAGEMENT = "SOCIAL_ENGAGEMENT"
    FINANCIAL_PLANNING = "FINANCIAL_PLANNING"
    CONTENT_CREATION = "CONTENT_CREATION"


class BadgeRarity(str, enum.Enum):
    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


# Predicate signature: (stats, criteria) -> qualifies
BadgeChecker = Callable[[UserStats, Mapping[str, Any]], bool]


def _threshold(criteria: Mapping[str, Any], key: str, default: int) -> Decimal:
    """Read a numeric threshold from the criteria payload.

    Raises:
        TypeError: If the payload is not a mapping or the value is not numeric.
    """
    value = criteria.get(key)
    if value is None:
        return Decimal(default)
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        msg = f"Criteria '{key}' must be numeric, got {value!r}"
        raise TypeError(msg)
    try:
        return Decimal(str(value))
    except ArithmeticError as e:
        msg = f"Criteria '{key}' must be numeric, got {value!r}"
        raise TypeError(msg) from e


def _at_least(field: str, default: int) -> BadgeChecker:
    """Build a single-threshold predicate on one stats field."""

    def check(stats: UserStats, criteria: Mapping[str, Any]) -> bool:
        return getattr(stats, field) >= _threshold(criteria, field, default)

    return check


def _all_of(*checks: BadgeChecker) -> BadgeChecker:
    """Build a conjunctive predicate; every threshold must hold."""

    def check(stats: UserStats, criteria: Mapping[str, Any]) -> bool:
        return all(c(stats, criteria) for c in checks)

    return check


BADGE_CHECKERS: dict[BadgeSlug, BadgeChecker] = {
    # Travel milestones
    BadgeSlug.FIRST_TRIP: _at_least("completed_trips", 1),
    BadgeSlug.FREQUENT_TRIP: _at_least("completed_trips", 5),
    BadgeSlug.WORLD_WANDERER: _at_least("distinct_countries", 15),
    BadgeSlug.LEGENDARY_NOMAD: _at_least("distinct_countries", 50),
    # Social engagement
    BadgeSlug.SOCIAL_STARTER: _at_least("public_trips", 1),
    BadgeSlug.SOCIAL_INFLUENCER: _at_least("public_trips", 15),
    BadgeSlug.TRAVEL_AMBASSADOR: _all_of(
        _at_least("public_trips", 50),
        _at_least("total_photo_likes", 200),
    ),
    BadgeSlug.ENGAGEMENT_STAR: _at_least("total_photo_comments", 100),
    # Financial planning
    BadgeSlug.BUDGET_TRAVELER: _at_least("budget_trips", 1),
    BadgeSlug.FINANCIAL_NINJA: _at_least("budget_trips", 10),
    BadgeSlug.SAVINGS_MASTERMIND: _at_least("total_savings", 10_000),
    # Content creation
    BadgeSlug.FIRST_JOURNAL_ENTRY: _at_least("journal_entries", 5),
    BadgeSlug.STORYTELLER: _at_least("journal_entries", 20),
    BadgeSlug.PHOTOGRAPHER: _at_least("photos", 50),
    BadgeSlug.CREATOR_LEGEND: _all_of(
        _at_least("journal_entries", 100),
        _at_least("photos", 200),
    ),
    BadgeSlug.VISUAL_STORYTELLER: _at_least("photos", 100),
}


def check_badge_criteria(slug: str, stats: UserStats, criteria: Any) -> bool | None:  # noqa: ANN401
    """Evaluate a badge's predicate.

    Returns None when no predicate exists for the slug. A null payload is
    treated as empty; anything else that is not a mapping raises TypeError,
    as do non-numeric threshold values.
    """
    try:
        checker = BADGE_CHECKERS[BadgeSlug(slug)]
    except (ValueError, KeyError):
        return None
    if criteria is None:
        criteria = {}
    if not isinstance(criteria, Mapping):
        msg = f"Criteria for {slug} must be an object, got {type(criteria).__name__}"
        raise TypeError(msg)
    return checker(stats, criteria)
