"""Badge seed data: the sixteen catalog badges."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.database import dialect_insert
from wayfarer.db.models import Badge
from wayfarer.gamification.criteria import BadgeCategory, BadgeRarity, BadgeSlug

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Travel Milestones
    {
        "slug": BadgeSlug.FIRST_TRIP.value,
        "name": "First Trip",
        "description": "Awarded for completing your first trip.",
        "category": BadgeCategory.TRAVEL_MILESTONES.value,
        "rarity": BadgeRarity.COMMON.value,
        "points": 100,
        "criteria": {"completed_trips": 1},
        "icon_url": "/badges/first_trip.svg",
        "sort_order": 1,
    },
    {
        "slug": BadgeSlug.FREQUENT_TRIP.value,
        "name": "Seasoned Voyager",
        "description": "Awarded for completing 5 or more trips.",
        "category": BadgeCategory.TRAVEL_MILESTONES.value,
        "rarity": BadgeRarity.RARE.value,
        "points": 200,
        "criteria": {"completed_trips": 5},
        "icon_url": "/badges/frequent_trip.svg",
        "sort_order": 2,
    },
    {
        "slug": BadgeSlug.WORLD_WANDERER.value,
        "name": "Global Globetrotter",
        "description": "Awarded for visiting 15 different countries.",
        "category": BadgeCategory.TRAVEL_MILESTONES.value,
        "rarity": BadgeRarity.EPIC.value,
        "points": 500,
        "criteria": {"distinct_countries": 15},
        "icon_url": "/badges/world_wanderer.svg",
        "sort_order": 3,
    },
    {
        "slug": BadgeSlug.LEGENDARY_NOMAD.value,
        "name": "Legendary Nomad",
        "description": "Awarded for visiting 50 different countries.",
        "category": BadgeCategory.TRAVEL_MILESTONES.value,
        "rarity": BadgeRarity.LEGENDARY.value,
        "points": 3000,
        "criteria": {"distinct_countries": 50},
        "icon_url": "/badges/legendary_nomad.svg",
        "sort_order": 4,
    },
    # Social Engagement
    {
        "slug": BadgeSlug.SOCIAL_STARTER.value,
        "name": "Community Newbie",
        "description": "Awarded for sharing your first trip publicly.",
        "category": BadgeCategory.SOCIAL_ENGAGEMENT.value,
        "rarity": BadgeRarity.COMMON.value,
        "points": 100,
        "criteria": {"public_trips": 1},
        "icon_url": "/badges/community_newbie.svg",
        "sort_order": 5,
    },
    {
        "slug": BadgeSlug.SOCIAL_INFLUENCER.value,
        "name": "Social Influencer",
        "description": "Awarded for sharing 15 trips publicly.",
        "category": BadgeCategory.SOCIAL_ENGAGEMENT.value,
        "rarity": BadgeRarity.EPIC.value,
        "points": 500,
        "criteria": {"public_trips": 15},
        "icon_url": "/badges/social_influencer.svg",
        "sort_order": 6,
    },
    {
        "slug": BadgeSlug.TRAVEL_AMBASSADOR.value,
        "name": "Travel Ambassador",
        "description": "Awarded for sharing 50 trips and receiving 200+ likes on your photos.",
        "category": BadgeCategory.SOCIAL_ENGAGEMENT.value,
        "rarity": BadgeRarity.LEGENDARY.value,
        "points": 2500,
        "criteria": {"public_trips": 50, "total_photo_likes": 200},
        "icon_url": "/badges/travel_ambassador.svg",
        "sort_order": 7,
    },
    {
        "slug": BadgeSlug.ENGAGEMENT_STAR.value,
        "name": "Engagement Star",
        "description": "Awarded for receiving 100+ comments across your shared photos.",
        "category": BadgeCategory.SOCIAL_ENGAGEMENT.value,
        "rarity": BadgeRarity.RARE.value,
        "points": 400,
        "criteria": {"total_photo_comments": 100},
        "icon_url": "/badges/engagement_star.svg",
        "sort_order": 8,
    },
    # Financial Planning
    {
        "slug": BadgeSlug.BUDGET_TRAVELER.value,
        "name": "Budget Traveler",
        "description": "Awarded for completing a trip under budget.",
        "category": BadgeCategory.FINANCIAL_PLANNING.value,
        "rarity": BadgeRarity.COMMON.value,
        "points": 100,
        "criteria": {"budget_trips": 1},
        "icon_url": "/badges/budget_traveler.svg",
        "sort_order": 9,
    },
    {
        "slug": BadgeSlug.FINANCIAL_NINJA.value,
        "name": "Financial Ninja",
        "description": "Awarded for staying under budget on 10 trips.",
        "category": BadgeCategory.FINANCIAL_PLANNING.value,
        "rarity": BadgeRarity.LEGENDARY.value,
        "points": 2000,
        "criteria": {"budget_trips": 10},
        "icon_url": "/badges/financial_ninja.svg",
        "sort_order": 10,
    },
    {
        "slug": BadgeSlug.SAVINGS_MASTERMIND.value,
        "name": "Savings Mastermind",
        "description": "Awarded for saving over $10,000 cumulatively across all trips.",
        "category": BadgeCategory.FINANCIAL_PLANNING.value,
        "rarity": BadgeRarity.EPIC.value,
        "points": 1500,
        "criteria": {"total_savings": 10000},
        "icon_url": "/badges/savings_mastermind.svg",
        "sort_order": 11,
    },
    # Content Creation
    {
        "slug": BadgeSlug.FIRST_JOURNAL_ENTRY.value,
        "name": "Journalist",
        "description": "Awarded for writing 5 journal entries.",
        "category": BadgeCategory.CONTENT_CREATION.value,
        "rarity": BadgeRarity.COMMON.value,
        "points": 100,
        "criteria": {"journal_entries": 5},
        "icon_url": "/badges/journalist.svg",
        "sort_order": 12,
    },
    {
        "slug": BadgeSlug.STORYTELLER.value,
        "name": "Content Creator",
        "description": "Awarded for writing 20 journal entries.",
        "category": BadgeCategory.CONTENT_CREATION.value,
        "rarity": BadgeRarity.RARE.value,
        "points": 500,
        "criteria": {"journal_entries": 20},
        "icon_url": "/badges/content_creator.svg",
        "sort_order": 13,
    },
    {
        "slug": BadgeSlug.PHOTOGRAPHER.value,
        "name": "Photographer",
        "description": "Awarded for uploading 50 photos.",
        "category": BadgeCategory.CONTENT_CREATION.value,
        "rarity": BadgeRarity.EPIC.value,
        "points": 1000,
        "criteria": {"photos": 50},
        "icon_url": "/badges/photographer.svg",
        "sort_order": 14,
    },
    {
        "slug": BadgeSlug.CREATOR_LEGEND.value,
        "name": "Legendary Creator",
        "description": "Awarded for publishing 100 journal entries and 200 photos.",
        "category": BadgeCategory.CONTENT_CREATION.value,
        "rarity": BadgeRarity.LEGENDARY.value,
        "points": 3000,
        "criteria": {"journal_entries": 100, "photos": 200},
        "icon_url": "/badges/creator_legend.svg",
        "sort_order": 15,
    },
    {
        "slug": BadgeSlug.VISUAL_STORYTELLER.value,
        "name": "Visual Storyteller",
        "description": "Awarded for uploading 100+ travel photos.",
        "category": BadgeCategory.CONTENT_CREATION.value,
        "rarity": BadgeRarity.RARE.value,
        "points": 600,
        "criteria": {"photos": 100},
        "icon_url": "/badges/visual_storyteller.svg",
        "sort_order": 16,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Upsert all badge definitions by slug. Returns number of badges seeded."""
    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        stmt = dialect_insert(db, Badge).values(**badge_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["slug"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "category": stmt.excluded.category,
                "rarity": stmt.excluded.rarity,
                "points": stmt.excluded.points,
                "criteria": stmt.excluded.criteria,
                "icon_url": stmt.excluded.icon_url,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
