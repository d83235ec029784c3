"""Badge notification delivery.

Notifications are persisted, then pushed to the user's WebSocket
connections over Redis pub/sub (``ws:user:{user_id}``). Delivery is
best-effort: failures are logged and never propagate to the caller.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import Notification

if TYPE_CHECKING:
    from wayfarer.gamification.evaluator import CandidateBadge

logger = logging.getLogger(__name__)

BADGE_EARNED = "BADGE_EARNED"


async def push_notification_to_user(redis: Any, notification: Notification) -> None:  # noqa: ANN401
    """Publish a formatted notification to ws:user:{user_id}."""
    if redis is None:
        return

    ws_payload = {
        "event": "notification",
        "data": {
            "id": str(notification.id),
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "data": notification.data,
            "timestamp": notification.created_at.isoformat(),
            "read": False,
        },
    }
    try:
        await redis.publish(f"ws:user:{notification.user_id}", json.dumps(ws_payload))
    except Exception:
        logger.warning("Failed to push notification via ws:user:%s", notification.user_id, exc_info=True)


async def notify_badge_earned(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: uuid.UUID,
    badge: CandidateBadge,
) -> bool:
    """Persist and push a badge-earned notification. Returns True if stored."""
    notification = Notification(
        user_id=user_id,
        type=BADGE_EARNED,
        title=f'Badge Earned: "{badge.name}"',
        message=f"+{badge.points} points",
        data={"badge_id": str(badge.id), "badge_slug": badge.slug, "points": badge.points},
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(notification)
        await db.commit()
    except Exception:
        logger.warning("Failed to store badge notification for user %s", user_id, exc_info=True)
        await db.rollback()
        return False

    await push_notification_to_user(redis, notification)
    return True
