"""Inactivity detection and activity alerts."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import utcnow
from models.user import User
from services.notifications import create_notification
from services.users import get_user_or_404

logger = logging.getLogger(__name__)

INACTIVITY_MESSAGE = "We noticed you haven't been active for {days} days. We'd love to see you back!"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(value: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    moment = as_utc(value)
    if moment is None:
        return None
    return int(((now or utcnow()) - moment).total_seconds() // 86400)


def needs_activity_alert(
    last_active_time: Optional[datetime],
    threshold_days: int,
    now: Optional[datetime] = None,
) -> bool:
    """True once whole days since last activity reach the threshold."""
    elapsed = days_since(last_active_time, now)
    if elapsed is None:
        return False
    return elapsed >= int(threshold_days)


async def send_activity_alert_service(
    user_id: str,
    db: AsyncSession,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    user = await get_user_or_404(user_id, db)
    if not needs_activity_alert(user.last_active_time, user.activity_alert_threshold):
        raise HTTPException(
            status_code=400,
            detail="Activity alert not needed - user is still within active threshold",
        )

    create_notification(db, user.id, message or INACTIVITY_MESSAGE.format(days=user.activity_alert_threshold))
    user.last_activity_alert = utcnow()
    await db.commit()
    return {
        "message": "Activity alert sent successfully",
        "days_since_active": days_since(user.last_active_time),
    }


async def check_inactive_users(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Notify every user past their inactivity threshold; returns the count."""
    now = now or utcnow()
    result = await db.execute(select(User))
    alerted = 0
    for user in result.scalars().all():
        if not needs_activity_alert(user.last_active_time, user.activity_alert_threshold, now):
            continue
        create_notification(db, user.id, INACTIVITY_MESSAGE.format(days=user.activity_alert_threshold))
        user.last_activity_alert = now
        alerted += 1
    await db.commit()
    if alerted:
        logger.info("Inactivity check notified %d user(s)", alerted)
    return alerted
