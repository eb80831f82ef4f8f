"""Notification sink and inbox services."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.notification import Notification
from models.user import User
from services.serializers import serialize_notification

logger = logging.getLogger(__name__)


def create_notification(db: AsyncSession, user_id: str, message: str) -> Notification:
    """Queue a notification on the session; the caller's commit persists it."""
    notification = Notification(user_id=user_id, message=message, read=False)
    db.add(notification)
    return notification


async def notify_admins(db: AsyncSession, message: str) -> int:
    result = await db.execute(select(User.id).where(User.user_role == "admin"))
    admin_ids = result.scalars().all()
    for admin_id in admin_ids:
        create_notification(db, admin_id, message)
    return len(admin_ids)


async def list_notifications_service(user_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    return [serialize_notification(item) for item in result.scalars().all()]


async def _get_owned_notification(user_id: str, notification_id: str, db: AsyncSession) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


async def mark_notification_read_service(user_id: str, notification_id: str, db: AsyncSession) -> Dict[str, Any]:
    notification = await _get_owned_notification(user_id, notification_id, db)
    notification.read = True
    await db.commit()
    return {"message": "Notification marked as read"}


async def delete_notification_service(user_id: str, notification_id: str, db: AsyncSession) -> Dict[str, Any]:
    notification = await _get_owned_notification(user_id, notification_id, db)
    await db.delete(notification)
    await db.commit()
    return {"message": "Notification deleted successfully"}


async def delete_all_notifications_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(delete(Notification).where(Notification.user_id == user_id))
    await db.commit()
    logger.info("notifications_cleared user=%s count=%s", user_id, result.rowcount)
    return {"message": "All notifications deleted successfully", "deleted": int(result.rowcount or 0)}
