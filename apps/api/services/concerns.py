"""User concerns (support requests) and admin replies."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from database import utcnow
from models.concern import CONCERN_STATUSES, Concern
from models.concern_reply import ConcernReply
from services.notifications import create_notification, notify_admins
from services.serializers import serialize_concern

logger = logging.getLogger(__name__)


def _concern_query():
    return select(Concern).options(selectinload(Concern.replies), selectinload(Concern.user))


async def _get_concern(concern_id: str, db: AsyncSession) -> Concern:
    result = await db.execute(
        _concern_query()
        .where(Concern.id == concern_id)
        .execution_options(populate_existing=True)
    )
    concern = result.scalar_one_or_none()
    if not concern:
        raise HTTPException(status_code=404, detail="Concern not found")
    return concern


async def create_concern_service(user_id: str, subject: str, message: str, db: AsyncSession) -> Dict[str, Any]:
    subject = (subject or "").strip()
    message = (message or "").strip()
    if not subject or not message:
        raise HTTPException(status_code=400, detail="Subject and message are required")

    concern = Concern(user_id=user_id, subject=subject, message=message, status="Pending")
    db.add(concern)
    await db.flush()
    admins = await notify_admins(db, f"New concern submitted: {subject}")
    await db.commit()
    logger.info("concern_created user=%s concern=%s admins_notified=%d", user_id, concern.id, admins)
    return serialize_concern(await _get_concern(concern.id, db))


async def list_my_concerns_service(user_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        _concern_query().where(Concern.user_id == user_id).order_by(Concern.created_at.desc())
    )
    return [serialize_concern(concern) for concern in result.scalars().all()]


async def delete_concern_service(user_id: str, concern_id: str, db: AsyncSession) -> Dict[str, Any]:
    concern = await _get_concern(concern_id, db)
    if concern.user_id != user_id:
        raise HTTPException(status_code=404, detail="Concern not found")
    await db.delete(concern)
    await db.commit()
    return {"message": "Concern deleted successfully"}


async def list_all_concerns_service(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(_concern_query().order_by(Concern.created_at.desc()))
    return [serialize_concern(concern, include_user=True) for concern in result.scalars().all()]


async def update_concern_status_service(concern_id: str, status: str, db: AsyncSession) -> Dict[str, Any]:
    if status not in CONCERN_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")

    concern = await _get_concern(concern_id, db)
    concern.status = status
    concern.resolved_at = utcnow() if status == "Resolved" else None
    create_notification(db, concern.user_id, f"Your concern \"{concern.subject}\" is now {status}.")
    await db.commit()
    return serialize_concern(await _get_concern(concern_id, db), include_user=True)


async def reply_to_concern_service(
    admin_id: str,
    concern_id: str,
    message: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    message = (message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Reply message is required")

    concern = await _get_concern(concern_id, db)
    concern.replies.append(ConcernReply(replied_by=admin_id, message=message))
    create_notification(db, concern.user_id, f"An admin replied to your concern \"{concern.subject}\".")
    await db.commit()
    logger.info("concern_replied concern=%s admin=%s", concern_id, admin_id)
    return serialize_concern(await _get_concern(concern_id, db), include_user=True)
