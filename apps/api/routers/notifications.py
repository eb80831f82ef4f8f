"""Notification inbox router."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from services.notifications import (
    delete_all_notifications_service,
    delete_notification_service,
    list_notifications_service,
    mark_notification_read_service,
)

router = APIRouter()


@router.get("")
async def list_notifications(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    """Newest first. Polled by the client, so it does not count as activity."""
    return await list_notifications_service(auth.user_id, db)


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await mark_notification_read_service(auth.user_id, notification_id, db)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await delete_notification_service(auth.user_id, notification_id, db)


@router.delete("")
async def delete_all_notifications(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await delete_all_notifications_service(auth.user_id, db)
