"""Aggregate statistics router (admin only)."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, require_admin
from services.stats import admin_reports_service, all_goals_service, users_activity_service

router = APIRouter()


@router.get("/admin/reports")
async def admin_reports(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """User, skill/goal and forum totals for the admin dashboard."""
    return await admin_reports_service(db)


@router.get("/users/activity")
async def users_activity(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await users_activity_service(db)


@router.get("/goals")
async def all_goals(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await all_goals_service(db)
