"""
Admin router: forum moderation plus platform-wide skills and goals.
"""

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, require_admin
from routers.posts import UpdatePostRequest
from services.moderation import (
    admin_delete_comment_service,
    admin_delete_post_service,
    admin_update_comment_service,
    admin_update_post_service,
    flagged_stats_service,
    list_admin_posts_service,
    resolve_flag_service,
)
from services.stats import notify_overdue_goals_service, skills_goals_overview_service

router = APIRouter()


class AdminCommentUpdateRequest(BaseModel):
    content: str = Field(min_length=1)


class ResolveFlagRequest(BaseModel):
    post_id: str
    comment_id: Optional[str] = None
    flag_id: str
    action: Literal["reviewed", "dismissed"]
    notify_user: bool = False


@router.get("/posts")
async def list_posts_for_moderation(
    flagged_only: bool = Query(default=False),
    search_query: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await list_admin_posts_service(
        db,
        flagged_only=flagged_only,
        search_query=search_query,
        page=page,
        limit=limit,
    )


@router.put("/posts/{post_id}")
async def update_post(
    post_id: str,
    request: UpdatePostRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await admin_update_post_service(post_id, request.model_dump(exclude_none=True), db)


@router.delete("/posts/{post_id}")
async def delete_post(
    post_id: str,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await admin_delete_post_service(post_id, db)


@router.put("/posts/{post_id}/comments/{comment_id}")
async def update_comment(
    post_id: str,
    comment_id: str,
    request: AdminCommentUpdateRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await admin_update_comment_service(post_id, comment_id, request.content, db)


@router.delete("/posts/{post_id}/comments/{comment_id}")
async def delete_comment(
    post_id: str,
    comment_id: str,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await admin_delete_comment_service(post_id, comment_id, db)


@router.post("/resolve-flagged")
async def resolve_flagged(
    request: ResolveFlagRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Mark a pending post or comment flag as reviewed or dismissed."""
    return await resolve_flag_service(
        post_id=request.post_id,
        flag_id=request.flag_id,
        action=request.action,
        db=db,
        comment_id=request.comment_id,
        notify_user=request.notify_user,
    )


@router.get("/flagged-stats")
async def flagged_stats(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, int]:
    return await flagged_stats_service(db)


@router.get("/skills-goals")
async def skills_goals_overview(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, List[Dict[str, Any]]]:
    return await skills_goals_overview_service(db)


@router.post("/notify-overdue-goals")
async def notify_overdue_goals(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await notify_overdue_goals_service(db)
