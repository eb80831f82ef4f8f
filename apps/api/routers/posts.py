"""Discussion forum router."""

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_active_auth_context
from services.forum import (
    add_comment_service,
    create_post_service,
    delete_own_comment_service,
    delete_post_service,
    flag_comment_service,
    flag_post_service,
    get_post_service,
    list_posts_service,
    toggle_like_service,
    update_post_service,
)

router = APIRouter()


class CreatePostRequest(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    tags: List[str] = Field(default_factory=list)


class UpdatePostRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None


class CommentRequest(BaseModel):
    content: str = Field(min_length=1)


class FlagRequest(BaseModel):
    reason: str = Field(min_length=1)


@router.post("", status_code=201)
async def create_post(
    request: CreatePostRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await create_post_service(auth.user_id, request.model_dump(), db)


@router.get("")
async def list_posts(
    user_id: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort: Literal["recent", "popular", "commented"] = Query(default="recent"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=8, ge=1, le=50),
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await list_posts_service(
        db,
        author_id=user_id,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get("/{post_id}")
async def get_post(
    post_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await get_post_service(post_id, db)


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    request: UpdatePostRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await update_post_service(auth.user_id, post_id, request.model_dump(exclude_none=True), db)


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await delete_post_service(auth.user_id, post_id, db)


@router.put("/{post_id}/like")
async def toggle_like(
    post_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Like the post, or remove the caller's like if present."""
    return await toggle_like_service(auth.user_id, post_id, db)


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(
    post_id: str,
    request: CommentRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await add_comment_service(auth.user_id, post_id, request.content, db)


@router.delete("/{post_id}/comments/{comment_id}")
async def delete_comment(
    post_id: str,
    comment_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await delete_own_comment_service(auth.user_id, post_id, comment_id, db)


@router.post("/{post_id}/flag")
async def flag_post(
    post_id: str,
    request: FlagRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await flag_post_service(auth.user_id, post_id, request.reason, db)


@router.post("/{post_id}/comments/{comment_id}/flag")
async def flag_comment(
    post_id: str,
    comment_id: str,
    request: FlagRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await flag_comment_service(auth.user_id, post_id, comment_id, request.reason, db)
