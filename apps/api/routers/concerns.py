"""Concerns router for user support requests and admin follow-up."""

from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_active_auth_context, require_admin
from services.concerns import (
    create_concern_service,
    delete_concern_service,
    list_all_concerns_service,
    list_my_concerns_service,
    reply_to_concern_service,
    update_concern_status_service,
)

router = APIRouter()


class CreateConcernRequest(BaseModel):
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)


class ConcernStatusRequest(BaseModel):
    status: Literal["Pending", "In Review", "Resolved"]


class ConcernReplyRequest(BaseModel):
    message: str = Field(min_length=1)


@router.post("", status_code=201)
async def create_concern(
    request: CreateConcernRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Submit a concern; every admin is notified."""
    return await create_concern_service(auth.user_id, request.subject, request.message, db)


@router.get("/my-concerns")
async def my_concerns(
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await list_my_concerns_service(auth.user_id, db)


@router.get("")
async def all_concerns(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await list_all_concerns_service(db)


@router.delete("/{concern_id}")
async def delete_concern(
    concern_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await delete_concern_service(auth.user_id, concern_id, db)


@router.patch("/{concern_id}")
async def update_concern_status(
    concern_id: str,
    request: ConcernStatusRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await update_concern_status_service(concern_id, request.status, db)


@router.post("/{concern_id}/reply")
async def reply_to_concern(
    concern_id: str,
    request: ConcernReplyRequest,
    admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await reply_to_concern_service(admin.user_id, concern_id, request.message, db)
