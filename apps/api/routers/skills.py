"""Skills router."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_active_auth_context
from services.skills import (
    create_skill_service,
    delete_skill_service,
    list_skills_service,
    match_skills_service,
    update_skill_service,
)

router = APIRouter()


class CreateSkillRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)


class UpdateSkillRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)


@router.get("")
async def list_skills(
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await list_skills_service(auth.user_id, db)


@router.post("", status_code=201)
async def create_skill(
    request: CreateSkillRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await create_skill_service(auth.user_id, request.model_dump(), db)


@router.get("/matching")
async def matching_skills(
    keywords: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    """Skills whose name contains any comma-separated keyword."""
    return await match_skills_service(auth.user_id, keywords, db)


@router.put("/{skill_id}")
async def update_skill(
    skill_id: str,
    request: UpdateSkillRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await update_skill_service(auth.user_id, skill_id, request.model_dump(exclude_unset=True), db)


@router.delete("/{skill_id}")
async def delete_skill(
    skill_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Delete the skill along with every goal that references it."""
    return await delete_skill_service(auth.user_id, skill_id, db)
