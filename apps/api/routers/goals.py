"""Goals router, including resource linking."""

from datetime import date
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth_scope import AuthContext, get_active_auth_context
from services.goals import (
    create_goal_service,
    delete_goal_service,
    link_resource_service,
    list_goals_service,
    match_goals_for_resource_service,
    unlink_resource_service,
    update_goal_service,
)

router = APIRouter()

GoalStatus = Literal["Pending", "In Progress", "Completed"]


class ResourceData(BaseModel):
    title: Optional[str] = None
    platform: Optional[str] = None
    link: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[Union[int, str]] = None


class CreateGoalRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start_date: date
    target_completion_date: date
    status: GoalStatus = "Pending"
    associated_skills: List[str] = Field(default_factory=list)
    resources: List[ResourceData] = Field(default_factory=list)


class UpdateGoalRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    target_completion_date: Optional[date] = None
    status: Optional[GoalStatus] = None
    associated_skills: Optional[List[str]] = None


class LinkResourceRequest(BaseModel):
    resource_data: Optional[ResourceData] = None


@router.get("")
async def list_goals(
    skill_id: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await list_goals_service(auth.user_id, db, skill_id=skill_id)


@router.post("", status_code=201)
async def create_goal(
    request: CreateGoalRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    payload = request.model_dump()
    payload["resources"] = [item.model_dump(exclude_none=True) for item in request.resources]
    return await create_goal_service(auth.user_id, payload, db)


@router.get("/matching-resource/{resource_id}")
async def goals_matching_resource(
    resource_id: str,
    title: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    """Goals whose skills share a keyword with the resource title."""
    return await match_goals_for_resource_service(auth.user_id, (title or "").strip(), db)


@router.put("/{goal_id}")
async def update_goal(
    goal_id: str,
    request: UpdateGoalRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await update_goal_service(auth.user_id, goal_id, request.model_dump(exclude_unset=True), db)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await delete_goal_service(auth.user_id, goal_id, db)


@router.post("/{goal_id}/link-resource")
async def link_resource(
    goal_id: str,
    request: LinkResourceRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    resource_data = request.resource_data.model_dump(exclude_none=True) if request.resource_data else None
    return await link_resource_service(auth.user_id, goal_id, resource_data, db)


@router.delete("/{goal_id}/unlink-resource/{resource_link:path}")
async def unlink_resource(
    goal_id: str,
    resource_link: str,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await unlink_resource_service(auth.user_id, goal_id, resource_link, db)
