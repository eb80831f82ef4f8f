"""Admin user management router."""

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth import EmploymentDetails
from routers.auth_scope import AuthContext, require_admin
from services.activity import send_activity_alert_service
from services.users import (
    admin_create_user_service,
    admin_update_user_service,
    delete_user_service,
    get_profile_service,
    list_users_service,
    promote_user_service,
)

router = APIRouter()


class AdminCreateUserRequest(BaseModel):
    full_name: str = Field(min_length=1)
    email: str = Field(pattern=r"^\S+@\S+\.\S+$")
    password: str = Field(min_length=6)
    age: Optional[int] = Field(default=None, ge=0)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    employment_details: Optional[EmploymentDetails] = None
    user_role: Literal["user", "admin"] = "user"


class AdminUpdateUserRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, pattern=r"^\S+@\S+\.\S+$")
    password: Optional[str] = Field(default=None, min_length=6)
    age: Optional[int] = Field(default=None, ge=0)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    alternate_email: Optional[str] = None
    employment_details: Optional[EmploymentDetails] = None
    user_role: Optional[Literal["user", "admin"]] = None
    activity_alert_threshold: Optional[int] = Field(default=None, ge=1)


class ActivityAlertRequest(BaseModel):
    message: Optional[str] = None


@router.get("")
async def list_users(
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[Dict[str, Any]]:
    return await list_users_service(db)


@router.post("", status_code=201)
async def create_user(
    request: AdminCreateUserRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await admin_create_user_service(request.model_dump(exclude_none=True), db)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await get_profile_service(user_id, db)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: AdminUpdateUserRequest,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await admin_update_user_service(user_id, request.model_dump(exclude_none=True), db)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Remove the account and everything it owns."""
    return await delete_user_service(user_id, db)


@router.patch("/{user_id}")
async def promote_user(
    user_id: str,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await promote_user_service(user_id, db)


@router.post("/{user_id}/activity-alert")
async def send_activity_alert(
    user_id: str,
    request: Optional[ActivityAlertRequest] = None,
    _admin: AuthContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    message = request.message if request else None
    return await send_activity_alert_service(user_id, db, message=message)
