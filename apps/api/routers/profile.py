"""
Profile router: the caller's own account, photo and dashboard overview.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.auth import EmploymentDetails
from routers.auth_scope import AuthContext, get_active_auth_context
from services.users import (
    get_profile_service,
    overview_service,
    profile_stats_service,
    remove_profile_photo_service,
    update_profile_service,
    upload_profile_photo_service,
)

router = APIRouter()


class EducationEntry(BaseModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    current: bool = False


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1)
    age: Optional[int] = Field(default=None, ge=0)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[1-9]\d{1,14}$")
    alternate_email: Optional[str] = None
    employment_details: Optional[EmploymentDetails] = None
    education: Optional[List[EducationEntry]] = None


@router.get("/profile")
async def get_profile(
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await get_profile_service(auth.user_id, db)


@router.put("/profile")
async def update_profile(
    request: UpdateProfileRequest,
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await update_profile_service(auth.user_id, request.model_dump(exclude_none=True), db)


@router.get("/profile/stats")
async def get_profile_stats(
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, int]:
    return await profile_stats_service(auth.user_id, db)


@router.post("/profile/photo")
async def upload_profile_photo(
    photo: UploadFile = File(...),
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Store an image (5 MB max) and point the profile at it."""
    return await upload_profile_photo_service(auth.user_id, photo, db)


@router.delete("/profile/photo")
async def remove_profile_photo(
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await remove_profile_photo_service(auth.user_id, db)


@router.get("/overview")
async def get_overview(
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Goal counts by status and the five most advanced skills."""
    return await overview_service(auth.user_id, db)
