"""
Authentication router for registration, login and password reset.
"""

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from routers.rate_limit import rate_limit
from services.users import (
    login_user_service,
    register_user_service,
    reset_password_service,
    verify_email_service,
)

router = APIRouter()


class CurrentJob(BaseModel):
    company: str = ""
    title: str = ""


class EmploymentDetails(BaseModel):
    status: Literal["employed", "unemployed", "student"]
    current_job: Optional[CurrentJob] = None
    preferred_jobs: Optional[List[str]] = None


class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=1)
    email: str = Field(pattern=r"^\S+@\S+\.\S+$")
    password: str = Field(min_length=6)
    age: int = Field(ge=0)
    phone: str = Field(pattern=r"^\+?[1-9]\d{1,14}$")
    employment_details: Optional[EmploymentDetails] = None
    employment_status: Optional[Literal["employed", "unemployed", "student"]] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class VerifyEmailRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    reset_token: str
    new_password: str = Field(min_length=6)


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    _rate_limit: None = Depends(rate_limit("register", limit=10, window_seconds=3600)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Create a member account."""
    return await register_user_service(request.model_dump(exclude_none=True), db)


@router.post("/login")
async def login(
    request: LoginRequest,
    _rate_limit: None = Depends(rate_limit("login", limit=20, window_seconds=900)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Exchange credentials for a bearer session token."""
    return await login_user_service(request.email, request.password, db)


@router.post("/logout")
async def logout() -> Dict[str, str]:
    # Tokens are stateless; clients discard them.
    return {"message": "Logout successful"}


@router.post("/verify-email")
async def verify_email(
    request: VerifyEmailRequest,
    _rate_limit: None = Depends(rate_limit("verify_email", limit=10, window_seconds=900)),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await verify_email_service(request.email, db)


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    return await reset_password_service(request.reset_token, request.new_password, db)
