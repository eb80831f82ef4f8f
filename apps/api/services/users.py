"""Account, profile and admin user management services."""

from __future__ import annotations

import logging
import re
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy import delete, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from config import settings
from database import utcnow
from models.comment import Comment
from models.concern import Concern
from models.concern_reply import ConcernReply
from models.content_flag import ContentFlag
from models.goal import Goal, goal_skills
from models.goal_resource import GoalResource
from models.notification import Notification
from models.post import Post
from models.post_like import PostLike
from models.skill import Skill
from models.user import User
from services.passwords import hash_password, verify_password
from services.serializers import serialize_user
from services.session_token import (
    create_password_reset_token,
    create_session_token,
    decode_password_reset_token,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
EMPLOYMENT_STATUSES = ("employed", "unemployed", "student")
USER_ROLES = ("user", "admin")
PROFILE_EDITABLE_FIELDS = (
    "full_name",
    "age",
    "phone",
    "alternate_email",
    "employment_details",
    "education",
)
ADMIN_EDITABLE_FIELDS = PROFILE_EDITABLE_FIELDS + ("email", "user_role", "activity_alert_threshold")
GOAL_STATUS_WEIGHTS = {"Pending": 0, "In Progress": 50, "Completed": 100}
PHOTO_SUBDIR = "profile-photos"
ALLOWED_PHOTO_MIME_PREFIXES = ("image/",)


def _validate_fields(data: Dict[str, Any]) -> None:
    """Raise 400 for malformed contact or employment fields."""
    email = data.get("email")
    if email is not None and not EMAIL_PATTERN.match(str(email)):
        raise HTTPException(status_code=400, detail="Invalid email format.")
    alternate = data.get("alternate_email")
    if alternate and not EMAIL_PATTERN.match(str(alternate)):
        raise HTTPException(status_code=400, detail="Invalid alternate email format.")
    phone = data.get("phone")
    if phone is not None and not PHONE_PATTERN.match(str(phone)):
        raise HTTPException(status_code=400, detail="Invalid phone number format.")
    age = data.get("age")
    if age is not None and (isinstance(age, bool) or int(age) < 0):
        raise HTTPException(status_code=400, detail="Age cannot be negative")
    role = data.get("user_role")
    if role is not None and role not in USER_ROLES:
        raise HTTPException(status_code=400, detail="Invalid user role")
    details = data.get("employment_details") or {}
    status = details.get("status")
    if status is not None and str(status).lower() not in EMPLOYMENT_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid employment status")


def _apply_fields(user: User, data: Dict[str, Any], allowed: tuple) -> None:
    for field in allowed:
        if field not in data or data[field] is None:
            continue
        value = data[field]
        if field == "employment_details":
            if value.get("status"):
                user.employment_status = str(value["status"]).lower()
            current_job = value.get("current_job") or {}
            if "company" in current_job:
                user.current_company = current_job.get("company") or ""
            if "title" in current_job:
                user.current_title = current_job.get("title") or ""
            if value.get("preferred_jobs") is not None:
                user.preferred_jobs = list(value["preferred_jobs"])
        elif field == "education":
            user.education = list(value)
        elif field == "email":
            user.email = str(value).strip().lower()
        else:
            setattr(user, field, value)


async def get_user_or_404(user_id: str, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def _ensure_email_available(email: str, db: AsyncSession, exclude_user_id: Optional[str] = None) -> None:
    query = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_user_id:
        query = query.where(User.id != exclude_user_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="User already exists")


async def register_user_service(payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    details = dict(payload.get("employment_details") or {})
    status = details.get("status") or payload.get("employment_status")
    if not status:
        raise HTTPException(status_code=400, detail="Employment status is required")
    details["status"] = status

    email = str(payload.get("email") or "").strip().lower()
    data = {**payload, "email": email, "employment_details": details}
    _validate_fields(data)
    await _ensure_email_available(email, db)

    user = User(
        full_name=str(payload["full_name"]).strip(),
        email=email,
        password_hash=hash_password(payload["password"]),
        preferred_jobs=[],
        education=[],
        activity_alert_threshold=settings.DEFAULT_ACTIVITY_ALERT_DAYS,
    )
    _apply_fields(user, data, ("age", "phone", "employment_details"))
    db.add(user)
    await db.commit()
    logger.info("user_registered user=%s", user.id)
    return {"message": "User registered successfully!", "id": user.id}


async def login_user_service(email: str, password: str, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(select(User).where(func.lower(User.email) == (email or "").strip().lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.last_active_time = utcnow()
    await db.commit()

    session = create_session_token(user.id, email=user.email, role=user.user_role)
    return {
        "message": "Login successful!",
        "token": session["token"],
        "expires_at": session["expires_at"],
        "id": user.id,
        "role": user.user_role,
        "full_name": user.full_name,
        "last_active_time": user.last_active_time.isoformat(),
        "profile_photo": user.profile_photo or "",
    }


async def verify_email_service(email: str, db: AsyncSession) -> Dict[str, Any]:
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User with this email does not exist")
    return {
        "message": "Email verified successfully",
        "reset_token": create_password_reset_token(user.id),
        "expires_in_minutes": settings.PASSWORD_RESET_TOKEN_MINUTES,
    }


async def reset_password_service(reset_token: str, new_password: str, db: AsyncSession) -> Dict[str, Any]:
    if not reset_token or not new_password:
        raise HTTPException(status_code=400, detail="Reset token and new password are required")
    try:
        user_id = decode_password_reset_token(reset_token)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    user = await get_user_or_404(user_id, db)
    user.password_hash = hash_password(new_password)
    await db.commit()
    logger.info("password_reset user=%s", user_id)
    return {"message": "Password reset successfully"}


async def get_profile_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    return serialize_user(await get_user_or_404(user_id, db))


async def update_profile_service(user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    user = await get_user_or_404(user_id, db)
    data = {key: value for key, value in payload.items() if key in PROFILE_EDITABLE_FIELDS}
    _validate_fields(data)
    _apply_fields(user, data, PROFILE_EDITABLE_FIELDS)
    await db.commit()
    await db.refresh(user)
    return serialize_user(user)


async def profile_stats_service(user_id: str, db: AsyncSession) -> Dict[str, int]:
    skills = await db.execute(select(func.count(Skill.id)).where(Skill.user_id == user_id))
    goals = await db.execute(select(func.count(Goal.id)).where(Goal.user_id == user_id))
    return {"skills_count": int(skills.scalar() or 0), "goals_count": int(goals.scalar() or 0)}


def skill_progress_from_goals(skills: List[Skill], goals: List[Goal], top: int = 5) -> List[Dict[str, Any]]:
    """Average status weight of each skill's goals, best first."""
    progress = []
    for skill in skills:
        related = [goal for goal in goals if any(item.id == skill.id for item in goal.skills)]
        if related:
            weighted = sum(GOAL_STATUS_WEIGHTS.get(goal.status, 0) for goal in related)
            value = round(weighted / len(related))
        else:
            value = 0
        progress.append({"name": skill.name, "progress": value})
    progress.sort(key=lambda item: item["progress"], reverse=True)
    return progress[:top]


async def overview_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    goals_result = await db.execute(
        select(Goal).where(Goal.user_id == user_id).options(selectinload(Goal.skills))
    )
    goals = goals_result.scalars().all()
    skills_result = await db.execute(
        select(Skill).where(Skill.user_id == user_id).order_by(Skill.created_at)
    )
    skills = skills_result.scalars().all()

    return {
        "goal_counts": {
            "pending": sum(1 for goal in goals if goal.status == "Pending"),
            "in_progress": sum(1 for goal in goals if goal.status == "In Progress"),
            "completed": sum(1 for goal in goals if goal.status == "Completed"),
        },
        "skill_progress": skill_progress_from_goals(list(skills), list(goals)),
    }


def _sanitize_filename(filename: str) -> str:
    suffix = Path(filename or "").suffix.lower()
    return "".join(ch for ch in suffix if ch.isalnum() or ch == ".")


def _photo_path(photo_url: str) -> Optional[Path]:
    prefix = f"/uploads/{PHOTO_SUBDIR}/"
    if not photo_url or not photo_url.startswith(prefix):
        return None
    return Path(settings.UPLOAD_DIR) / PHOTO_SUBDIR / Path(photo_url[len(prefix):]).name


async def upload_profile_photo_service(user_id: str, file: Optional[UploadFile], db: AsyncSession) -> Dict[str, Any]:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    content_type = (file.content_type or "").lower()
    if not content_type.startswith(ALLOWED_PHOTO_MIME_PREFIXES):
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    user = await get_user_or_404(user_id, db)
    photo_dir = Path(settings.UPLOAD_DIR) / PHOTO_SUBDIR
    photo_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"profile-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}{_sanitize_filename(file.filename)}"
    destination = photo_dir / stored_name

    max_bytes = settings.PROFILE_PHOTO_MAX_BYTES
    total_size = 0
    try:
        with destination.open("wb") as out:
            while True:
                chunk = await file.read(1024 * 1024)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > max_bytes:
                    out.close()
                    destination.unlink(missing_ok=True)
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large. Max upload size is {max_bytes // (1024 * 1024)}MB.",
                    )
                out.write(chunk)
    finally:
        await file.close()

    previous = _photo_path(user.profile_photo)
    photo_url = f"/uploads/{PHOTO_SUBDIR}/{stored_name}"
    user.profile_photo = photo_url
    await db.commit()
    if previous is not None:
        previous.unlink(missing_ok=True)

    return {"message": "Profile photo uploaded successfully", "photo_url": photo_url}


async def remove_profile_photo_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    user = await get_user_or_404(user_id, db)
    if user.profile_photo:
        path = _photo_path(user.profile_photo)
        if path is not None:
            path.unlink(missing_ok=True)
        user.profile_photo = ""
        await db.commit()
    return {"message": "Profile photo removed successfully"}


async def list_users_service(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(select(User).order_by(User.created_at))
    return [serialize_user(user) for user in result.scalars().all()]


async def admin_create_user_service(payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    email = str(payload.get("email") or "").strip().lower()
    data = {**payload, "email": email}
    _validate_fields(data)
    await _ensure_email_available(email, db)

    user = User(
        full_name=str(payload["full_name"]).strip(),
        email=email,
        password_hash=hash_password(payload["password"]),
        preferred_jobs=[],
        education=[],
        activity_alert_threshold=settings.DEFAULT_ACTIVITY_ALERT_DAYS,
    )
    _apply_fields(user, data, ADMIN_EDITABLE_FIELDS)
    db.add(user)
    await db.commit()
    logger.info("admin_user_created user=%s", user.id)
    return serialize_user(user)


async def admin_update_user_service(user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    user = await get_user_or_404(user_id, db)
    data = {key: value for key, value in payload.items() if value is not None}
    _validate_fields(data)
    if data.get("email"):
        await _ensure_email_available(str(data["email"]), db, exclude_user_id=user_id)
    _apply_fields(user, data, ADMIN_EDITABLE_FIELDS)
    if data.get("password"):
        user.password_hash = hash_password(data["password"])
    await db.commit()
    await db.refresh(user)
    return serialize_user(user)


async def delete_user_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Delete a user together with everything they own in one transaction."""
    user = await get_user_or_404(user_id, db)

    goal_ids = select(Goal.id).where(Goal.user_id == user_id)
    post_ids = select(Post.id).where(Post.author_id == user_id)
    comment_ids = select(Comment.id).where(Comment.user_id == user_id)
    concern_ids = select(Concern.id).where(Concern.user_id == user_id)

    try:
        await db.execute(delete(goal_skills).where(goal_skills.c.goal_id.in_(goal_ids)))
        await db.execute(delete(GoalResource).where(GoalResource.goal_id.in_(goal_ids)))
        await db.execute(delete(Goal).where(Goal.user_id == user_id))
        await db.execute(
            delete(goal_skills).where(
                goal_skills.c.skill_id.in_(select(Skill.id).where(Skill.user_id == user_id))
            )
        )
        await db.execute(delete(Skill).where(Skill.user_id == user_id))

        await db.execute(
            delete(ContentFlag).where(
                or_(
                    ContentFlag.user_id == user_id,
                    ContentFlag.post_id.in_(post_ids),
                    ContentFlag.comment_id.in_(comment_ids),
                )
            )
        )
        await db.execute(
            delete(PostLike).where(or_(PostLike.user_id == user_id, PostLike.post_id.in_(post_ids)))
        )
        await db.execute(
            delete(Comment).where(or_(Comment.user_id == user_id, Comment.post_id.in_(post_ids)))
        )
        await db.execute(delete(Post).where(Post.author_id == user_id))

        await db.execute(
            delete(ConcernReply).where(
                or_(ConcernReply.replied_by == user_id, ConcernReply.concern_id.in_(concern_ids))
            )
        )
        await db.execute(delete(Concern).where(Concern.user_id == user_id))
        await db.execute(delete(Notification).where(Notification.user_id == user_id))
        await db.execute(delete(User).where(User.id == user.id))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("User delete failed for %s", user_id)
        raise

    logger.info("user_deleted user=%s", user_id)
    return {"message": "User deleted successfully"}


async def promote_user_service(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(update(User).where(User.id == user_id).values(user_role="admin"))
    if not result.rowcount:
        raise HTTPException(status_code=404, detail="User not found")
    await db.commit()
    logger.info("user_promoted user=%s", user_id)
    return {"message": "User promoted to admin", "id": user_id, "user_role": "admin"}
