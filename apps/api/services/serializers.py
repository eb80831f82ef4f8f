"""JSON-ready dict builders shared by the domain services."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from models.concern import Concern
from models.content_flag import ContentFlag
from models.goal import Goal
from models.goal_resource import GoalResource
from models.notification import Notification
from models.skill import Skill
from models.user import User


def iso(value: Optional[Any]) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return None


def format_duration(seconds: Optional[int]) -> str:
    """Render seconds as "1h 2m 3s", omitting zero parts."""
    seconds = int(seconds or 0)
    if seconds <= 0:
        return ""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)


def user_brief(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "profile_photo": user.profile_photo or "",
    }


def serialize_user(user: User) -> Dict[str, Any]:
    """Public profile; never includes the password hash."""
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "age": user.age,
        "phone": user.phone,
        "alternate_email": user.alternate_email,
        "user_role": user.user_role,
        "employment_details": {
            "status": user.employment_status,
            "current_job": {
                "company": user.current_company or "",
                "title": user.current_title or "",
            },
            "preferred_jobs": list(user.preferred_jobs or []),
        },
        "education": list(user.education or []),
        "profile_photo": user.profile_photo or "",
        "last_active_time": iso(user.last_active_time),
        "activity_alert_threshold": user.activity_alert_threshold,
        "last_activity_alert": iso(user.last_activity_alert),
        "created_at": iso(user.created_at),
        "updated_at": iso(user.updated_at),
    }


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "message": notification.message,
        "read": bool(notification.read),
        "created_at": iso(notification.created_at),
    }


def serialize_skill(skill: Skill) -> Dict[str, Any]:
    return {
        "id": skill.id,
        "user_id": skill.user_id,
        "name": skill.name,
        "description": skill.description,
        "progress": skill.progress,
        "created_at": iso(skill.created_at),
    }


def serialize_goal_resource(resource: GoalResource) -> Dict[str, Any]:
    return {
        "id": resource.id,
        "title": resource.title,
        "platform": resource.platform,
        "link": resource.link,
        "thumbnail": resource.thumbnail or "",
        "duration_seconds": resource.duration_seconds,
        "duration_label": format_duration(resource.duration_seconds),
    }


def serialize_goal(goal: Goal) -> Dict[str, Any]:
    """Requires ``skills`` and ``resources`` to be loaded."""
    return {
        "id": goal.id,
        "user_id": goal.user_id,
        "title": goal.title,
        "description": goal.description,
        "associated_skills": [serialize_skill(skill) for skill in goal.skills],
        "start_date": iso(goal.start_date),
        "target_completion_date": iso(goal.target_completion_date),
        "status": goal.status,
        "resources": [serialize_goal_resource(resource) for resource in goal.resources],
        "created_at": iso(goal.created_at),
        "updated_at": iso(goal.updated_at),
    }


def serialize_flag(flag: ContentFlag, include_reporter: bool = False) -> Dict[str, Any]:
    payload = {
        "id": flag.id,
        "user_id": flag.user_id,
        "reason": flag.reason,
        "status": flag.status,
        "created_at": iso(flag.created_at),
    }
    if include_reporter:
        payload["reporter"] = user_brief(flag.reporter)
    return payload


def serialize_concern(concern: Concern, include_user: bool = False) -> Dict[str, Any]:
    payload = {
        "id": concern.id,
        "user_id": concern.user_id,
        "subject": concern.subject,
        "message": concern.message,
        "status": concern.status,
        "created_at": iso(concern.created_at),
        "resolved_at": iso(concern.resolved_at),
        "replies": [
            {
                "id": reply.id,
                "message": reply.message,
                "replied_by": reply.replied_by,
                "created_at": iso(reply.created_at),
            }
            for reply in concern.replies
        ],
    }
    if include_user:
        payload["user"] = user_brief(concern.user)
    return payload
