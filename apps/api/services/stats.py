"""Admin reporting, platform-wide listings and overdue goal reminders."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import distinct, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from config import settings
from database import utcnow
from models.content_flag import ContentFlag
from models.goal import Goal
from models.post import Post
from models.skill import Skill
from models.user import User
from services.forum import comments_count_expr, likes_count_expr
from services.notifications import create_notification
from services.serializers import iso, serialize_goal, serialize_skill, user_brief

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return int(result.scalar() or 0)


async def admin_reports_service(db: AsyncSession) -> Dict[str, Any]:
    now = utcnow()
    active_since = now - timedelta(days=settings.ACTIVE_USER_WINDOW_DAYS)
    new_since = now - timedelta(days=settings.NEW_USER_WINDOW_DAYS)

    total_users = await _count(db, select(func.count(User.id)))
    active_users = await _count(db, select(func.count(User.id)).where(User.last_active_time >= active_since))
    new_users = await _count(db, select(func.count(User.id)).where(User.created_at >= new_since))

    total_skills = await _count(db, select(func.count(Skill.id)))
    total_goals = await _count(db, select(func.count(Goal.id)))
    completed_goals = await _count(db, select(func.count(Goal.id)).where(Goal.status == "Completed"))
    completion_rate = round(completed_goals / total_goals * 100, 2) if total_goals else 0

    total_posts = await _count(db, select(func.count(Post.id)))
    likes_count = likes_count_expr().label("likes_count")
    comments_count = comments_count_expr().label("comments_count")
    popular = await db.execute(
        select(Post.id, Post.title, likes_count, comments_count)
        .order_by(likes_count.desc(), comments_count.desc(), Post.created_at.desc())
        .limit(1)
    )
    top = popular.first()
    most_popular_post = None
    if top is not None:
        most_popular_post = {
            "id": top.id,
            "title": top.title,
            "likes_count": int(top.likes_count or 0),
            "comments_count": int(top.comments_count or 0),
        }

    flagged_posts = await _count(
        db,
        select(func.count(distinct(ContentFlag.post_id))).where(
            ContentFlag.status == "pending",
            ContentFlag.comment_id.is_(None),
        ),
    )

    return {
        "users": {"total_users": total_users, "active_users": active_users, "new_users": new_users},
        "skills_goals": {
            "total_skills": total_skills,
            "total_goals": total_goals,
            "goal_completion_rate": completion_rate,
        },
        "forum": {
            "total_posts": total_posts,
            "most_popular_post": most_popular_post,
            "flagged_posts": flagged_posts,
        },
    }


async def users_activity_service(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(select(User.id, User.last_active_time).order_by(User.created_at))
    return [{"id": row.id, "last_active_time": iso(row.last_active_time)} for row in result.all()]


async def all_goals_service(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(Goal)
        .options(selectinload(Goal.skills), selectinload(Goal.resources))
        .order_by(Goal.created_at)
    )
    return [serialize_goal(goal) for goal in result.scalars().all()]


async def skills_goals_overview_service(db: AsyncSession) -> Dict[str, Any]:
    """Every user with their skills and goals, for the admin dashboard."""
    users_result = await db.execute(select(User).order_by(User.created_at))
    users = users_result.scalars().all()
    skills_result = await db.execute(select(Skill).options(selectinload(Skill.user)).order_by(Skill.created_at))
    goals_result = await db.execute(
        select(Goal)
        .options(selectinload(Goal.user), selectinload(Goal.skills), selectinload(Goal.resources))
        .order_by(Goal.created_at)
    )

    skills = []
    for skill in skills_result.scalars().all():
        item = serialize_skill(skill)
        item["user"] = user_brief(skill.user)
        skills.append(item)

    goals = []
    for goal in goals_result.scalars().all():
        item = serialize_goal(goal)
        item["user"] = user_brief(goal.user)
        goals.append(item)

    return {
        "users": [user_brief(user) for user in users],
        "skills": skills,
        "goals": goals,
    }


async def notify_overdue_goals_service(db: AsyncSession) -> Dict[str, Any]:
    today = utcnow().date()
    result = await db.execute(
        select(Goal).where(Goal.target_completion_date < today, Goal.status != "Completed")
    )
    overdue = result.scalars().all()
    if not overdue:
        return {"message": "No overdue goals found", "notified": 0}

    for goal in overdue:
        create_notification(db, goal.user_id, f"Your goal \"{goal.title}\" is overdue! Please take action.")
    await db.commit()
    logger.info("overdue_goal_notifications count=%d", len(overdue))
    return {"message": f"{len(overdue)} notifications sent successfully.", "notified": len(overdue)}
