"""Goal tracking and goal-resource linking services."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from ingestion.youtube import parse_iso8601_duration
from models.goal import Goal, goal_skills
from models.goal_resource import GoalResource
from models.skill import Skill
from services.serializers import serialize_goal
from services.skills import contains_pattern

logger = logging.getLogger(__name__)

DATE_ORDER_MESSAGE = "Target completion date must be on or after the start date."
GOAL_FIELDS = ("title", "description", "status")


def _goal_query():
    return select(Goal).options(selectinload(Goal.skills), selectinload(Goal.resources))


def coerce_duration_seconds(value: Any) -> int:
    """Accept seconds or an ISO 8601 duration string."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    text = str(value).strip()
    if text.startswith("PT"):
        return parse_iso8601_duration(text)
    if text.isdigit():
        return int(text)
    return 0


def ensure_date_order(start_date: date, target_date: date) -> None:
    if target_date < start_date:
        raise HTTPException(status_code=400, detail=DATE_ORDER_MESSAGE)


async def get_owned_goal(user_id: str, goal_id: str, db: AsyncSession) -> Goal:
    result = await db.execute(
        _goal_query()
        .where(Goal.id == goal_id, Goal.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    goal = result.scalar_one_or_none()
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


async def _load_owned_skills(user_id: str, skill_ids: List[str], db: AsyncSession) -> List[Skill]:
    wanted = list(dict.fromkeys(skill_ids or []))
    if not wanted:
        return []
    result = await db.execute(select(Skill).where(Skill.id.in_(wanted), Skill.user_id == user_id))
    skills = {skill.id: skill for skill in result.scalars().all()}
    missing = [skill_id for skill_id in wanted if skill_id not in skills]
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown skill ids: {', '.join(missing)}")
    return [skills[skill_id] for skill_id in wanted]


async def list_goals_service(user_id: str, db: AsyncSession, skill_id: Optional[str] = None) -> List[Dict[str, Any]]:
    query = _goal_query().where(Goal.user_id == user_id)
    if skill_id:
        query = query.join(goal_skills, goal_skills.c.goal_id == Goal.id).where(goal_skills.c.skill_id == skill_id)
    result = await db.execute(query.order_by(Goal.created_at))
    return [serialize_goal(goal) for goal in result.scalars().unique().all()]


async def create_goal_service(user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    title = str(payload.get("title") or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Goal title is required")
    start_date = payload.get("start_date")
    target_date = payload.get("target_completion_date")
    if start_date is None or target_date is None:
        raise HTTPException(status_code=400, detail="Start date and target completion date are required")
    ensure_date_order(start_date, target_date)

    skills = await _load_owned_skills(user_id, payload.get("associated_skills") or [], db)
    goal = Goal(
        user_id=user_id,
        title=title,
        start_date=start_date,
        target_completion_date=target_date,
        status=payload.get("status") or "Pending",
        skills=skills,
        resources=[],
    )
    if payload.get("description"):
        goal.description = payload["description"]

    seen_links = set()
    for resource_data in payload.get("resources") or []:
        resource = _build_resource(resource_data)
        if resource.link in seen_links:
            continue
        seen_links.add(resource.link)
        goal.resources.append(resource)

    db.add(goal)
    await db.commit()
    logger.info("goal_created user=%s goal=%s skills=%d", user_id, goal.id, len(skills))
    return serialize_goal(await get_owned_goal(user_id, goal.id, db))


async def update_goal_service(
    user_id: str,
    goal_id: str,
    payload: Dict[str, Any],
    db: AsyncSession,
) -> Dict[str, Any]:
    goal = await get_owned_goal(user_id, goal_id, db)

    start_date = payload.get("start_date") or goal.start_date
    target_date = payload.get("target_completion_date") or goal.target_completion_date
    ensure_date_order(start_date, target_date)
    goal.start_date = start_date
    goal.target_completion_date = target_date

    for field in GOAL_FIELDS:
        if payload.get(field) is not None:
            setattr(goal, field, payload[field])
    if "associated_skills" in payload and payload["associated_skills"] is not None:
        goal.skills = await _load_owned_skills(user_id, payload["associated_skills"], db)

    await db.commit()
    return serialize_goal(await get_owned_goal(user_id, goal_id, db))


async def delete_goal_service(user_id: str, goal_id: str, db: AsyncSession) -> Dict[str, Any]:
    goal = await get_owned_goal(user_id, goal_id, db)
    await db.delete(goal)
    await db.commit()
    return {"message": "Goal deleted successfully"}


def _build_resource(resource_data: Dict[str, Any]) -> GoalResource:
    data = resource_data or {}
    title = str(data.get("title") or "").strip()
    platform = str(data.get("platform") or "").strip()
    link = str(data.get("link") or "").strip()
    if not title or not platform or not link:
        raise HTTPException(status_code=400, detail="Required resource data missing")
    return GoalResource(
        title=title,
        platform=platform,
        link=link,
        thumbnail=data.get("thumbnail") or "",
        duration_seconds=coerce_duration_seconds(data.get("duration")),
    )


async def link_resource_service(
    user_id: str,
    goal_id: str,
    resource_data: Optional[Dict[str, Any]],
    db: AsyncSession,
) -> Dict[str, Any]:
    resource = _build_resource(resource_data or {})
    goal = await get_owned_goal(user_id, goal_id, db)

    if any(existing.link == resource.link for existing in goal.resources):
        raise HTTPException(status_code=400, detail="Resource already linked to this goal")

    goal.resources.append(resource)
    await db.commit()
    logger.info("goal_resource_linked user=%s goal=%s link=%s", user_id, goal_id, resource.link)
    return serialize_goal(await get_owned_goal(user_id, goal_id, db))


async def unlink_resource_service(
    user_id: str,
    goal_id: str,
    resource_link: str,
    db: AsyncSession,
) -> Dict[str, Any]:
    goal = await get_owned_goal(user_id, goal_id, db)
    for resource in [item for item in goal.resources if item.link == resource_link]:
        goal.resources.remove(resource)
    await db.commit()
    return serialize_goal(await get_owned_goal(user_id, goal_id, db))


async def match_goals_for_resource_service(
    user_id: str,
    title: Optional[str],
    db: AsyncSession,
) -> List[Dict[str, Any]]:
    """Goals whose skills share a keyword with a resource title."""
    if not title:
        raise HTTPException(status_code=400, detail="Title parameter is required")

    keywords = [keyword for keyword in re.split(r"\s+", title.lower().strip()) if keyword]
    if not keywords:
        raise HTTPException(status_code=400, detail="No valid keywords provided")

    skills_result = await db.execute(
        select(Skill.id).where(
            Skill.user_id == user_id,
            or_(*(Skill.name.ilike(contains_pattern(keyword), escape="\\") for keyword in keywords)),
        )
    )
    skill_ids = skills_result.scalars().all()
    if not skill_ids:
        return []

    result = await db.execute(
        _goal_query()
        .join(goal_skills, goal_skills.c.goal_id == Goal.id)
        .where(Goal.user_id == user_id, goal_skills.c.skill_id.in_(skill_ids))
        .order_by(Goal.created_at)
    )
    return [serialize_goal(goal) for goal in result.scalars().unique().all()]
