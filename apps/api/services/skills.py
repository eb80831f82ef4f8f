"""Skill tracking services."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from models.goal import Goal, goal_skills
from models.skill import Skill
from services.serializers import serialize_skill

logger = logging.getLogger(__name__)

MIN_MATCH_KEYWORD_LENGTH = 4


def contains_pattern(text: str) -> str:
    """LIKE pattern matching ``text`` anywhere, with wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def get_owned_skill(user_id: str, skill_id: str, db: AsyncSession) -> Skill:
    result = await db.execute(select(Skill).where(Skill.id == skill_id, Skill.user_id == user_id))
    skill = result.scalar_one_or_none()
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")
    return skill


async def list_skills_service(user_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(Skill).where(Skill.user_id == user_id).order_by(Skill.created_at)
    )
    return [serialize_skill(skill) for skill in result.scalars().all()]


async def create_skill_service(user_id: str, payload: Dict[str, Any], db: AsyncSession) -> Dict[str, Any]:
    name = str(payload.get("name") or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Skill name is required")

    skill = Skill(user_id=user_id, name=name)
    if payload.get("description"):
        skill.description = payload["description"]
    if payload.get("progress") is not None:
        skill.progress = int(payload["progress"])
    db.add(skill)
    await db.commit()
    logger.info("skill_created user=%s skill=%s", user_id, skill.id)
    return serialize_skill(skill)


async def update_skill_service(
    user_id: str,
    skill_id: str,
    payload: Dict[str, Any],
    db: AsyncSession,
) -> Dict[str, Any]:
    skill = await get_owned_skill(user_id, skill_id, db)
    if "name" in payload:
        name = str(payload["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Skill name cannot be empty")
        skill.name = name
    if "description" in payload and payload["description"] is not None:
        skill.description = payload["description"]
    if "progress" in payload and payload["progress"] is not None:
        skill.progress = int(payload["progress"])
    await db.commit()
    return serialize_skill(skill)


async def delete_skill_service(user_id: str, skill_id: str, db: AsyncSession) -> Dict[str, Any]:
    """Delete a skill and every goal referencing it in one transaction."""
    skill = await get_owned_skill(user_id, skill_id, db)

    goals_result = await db.execute(
        select(Goal)
        .join(goal_skills, goal_skills.c.goal_id == Goal.id)
        .where(goal_skills.c.skill_id == skill.id)
        .options(selectinload(Goal.skills), selectinload(Goal.resources))
    )
    goals = goals_result.scalars().unique().all()

    try:
        for goal in goals:
            await db.delete(goal)
        await db.flush()
        await db.delete(skill)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Skill cascade delete failed for skill %s", skill_id)
        raise

    logger.info("skill_deleted user=%s skill=%s goals_removed=%d", user_id, skill_id, len(goals))
    return {
        "message": "Skill and associated goals deleted successfully",
        "deleted_goal_ids": [goal.id for goal in goals],
    }


async def match_skills_service(user_id: str, keywords: Optional[str], db: AsyncSession) -> List[Dict[str, Any]]:
    if not keywords:
        raise HTTPException(status_code=400, detail="Keywords parameter is required")

    terms = [
        keyword.strip()
        for keyword in keywords.split(",")
        if len(keyword.strip()) >= MIN_MATCH_KEYWORD_LENGTH
    ]
    if not terms:
        return []

    result = await db.execute(
        select(Skill).where(
            Skill.user_id == user_id,
            or_(*(Skill.name.ilike(contains_pattern(term), escape="\\") for term in terms)),
        )
    )
    return [serialize_skill(skill) for skill in result.scalars().all()]
