"""Learning resource recommendation and detail services."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from config import settings
from ingestion.youtube import CatalogUnavailableError, YouTubeClient
from models.goal import Goal
from models.skill import Skill
from services.response_cache import ResponseCache, make_cache_key

logger = logging.getLogger(__name__)

NO_SKILLS_MESSAGE = "No skills or goals found. Add some to get recommendations!"


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def build_search_terms(skills: Iterable[Skill], goals: Iterable[Goal]) -> List[str]:
    """Distinct skill names from the user's skills and goal-linked skills, in first-seen order."""
    terms: List[str] = []
    seen = set()
    names = [skill.name for skill in skills]
    for goal in goals:
        names.extend(skill.name for skill in goal.skills)
    for name in names:
        name = (name or "").strip()
        if name and name not in seen:
            seen.add(name)
            terms.append(name)
    return terms


def deduplicate_resources(result_lists: Iterable[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Flatten per-term results keeping one entry per id; the last payload seen wins."""
    by_id: Dict[str, Dict[str, Any]] = {}
    for resources in result_lists:
        for resource in resources or []:
            by_id[resource.get("id")] = resource
    return list(by_id.values())


def filter_resources(
    resources: List[Dict[str, Any]],
    resource_type: Optional[str] = None,
    skill_level: Optional[str] = None,
    platform: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    filtered = list(resources)
    for key, wanted in (("type", resource_type), ("skill_level", skill_level), ("platform", platform)):
        if wanted and wanted != "all":
            filtered = [resource for resource in filtered if resource.get(key) == wanted]

    if search:
        needle = search.lower()
        filtered = [
            resource
            for resource in filtered
            if needle in (resource.get("title") or "").lower()
            or needle in (resource.get("description") or "").lower()
        ]
    return filtered


def engagement_score(resource: Dict[str, Any]) -> int:
    """View count multiplied by like count, with likes floored at 1."""
    views = _safe_int(resource.get("view_count"), 0)
    likes = _safe_int(resource.get("like_count"), 0)
    return views * max(likes, 1)


def sort_by_engagement(resources: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(resources, key=engagement_score, reverse=True)


def paginate(items: List[Any], page: int, page_size: int) -> Dict[str, Any]:
    page = max(int(page), 1)
    page_size = max(int(page_size), 1)
    total_items = len(items)
    start = (page - 1) * page_size
    return {
        "items": items[start:start + page_size],
        "total_items": total_items,
        "total_pages": math.ceil(total_items / page_size),
        "current_page": page,
        "items_per_page": page_size,
    }


async def _search_term(
    client: YouTubeClient,
    cache: ResponseCache,
    semaphore: asyncio.Semaphore,
    term: str,
) -> Dict[str, Any]:
    params = {
        "query": f"{term} tutorial",
        "max_results": settings.RECOMMENDATION_RESULTS_PER_TERM,
        "relevance_language": settings.RESOURCE_SEARCH_LANGUAGE,
        "video_duration": settings.RESOURCE_SEARCH_DURATION,
    }

    async def _fetch() -> Dict[str, Any]:
        async with semaphore:
            return await asyncio.to_thread(client.search_videos, **params)

    return await cache.get_or_fetch(make_cache_key(params), _fetch)


async def fetch_term_resources(
    terms: List[str],
    client: YouTubeClient,
    cache: ResponseCache,
) -> List[List[Dict[str, Any]]]:
    """Search every term concurrently; a failing term contributes an empty list."""
    semaphore = asyncio.Semaphore(max(int(settings.RECOMMENDATION_MAX_CONCURRENCY), 1))
    results = await asyncio.gather(
        *(_search_term(client, cache, semaphore, term) for term in terms),
        return_exceptions=True,
    )

    per_term: List[List[Dict[str, Any]]] = []
    for term, result in zip(terms, results):
        if isinstance(result, BaseException):
            logger.warning("Resource search failed for term '%s': %s", term, result)
            per_term.append([])
            continue
        per_term.append(list(result.get("resources") or []))
    return per_term


async def recommend_resources_service(
    user_id: str,
    db: AsyncSession,
    client_factory: Callable[[], YouTubeClient],
    cache: ResponseCache,
    page: int = 1,
    limit: Optional[int] = None,
    resource_type: Optional[str] = None,
    skill_level: Optional[str] = None,
    platform: Optional[str] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    page_size = int(limit or settings.RECOMMENDATION_PAGE_SIZE)

    skills_result = await db.execute(
        select(Skill).where(Skill.user_id == user_id).order_by(Skill.created_at)
    )
    skills = skills_result.scalars().all()
    goals_result = await db.execute(
        select(Goal)
        .where(Goal.user_id == user_id)
        .options(selectinload(Goal.skills))
        .order_by(Goal.created_at)
    )
    goals = goals_result.scalars().all()

    if not skills and not goals:
        return {
            "resources": [],
            "has_skills_or_goals": False,
            "message": NO_SKILLS_MESSAGE,
            "total_items": 0,
            "total_pages": 0,
            "current_page": page,
        }

    terms = build_search_terms(skills, goals)
    per_term = await fetch_term_resources(terms, client_factory(), cache) if terms else []
    resources = deduplicate_resources(per_term)
    logger.info(
        "recommendations user=%s terms=%d unique_resources=%d",
        user_id,
        len(terms),
        len(resources),
    )

    filtered = filter_resources(
        resources,
        resource_type=resource_type,
        skill_level=skill_level,
        platform=platform,
        search=search,
    )
    paged = paginate(sort_by_engagement(filtered), page, page_size)

    return {
        "resources": paged["items"],
        "has_skills_or_goals": True,
        "total_items": paged["total_items"],
        "total_pages": paged["total_pages"],
        "current_page": paged["current_page"],
        "items_per_page": paged["items_per_page"],
    }


async def get_resource_detail_service(
    resource_id: str,
    client_factory: Callable[[], YouTubeClient],
    cache: ResponseCache,
) -> Dict[str, Any]:
    resource_id = (resource_id or "").strip()
    if not resource_id:
        raise HTTPException(status_code=400, detail="Resource ID is required")

    key = make_cache_key({"video_id": resource_id})
    resource = cache.get(key)
    if resource is None:
        client = client_factory()
        try:
            resource = await asyncio.to_thread(client.get_video, resource_id)
        except CatalogUnavailableError as exc:
            logger.warning("Resource detail lookup failed for %s: %s", resource_id, exc)
            raise HTTPException(status_code=500, detail="Failed to fetch resource details") from exc
        if resource is None:
            raise HTTPException(status_code=404, detail="Resource not found")
        cache.set(key, resource)
    return resource
