"""
Learning resource router: personalised recommendations and item details.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import require_youtube_api_key, settings
from database import get_db
from ingestion.youtube import YouTubeClient
from routers.auth_scope import AuthContext, get_active_auth_context
from routers.rate_limit import rate_limit
from services.recommendations import get_resource_detail_service, recommend_resources_service
from services.response_cache import ResponseCache

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_youtube_client() -> YouTubeClient:
    """Get YouTube client using API key."""
    from ingestion.youtube import create_youtube_client_with_api_key

    try:
        api_key = require_youtube_api_key()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail="YouTube API key not configured") from exc
    return create_youtube_client_with_api_key(api_key)


def _cache(request: Request, name: str, ttl_seconds: int) -> ResponseCache:
    cache = getattr(request.app.state, name, None)
    if cache is None:
        cache = ResponseCache(ttl_seconds, max_entries=settings.RESOURCE_CACHE_MAX_ENTRIES)
        setattr(request.app.state, name, cache)
    return cache


@router.get("/recommended")
async def recommended_resources(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    type: Optional[str] = Query(default=None),
    skill_level: Optional[str] = Query(default=None),
    platform: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    _rate_limit: None = Depends(rate_limit("recommendations", limit=60, window_seconds=60)),
    auth: AuthContext = Depends(get_active_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """Recommended tutorials for the caller's skills and goal skills."""
    cache = _cache(request, "resource_search_cache", settings.RESOURCE_SEARCH_CACHE_TTL_SECONDS)
    try:
        return await recommend_resources_service(
            user_id=auth.user_id,
            db=db,
            client_factory=_get_youtube_client,
            cache=cache,
            page=page,
            limit=limit,
            resource_type=type,
            skill_level=skill_level,
            platform=platform,
            search=search,
        )
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Recommendation request failed for user %s: %s", auth.user_id, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch resources. Please try again later.")


@router.get("/{resource_id}")
async def resource_detail(
    resource_id: str,
    request: Request,
    auth: AuthContext = Depends(get_active_auth_context),
) -> Dict[str, Any]:
    cache = _cache(request, "resource_detail_cache", settings.RESOURCE_DETAIL_CACHE_TTL_SECONDS)
    return await get_resource_detail_service(resource_id, _get_youtube_client, cache)
