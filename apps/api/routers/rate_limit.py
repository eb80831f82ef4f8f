"""Per-client request throttling backed by Redis, with an in-process fallback."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings


# key -> (hits in current window, window reset time)
_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def _client_identifier(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "unknown"


async def _count_locally(key: str, window_seconds: int) -> int:
    now = time.time()
    async with _local_lock:
        hits, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            hits, reset_at = 0, now + window_seconds
        hits += 1
        _local_counters[key] = (hits, reset_at)
        return hits


async def _count_in_redis(key: str, window_seconds: int) -> int:
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        hits = await client.incr(key)
        if hits == 1:
            await client.expire(key, window_seconds)
        return int(hits)
    finally:
        await client.aclose()


def rate_limit(scope: str, limit: int, window_seconds: int) -> Callable:
    """Return a FastAPI dependency allowing ``limit`` calls per client per window."""

    async def _dependency(request: Request) -> None:
        if getattr(request.app.state, "disable_rate_limits", False):
            return

        key = f"skillify:rate:{scope}:{_client_identifier(request)}"
        try:
            hits = await _count_in_redis(key, window_seconds)
        except Exception:
            hits = await _count_locally(key, window_seconds)

        if hits > limit:
            raise HTTPException(
                status_code=429,
                detail=f"Too many {scope} requests. Try again later.",
                headers={"Retry-After": str(window_seconds)},
            )

    return _dependency
