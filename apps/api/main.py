"""
Skillify - FastAPI Backend
Main application entry point with health check and API routing.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import settings, validate_security_settings
from database import async_session_maker, engine, Base
import models  # noqa: F401
from routers import (
    health,
    auth,
    profile,
    skills,
    goals,
    resources,
    posts,
    admin,
    concerns,
    notifications,
    stats,
    users_admin,
)
from services.activity import check_inactive_users
from services.response_cache import ResponseCache

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

UPLOAD_ROOT = Path(settings.UPLOAD_DIR)
UPLOAD_ROOT.mkdir(parents=True, exist_ok=True)


async def _periodic_inactivity_check() -> None:
    interval_minutes = max(int(settings.INACTIVITY_CHECK_INTERVAL_MINUTES), 0)
    if interval_minutes <= 0:
        return
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            async with async_session_maker() as db:
                alerted = await check_inactive_users(db)
            if alerted:
                print(f"🔔 Inactivity check: alerted={alerted}")
        except Exception as exc:
            print(f"⚠️ Inactivity check tick failed: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Skillify API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    inactivity_task = None
    if int(settings.INACTIVITY_CHECK_INTERVAL_MINUTES) > 0:
        inactivity_task = asyncio.create_task(_periodic_inactivity_check())
        print(
            "📅 Inactivity alert loop enabled "
            f"(every {int(settings.INACTIVITY_CHECK_INTERVAL_MINUTES)} min)."
        )
    yield
    # Shutdown
    if inactivity_task is not None:
        inactivity_task.cancel()
        try:
            await inactivity_task
        except asyncio.CancelledError:
            pass
    print("👋 Shutting down API...")


app = FastAPI(
    title="Skillify API",
    description="Track skills and goals, discover learning resources and discuss them",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.resource_search_cache = ResponseCache(
    settings.RESOURCE_SEARCH_CACHE_TTL_SECONDS,
    max_entries=settings.RESOURCE_CACHE_MAX_ENTRIES,
)
app.state.resource_detail_cache = ResponseCache(
    settings.RESOURCE_DETAIL_CACHE_TTL_SECONDS,
    max_entries=settings.RESOURCE_CACHE_MAX_ENTRIES,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Profile photos are served from here
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_ROOT)), name="uploads")

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, tags=["Authentication"])
app.include_router(profile.router, tags=["Profile"])
app.include_router(skills.router, prefix="/skills", tags=["Skills"])
app.include_router(goals.router, prefix="/goals", tags=["Goals"])
app.include_router(resources.router, prefix="/resources", tags=["Resources"])
app.include_router(posts.router, prefix="/posts", tags=["Forum"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
app.include_router(concerns.router, prefix="/concerns", tags=["Concerns"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(stats.router, prefix="/stats", tags=["Stats"])
app.include_router(users_admin.router, prefix="/users-admin", tags=["User Management"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Skillify API",
        "version": "0.1.0",
        "status": "running"
    }
