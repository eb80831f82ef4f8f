"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./skillify.db"
    AUTO_CREATE_DB_SCHEMA: bool = True

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8800
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # YouTube
    YOUTUBE_API_KEY: str = ""
    RESOURCE_SEARCH_CACHE_TTL_SECONDS: int = 3600
    RESOURCE_DETAIL_CACHE_TTL_SECONDS: int = 1800
    RESOURCE_CACHE_MAX_ENTRIES: int = 256
    RESOURCE_SEARCH_LANGUAGE: str = "en"
    RESOURCE_SEARCH_DURATION: str = "medium"
    RECOMMENDATION_RESULTS_PER_TERM: int = 50
    RECOMMENDATION_PAGE_SIZE: int = 9
    RECOMMENDATION_MAX_CONCURRENCY: int = 8

    # Uploads
    UPLOAD_DIR: str = "uploads"
    PROFILE_PHOTO_MAX_BYTES: int = 5 * 1024 * 1024

    # Activity
    ACTIVE_USER_WINDOW_DAYS: int = 7
    NEW_USER_WINDOW_DAYS: int = 30
    DEFAULT_ACTIVITY_ALERT_DAYS: int = 30
    INACTIVITY_CHECK_INTERVAL_MINUTES: int = 1440

    # Security
    JWT_SECRET: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24
    PASSWORD_RESET_TOKEN_MINUTES: int = 15

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


def require_youtube_api_key() -> str:
    """Return configured YouTube API key or raise a configuration error."""
    api_key = (settings.YOUTUBE_API_KEY or "").strip()
    if not api_key:
        raise ValueError("YOUTUBE_API_KEY is not configured")
    return api_key


def validate_security_settings() -> None:
    """Fail fast when insecure default secrets are still configured."""
    insecure_values = {
        "",
        "change_me_in_production",
        "your_jwt_secret_change_in_production",
    }
    jwt_secret = (settings.JWT_SECRET or "").strip()

    if jwt_secret in insecure_values or len(jwt_secret) < 24:
        raise ValueError("JWT_SECRET is insecure. Configure a strong non-default secret (>=24 chars).")
