"""Session and password-reset token helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "skillify_session"
RESET_TOKEN_TYPE = "skillify_password_reset"


def create_session_token(
    user_id: str,
    email: Optional[str] = None,
    role: str = "user",
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a signed session token payload for API authentication."""
    now = datetime.now(timezone.utc)
    ttl_hours = int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24)
    expires_at = now + timedelta(hours=max(ttl_hours, 1))
    claims: Dict[str, Any] = {
        "sub": user_id,
        "role": role or "user",
        "type": SESSION_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if email:
        claims["email"] = email

    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {
        "token": token,
        "expires_at": int(expires_at.timestamp()),
    }


def _decode(token: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired token.") from exc

    token_type = str(payload.get("type", "")).strip()
    if token_type != expected_type:
        raise ValueError("Invalid token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Token missing subject.")

    return payload


def decode_session_token(token: str) -> Dict[str, Any]:
    """Decode and validate a signed session token."""
    return _decode(token, SESSION_TOKEN_TYPE)


def create_password_reset_token(user_id: str, ttl_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    minutes = int(ttl_minutes or settings.PASSWORD_RESET_TOKEN_MINUTES or 15)
    claims = {
        "sub": user_id,
        "type": RESET_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=max(minutes, 1))).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_password_reset_token(token: str) -> str:
    """Return the user id a reset token was issued for."""
    return str(_decode(token, RESET_TOKEN_TYPE)["sub"])
