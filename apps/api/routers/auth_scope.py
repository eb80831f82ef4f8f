"""Authentication dependencies for API user scoping."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db, utcnow
from models.user import User
from services.session_token import decode_session_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user_id: str
    email: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthContext:
    """Resolve authenticated user from Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return AuthContext(
        user_id=str(payload.get("sub", "")),
        email=str(payload.get("email", "")) or None,
        role=str(payload.get("role", "user")) or "user",
    )


async def require_admin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Reject sessions without the admin role claim."""
    if not auth.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden: Admins only")
    return auth


async def get_active_auth_context(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Authenticate and record the caller's last activity time."""
    result = await db.execute(
        update(User).where(User.id == auth.user_id).values(last_active_time=utcnow())
    )
    if result.rowcount == 0:
        await db.rollback()
        raise HTTPException(status_code=401, detail="Session user no longer exists.")
    await db.commit()
    return auth
