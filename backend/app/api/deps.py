from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationError, PermissionDeniedError
from app.core.security import InvalidTokenError, decode_access_token
from app.db.models.hr import TechnicalGroup
from app.db.session import get_db

__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_db",
    "get_technical_group",
    "require_roles",
    "restrict_to_own_group",
]

# auto_error=False: a missing header is answered with our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity decoded from the bearer token."""

    id: int
    username: str
    role: str


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise PermissionDeniedError("Invalid or expired token") from exc
    return CurrentUser(id=payload["userId"], username=payload["username"], role=payload["role"])


def require_roles(*roles: str) -> Callable[..., Awaitable[CurrentUser]]:
    """Dependency factory: the caller's role must be one of `roles` (case-insensitive)."""
    allowed = {role.lower() for role in roles}

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role.lower() not in allowed:
            raise PermissionDeniedError()
        return user

    return dependency


async def get_technical_group(
    user: CurrentUser = Depends(require_roles("tg")),
    db: AsyncSession = Depends(get_db),
) -> TechnicalGroup:
    """Technical group of a `tg` user: the group whose name equals the username."""
    result = await db.execute(
        select(TechnicalGroup).where(func.lower(TechnicalGroup.group_name) == user.username.lower())
    )
    group = result.scalar_one_or_none()
    if group is None:
        raise PermissionDeniedError("No technical group is linked to this account")
    return group


def restrict_to_own_group(stmt, user: CurrentUser, group_column):
    """For a `tg` user, keep only rows whose `group_column` is the user's group."""
    if user.role.lower() != "tg":
        return stmt
    return stmt.join(TechnicalGroup, TechnicalGroup.group_id == group_column).where(
        func.lower(TechnicalGroup.group_name) == user.username.lower()
    )
