from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.audit import log_audit
from app.core.errors import AppError, NotFoundError, ValidationError
from app.core.logging import logger
from app.core.security import create_access_token, hash_password, verify_password
from app.db.models.auth import User
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenOut,
    UserOut,
)
from app.schemas.common import MessageOut

router = APIRouter()


class InvalidCredentialsError(AppError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__(message="Invalid credentials", code="unauthorized")


def _token_for(user: User) -> TokenOut:
    return TokenOut(
        token=create_access_token(user.id, user.username, user.role),
        user=UserOut.model_validate(user),
    )


@router.post("/login", response_model=TokenOut)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenOut:
    if not payload.username or not payload.password:
        raise ValidationError("Username and password are required")

    result = await db.execute(select(User).where(User.username == payload.username))
    user = result.scalar_one_or_none()
    if user is None or not await run_in_threadpool(
        verify_password, payload.password, user.password_hash
    ):
        logger.info(f"Failed login for '{payload.username}'")
        raise InvalidCredentialsError()

    return _token_for(user)


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)) -> TokenOut:
    existing = await db.execute(
        select(func.count()).select_from(User).where(User.username == payload.username)
    )
    if existing.scalar_one():
        raise ValidationError("Username already exists", details={"username": payload.username})

    # bcrypt runs off the event loop
    password_hash = await run_in_threadpool(hash_password, payload.password)
    user = User(
        username=payload.username,
        password_hash=password_hash,
        role=payload.role.strip().lower() or "user",
    )
    db.add(user)
    await db.flush()
    await log_audit(
        db,
        action="create",
        entity_type="user",
        entity_id=user.id,
        after_json={"username": user.username, "role": user.role},
        actor=user.username,
    )
    await db.commit()
    await db.refresh(user)
    return _token_for(user)


@router.get("/me", response_model=UserOut)
async def me(
    current: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    user = await db.get(User, current.id)
    if user is None:
        raise NotFoundError("User", current.id)
    return UserOut.model_validate(user)


@router.post("/change-password", response_model=MessageOut)
async def change_password(
    payload: ChangePasswordRequest,
    current: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageOut:
    user = await db.get(User, current.id)
    if user is None:
        raise NotFoundError("User", current.id)
    if not await run_in_threadpool(verify_password, payload.current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")

    user.password_hash = await run_in_threadpool(hash_password, payload.new_password)
    await log_audit(
        db,
        action="change_password",
        entity_type="user",
        entity_id=user.id,
        actor=current.username,
    )
    await db.commit()
    return MessageOut(message="Password updated successfully")
