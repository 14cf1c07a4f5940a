from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.config import settings
from app.core.errors import NotFoundError
from app.db.models.notifications import Notification
from app.schemas.notifications import NotificationCheckOut, NotificationCheckRequest, NotificationOut
from app.services.notifications import NotificationService

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> list[NotificationOut]:
    stmt = select(Notification)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    result = await db.execute(stmt.order_by(Notification.due_date, Notification.id))
    return [NotificationOut.model_validate(n) for n in result.scalars().all()]


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: int, db: AsyncSession = Depends(get_db)) -> NotificationOut:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    notification.is_read = True
    await db.commit()
    return NotificationOut.model_validate(notification)


@router.post("/check", response_model=NotificationCheckOut)
async def run_check(
    payload: NotificationCheckRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> NotificationCheckOut:
    """Run the expiry check now instead of waiting for the scheduler."""
    payload = payload or NotificationCheckRequest()
    created = await NotificationService(db).check_expiring_items(
        today=payload.today,
        lookahead_days=(
            payload.lookahead_days
            if payload.lookahead_days is not None
            else settings.notification_lookahead_days
        ),
    )
    return NotificationCheckOut(created=created)
