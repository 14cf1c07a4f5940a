from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_roles
from app.core.errors import NotFoundError, ValidationError
from app.db.models.edoffice import CalendarEvent
from app.schemas.edoffice import CalendarEventIn, CalendarEventOut, SuccessOut

router = APIRouter(dependencies=[Depends(require_roles("ed", "edofc"))])


def _require_fields(payload: CalendarEventIn) -> None:
    if not payload.is_complete():
        raise ValidationError("Missing required fields")


async def _get_event(db: AsyncSession, event_id: int) -> CalendarEvent:
    event = await db.get(CalendarEvent, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return event


@router.get("", response_model=list[CalendarEventOut])
async def list_events(db: AsyncSession = Depends(get_db)) -> list[CalendarEventOut]:
    result = await db.execute(select(CalendarEvent).order_by(CalendarEvent.start_time))
    return [CalendarEventOut.model_validate(e) for e in result.scalars().all()]


@router.post("", response_model=CalendarEventOut, status_code=status.HTTP_201_CREATED)
async def create_event(payload: CalendarEventIn, db: AsyncSession = Depends(get_db)) -> CalendarEventOut:
    _require_fields(payload)
    event = CalendarEvent(**payload.model_dump())
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return CalendarEventOut.model_validate(event)


@router.put("/{event_id}", response_model=CalendarEventOut)
async def update_event(
    event_id: int, payload: CalendarEventIn, db: AsyncSession = Depends(get_db)
) -> CalendarEventOut:
    _require_fields(payload)
    event = await _get_event(db, event_id)
    # Full replacement: omitted optional fields are cleared
    for key, value in payload.model_dump().items():
        setattr(event, key, value)
    await db.commit()
    await db.refresh(event)
    return CalendarEventOut.model_validate(event)


@router.delete("/{event_id}", response_model=SuccessOut)
async def delete_event(event_id: int, db: AsyncSession = Depends(get_db)) -> SuccessOut:
    event = await _get_event(db, event_id)
    await db.delete(event)
    await db.commit()
    return SuccessOut(success=True)
