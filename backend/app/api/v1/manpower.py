from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.core.errors import NotFoundError
from app.db.models.acts import ManpowerCount
from app.schemas.acts import ManpowerIn, ManpowerOut
from app.schemas.common import MessageOut

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _get_record(db: AsyncSession, record_id: int) -> ManpowerCount:
    record = await db.get(ManpowerCount, record_id)
    if record is None:
        raise NotFoundError("Manpower record", record_id)
    return record


@router.get("", response_model=list[ManpowerOut])
async def list_manpower(db: AsyncSession = Depends(get_db)) -> list[ManpowerOut]:
    result = await db.execute(
        select(ManpowerCount).order_by(ManpowerCount.created_at.desc(), ManpowerCount.id.desc())
    )
    return [ManpowerOut.model_validate(m) for m in result.scalars().all()]


@router.post("", response_model=ManpowerOut, status_code=status.HTTP_201_CREATED)
async def create_manpower(payload: ManpowerIn, db: AsyncSession = Depends(get_db)) -> ManpowerOut:
    record = ManpowerCount(**payload.model_dump())
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return ManpowerOut.model_validate(record)


@router.put("/{record_id}", response_model=ManpowerOut)
async def update_manpower(record_id: int, payload: ManpowerIn, db: AsyncSession = Depends(get_db)) -> ManpowerOut:
    record = await _get_record(db, record_id)
    for key, value in payload.model_dump().items():
        setattr(record, key, value)
    await db.commit()
    await db.refresh(record)
    return ManpowerOut.model_validate(record)


@router.delete("/{record_id}", response_model=MessageOut)
async def delete_manpower(record_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    record = await _get_record(db, record_id)
    await db.delete(record)
    await db.commit()
    return MessageOut(message="Manpower record deleted successfully")
