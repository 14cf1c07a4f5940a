from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_roles
from app.core.errors import NotFoundError, ValidationError
from app.db.models.edoffice import Talk
from app.schemas.edoffice import TalkIn, TalkOut

router = APIRouter(dependencies=[Depends(require_roles("edofc"))])


def _require_all(payload: TalkIn) -> None:
    if not payload.is_complete():
        raise ValidationError("All fields are required")


async def _get_talk(db: AsyncSession, talk_id: int) -> Talk:
    talk = await db.get(Talk, talk_id)
    if talk is None:
        raise NotFoundError("Talk", talk_id)
    return talk


@router.get("", response_model=list[TalkOut])
async def list_talks(db: AsyncSession = Depends(get_db)) -> list[TalkOut]:
    result = await db.execute(select(Talk).order_by(Talk.talk_date.desc()))
    return [TalkOut.model_validate(t) for t in result.scalars().all()]


@router.get("/{talk_id}", response_model=TalkOut)
async def get_talk(talk_id: int, db: AsyncSession = Depends(get_db)) -> TalkOut:
    return TalkOut.model_validate(await _get_talk(db, talk_id))


@router.post("", response_model=TalkOut, status_code=status.HTTP_201_CREATED)
async def create_talk(payload: TalkIn, db: AsyncSession = Depends(get_db)) -> TalkOut:
    _require_all(payload)
    talk = Talk(**payload.model_dump())
    db.add(talk)
    await db.commit()
    await db.refresh(talk)
    return TalkOut.model_validate(talk)


@router.put("/{talk_id}", response_model=TalkOut)
async def update_talk(talk_id: int, payload: TalkIn, db: AsyncSession = Depends(get_db)) -> TalkOut:
    _require_all(payload)
    talk = await _get_talk(db, talk_id)
    for key, value in payload.model_dump().items():
        setattr(talk, key, value)
    await db.commit()
    await db.refresh(talk)
    return TalkOut.model_validate(talk)


@router.delete("/{talk_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_talk(talk_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    talk = await _get_talk(db, talk_id)
    await db.delete(talk)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
