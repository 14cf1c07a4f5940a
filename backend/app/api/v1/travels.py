from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_db, require_roles
from app.core.audit import log_audit, snapshot
from app.core.errors import NotFoundError, ValidationError, integrity_kind
from app.core.logging import logger
from app.db.enums import TravelStatus
from app.db.models.edoffice import Travel
from app.schemas.common import MessageOut
from app.schemas.edoffice import (
    DEPUTING_REMARKS_REQUIRED,
    TravelCreate,
    TravelOut,
    TravelStatusUpdate,
    TravelUpdate,
)

"""
ED office travels (/api/travels). Only the ed and edofc roles get through.
"""

travel_access = require_roles("ed", "edofc")
router = APIRouter(dependencies=[Depends(travel_access)])

INVALID_TRAVEL = "Invalid travel type or dates"
AUDIT_FIELDS = ["travel_type", "location", "onward_date", "return_date", "status", "remarks"]


def _travel_out(travel: Travel) -> TravelOut:
    return TravelOut(
        id=travel.id,
        travel_type=travel.travel_type,
        location=travel.location,
        onward_date=travel.onward_date,
        return_date=travel.return_date,
        purpose=travel.purpose,
        accommodation=travel.accommodation,
        remarks=travel.remarks,
        deputing_remarks=travel.remarks,
        status=travel.status,
        created_at=travel.created_at,
        updated_at=travel.updated_at,
    )


async def _get_travel(db: AsyncSession, travel_id: int) -> Travel:
    travel = await db.get(Travel, travel_id)
    if travel is None:
        raise NotFoundError("Travel", travel_id)
    return travel


async def _commit_travel(db: AsyncSession, travel: Travel) -> None:
    """Commit, reporting check-constraint violations as a 400."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if integrity_kind(e) == "check":
            raise ValidationError(INVALID_TRAVEL)
        raise
    await db.refresh(travel)


@router.get("", response_model=list[TravelOut])
async def list_travels(db: AsyncSession = Depends(get_db)) -> list[TravelOut]:
    result = await db.execute(select(Travel).order_by(Travel.onward_date.desc()))
    return [_travel_out(t) for t in result.scalars().all()]


@router.get("/{travel_id}", response_model=TravelOut)
async def get_travel(travel_id: int, db: AsyncSession = Depends(get_db)) -> TravelOut:
    return _travel_out(await _get_travel(db, travel_id))


@router.post("", response_model=TravelOut, status_code=status.HTTP_201_CREATED)
async def create_travel(
    payload: TravelCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(travel_access),
) -> TravelOut:
    travel = Travel(**payload.model_dump())
    db.add(travel)
    await db.flush()
    await log_audit(
        db, "create", "travel", travel.id,
        after_json=snapshot(travel, AUDIT_FIELDS), actor=user.username,
    )
    await _commit_travel(db, travel)
    logger.info(f"Travel {travel.id} to {travel.location} created by {user.username}")
    return _travel_out(travel)


@router.put("/{travel_id}", response_model=TravelOut)
async def update_travel(
    travel_id: int,
    payload: TravelUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(travel_access),
) -> TravelOut:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    for key in ("travel_type", "location", "onward_date", "return_date", "purpose", "status"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    travel = await _get_travel(db, travel_id)
    if changes.get("return_date", travel.return_date) < changes.get("onward_date", travel.onward_date):
        raise ValidationError(INVALID_TRAVEL)
    new_status = changes.get("status", travel.status)
    if new_status == TravelStatus.DEPUTING and not changes.get("remarks", travel.remarks):
        raise ValidationError(DEPUTING_REMARKS_REQUIRED)

    before = snapshot(travel, AUDIT_FIELDS)
    for key, value in changes.items():
        setattr(travel, key, value)
    await log_audit(
        db, "update", "travel", travel_id,
        before_json=before, after_json=snapshot(travel, AUDIT_FIELDS), actor=user.username,
    )
    await _commit_travel(db, travel)
    return _travel_out(travel)


@router.delete("/{travel_id}", response_model=MessageOut)
async def delete_travel(
    travel_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(travel_access),
) -> MessageOut:
    travel = await _get_travel(db, travel_id)
    await log_audit(
        db, "delete", "travel", travel_id,
        before_json=snapshot(travel, AUDIT_FIELDS), actor=user.username,
    )
    await db.delete(travel)
    await db.commit()
    return MessageOut(message="Travel deleted successfully")


@router.patch("/{travel_id}/status", response_model=TravelOut)
async def update_travel_status(
    travel_id: int,
    payload: TravelStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(travel_access),
) -> TravelOut:
    # payload is validated (deputing needs remarks) before any database access
    travel = await _get_travel(db, travel_id)
    before = snapshot(travel, AUDIT_FIELDS)
    travel.status = payload.status
    travel.remarks = payload.deputing_remarks or None
    await log_audit(
        db, "status_change", "travel", travel_id,
        before_json=before, after_json=snapshot(travel, AUDIT_FIELDS), actor=user.username,
    )
    await db.commit()
    await db.refresh(travel)
    logger.info(f"Travel {travel_id} status -> {payload.status.value} by {user.username}")
    return _travel_out(travel)
