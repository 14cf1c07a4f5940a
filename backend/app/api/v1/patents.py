from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_technical_group
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import logger
from app.db.enums import EmployeeStatus, PatentStatus
from app.db.models.hr import Employee, TechnicalGroup
from app.db.models.technical import Patent, PatentInventor, PatentStatusHistory
from app.schemas.common import MessageOut
from app.schemas.technical import (
    EmployeeRef,
    PatentCreate,
    PatentHistoryOut,
    PatentOut,
    PatentStatusChange,
    PatentUpdate,
)

"""
Patents of the caller's technical group (/api/patents). A `tg` user sees
and edits only the patents filed by the group named after their username.
"""

router = APIRouter(dependencies=[Depends(get_technical_group)])


async def _group_employees(db: AsyncSession, group_id: int) -> list[EmployeeRef]:
    result = await db.execute(
        select(Employee.employee_id, Employee.employee_name)
        .where(Employee.technical_group_id == group_id, Employee.status == EmployeeStatus.ACTIVE)
        .order_by(Employee.employee_name)
    )
    return [EmployeeRef(employee_id=r.employee_id, employee_name=r.employee_name) for r in result]


async def _ensure_employees(db: AsyncSession, employee_ids: list[str]) -> None:
    result = await db.execute(select(Employee.employee_id).where(Employee.employee_id.in_(employee_ids)))
    missing = sorted(set(employee_ids) - set(result.scalars().all()))
    if missing:
        raise ValidationError("Unknown inventor(s)", details={"employee_ids": missing})


async def _history(db: AsyncSession, patent_id: int) -> list[PatentHistoryOut]:
    result = await db.execute(
        select(PatentStatusHistory, TechnicalGroup.group_name)
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == PatentStatusHistory.updated_by_group)
        .where(PatentStatusHistory.patent_id == patent_id)
        .order_by(PatentStatusHistory.update_date.desc(), PatentStatusHistory.history_id.desc())
    )
    return [
        PatentHistoryOut(
            history_id=h.history_id,
            patent_id=h.patent_id,
            old_status=h.old_status,
            new_status=h.new_status,
            remarks=h.remarks,
            update_date=h.update_date,
            updated_by_group_name=group_name,
        )
        for h, group_name in result.all()
    ]


async def _patent_out(db: AsyncSession, patent: Patent, group_name: str) -> PatentOut:
    inventors = await db.execute(
        select(Employee.employee_id, Employee.employee_name)
        .join(PatentInventor, PatentInventor.employee_id == Employee.employee_id)
        .where(PatentInventor.patent_id == patent.patent_id)
        .order_by(Employee.employee_name)
    )
    return PatentOut(
        patent_id=patent.patent_id,
        patent_title=patent.patent_title,
        filing_date=patent.filing_date,
        application_number=patent.application_number,
        status=patent.status,
        remarks=patent.remarks,
        grant_date=patent.grant_date,
        rejection_date=patent.rejection_date,
        rejection_reason=patent.rejection_reason,
        group_name=group_name,
        created_at=patent.created_at,
        inventors=[EmployeeRef(employee_id=r.employee_id, employee_name=r.employee_name) for r in inventors],
        status_history=await _history(db, patent.patent_id),
    )


async def _get_patent(db: AsyncSession, patent_id: int, group: TechnicalGroup) -> Patent:
    patent = await db.get(Patent, patent_id)
    if patent is None or patent.group_id != group.group_id:
        raise NotFoundError("Patent", patent_id)
    return patent


async def _set_inventors(db: AsyncSession, patent_id: int, employee_ids: list[str]) -> None:
    """Replace the inventor set, keeping rows that stay."""
    wanted = set(employee_ids)
    result = await db.execute(
        select(PatentInventor.employee_id).where(PatentInventor.patent_id == patent_id)
    )
    current = set(result.scalars().all())
    if current - wanted:
        await db.execute(
            delete(PatentInventor).where(
                PatentInventor.patent_id == patent_id,
                PatentInventor.employee_id.in_(current - wanted),
            )
        )
    for employee_id in sorted(wanted - current):
        db.add(PatentInventor(patent_id=patent_id, employee_id=employee_id))


async def _has_history(db: AsyncSession, patent_id: int) -> bool:
    result = await db.execute(
        select(PatentStatusHistory.history_id).where(PatentStatusHistory.patent_id == patent_id).limit(1)
    )
    return result.first() is not None


@router.get("", response_model=list[PatentOut])
async def list_patents(
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> list[PatentOut]:
    result = await db.execute(
        select(Patent).where(Patent.group_id == group.group_id).order_by(Patent.filing_date.desc())
    )
    return [await _patent_out(db, p, group.group_name) for p in result.scalars().all()]


@router.get("/inventors", response_model=list[EmployeeRef])
async def list_inventors(
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> list[EmployeeRef]:
    return await _group_employees(db, group.group_id)


@router.post("", response_model=PatentOut, status_code=status.HTTP_201_CREATED)
async def create_patent(
    payload: PatentCreate,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> PatentOut:
    await _ensure_employees(db, payload.inventors)
    patent = Patent(**payload.model_dump(exclude={"inventors"}), group_id=group.group_id)
    db.add(patent)
    await db.flush()

    await _set_inventors(db, patent.patent_id, payload.inventors)
    db.add(
        PatentStatusHistory(
            patent_id=patent.patent_id,
            old_status=PatentStatus.FILED.value,
            new_status=patent.status.value,
            remarks="Patent filed",
            updated_by_group=group.group_id,
            update_date=patent.filing_date,
        )
    )
    await db.commit()
    await db.refresh(patent)
    logger.info(f"Patent {patent.patent_id} filed by group {group.group_name}")
    return await _patent_out(db, patent, group.group_name)


@router.put("/{patent_id}", response_model=PatentOut)
async def update_patent(
    patent_id: int,
    payload: PatentUpdate,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> PatentOut:
    patent = await _get_patent(db, patent_id, group)
    await _ensure_employees(db, payload.inventors)
    old_status = patent.status
    first_entry = not await _has_history(db, patent_id)
    original_filing_date = patent.filing_date

    for key, value in payload.model_dump(exclude={"inventors"}).items():
        setattr(patent, key, value)
    patent.updated_by_group = group.group_id
    await _set_inventors(db, patent_id, payload.inventors)

    if payload.status != old_status:
        db.add(
            PatentStatusHistory(
                patent_id=patent_id,
                old_status=old_status.value,
                new_status=payload.status.value,
                remarks=payload.remarks or "Status updated",
                updated_by_group=group.group_id,
                # The first history entry is dated at filing
                update_date=original_filing_date if first_entry else date.today(),
            )
        )
    await db.commit()
    await db.refresh(patent)
    return await _patent_out(db, patent, group.group_name)


@router.put("/{patent_id}/status", response_model=PatentOut)
async def change_patent_status(
    patent_id: int,
    payload: PatentStatusChange,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> PatentOut:
    patent = await _get_patent(db, patent_id, group)
    first_entry = not await _has_history(db, patent_id)
    old_status = patent.status

    patent.status = payload.new_status
    patent.updated_by_group = group.group_id
    if payload.new_status == PatentStatus.GRANTED:
        patent.grant_date = payload.update_date
    elif payload.new_status == PatentStatus.REJECTED:
        patent.rejection_date = payload.update_date

    db.add(
        PatentStatusHistory(
            patent_id=patent_id,
            old_status=old_status.value,
            new_status=payload.new_status.value,
            remarks=payload.remarks or "Status updated",
            updated_by_group=group.group_id,
            update_date=patent.filing_date if first_entry else payload.update_date,
        )
    )
    await db.commit()
    await db.refresh(patent)
    logger.info(f"Patent {patent_id}: {old_status.value} -> {payload.new_status.value}")
    return await _patent_out(db, patent, group.group_name)


@router.get("/{patent_id}/history", response_model=list[PatentHistoryOut])
async def patent_history(
    patent_id: int,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> list[PatentHistoryOut]:
    await _get_patent(db, patent_id, group)
    return await _history(db, patent_id)


@router.delete("/{patent_id}", response_model=MessageOut)
async def delete_patent(
    patent_id: int,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> MessageOut:
    patent = await _get_patent(db, patent_id, group)
    # Inventors and history rows go with it (ON DELETE CASCADE)
    await db.delete(patent)
    await db.commit()
    return MessageOut(message="Patent deleted successfully")
