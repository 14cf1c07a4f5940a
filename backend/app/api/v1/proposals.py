from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_technical_group
from app.core.errors import NotFoundError, ValidationError
from app.db.enums import EmployeeStatus
from app.db.models.hr import Employee, TechnicalGroup
from app.db.models.technical import Proposal, ProposalEmployee, ProposalStatusHistory
from app.schemas.common import MessageOut
from app.schemas.technical import (
    EmployeeRef,
    ProposalCreate,
    ProposalHistoryOut,
    ProposalOut,
    ProposalStatusChange,
    ProposalUpdate,
)

router = APIRouter(dependencies=[Depends(get_technical_group)])


async def _proposal_out(db: AsyncSession, proposal: Proposal, group_name: str) -> ProposalOut:
    employees = await db.execute(
        select(Employee.employee_id, Employee.employee_name)
        .join(ProposalEmployee, ProposalEmployee.employee_id == Employee.employee_id)
        .where(ProposalEmployee.proposal_id == proposal.proposal_id)
        .order_by(Employee.employee_name)
    )
    history = await db.execute(
        select(ProposalStatusHistory)
        .where(ProposalStatusHistory.proposal_id == proposal.proposal_id)
        .order_by(ProposalStatusHistory.update_date.desc(), ProposalStatusHistory.history_id.desc())
    )
    return ProposalOut(
        proposal_id=proposal.proposal_id,
        proposal_title=proposal.proposal_title,
        submission_date=proposal.submission_date,
        funding_agency=proposal.funding_agency,
        amount=float(proposal.amount) if proposal.amount is not None else None,
        status=proposal.status,
        remarks=proposal.remarks,
        group_id=proposal.group_id,
        group_name=group_name,
        employees=[EmployeeRef(employee_id=r.employee_id, employee_name=r.employee_name) for r in employees],
        status_history=[ProposalHistoryOut.model_validate(h) for h in history.scalars().all()],
    )


async def _get_proposal(db: AsyncSession, proposal_id: int, group: TechnicalGroup) -> Proposal:
    proposal = await db.get(Proposal, proposal_id)
    if proposal is None or proposal.group_id != group.group_id:
        raise NotFoundError("Proposal", proposal_id)
    return proposal


async def _set_employees(db: AsyncSession, proposal_id: int, employee_ids: list[str]) -> None:
    wanted = set(employee_ids)
    if wanted:
        known = await db.execute(select(Employee.employee_id).where(Employee.employee_id.in_(wanted)))
        missing = sorted(wanted - set(known.scalars().all()))
        if missing:
            raise ValidationError("Unknown employee(s)", details={"employee_ids": missing})
    await db.execute(delete(ProposalEmployee).where(ProposalEmployee.proposal_id == proposal_id))
    for employee_id in sorted(wanted):
        db.add(ProposalEmployee(proposal_id=proposal_id, employee_id=employee_id))


def _record_status(proposal: Proposal, new_status: str, remarks: str | None, on: date) -> ProposalStatusHistory:
    history = ProposalStatusHistory(
        proposal_id=proposal.proposal_id,
        old_status=proposal.status,
        new_status=new_status,
        remarks=remarks or "Status updated",
        update_date=on,
    )
    proposal.status = new_status
    return history


@router.get("", response_model=list[ProposalOut])
async def list_proposals(
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> list[ProposalOut]:
    result = await db.execute(
        select(Proposal)
        .where(Proposal.group_id == group.group_id)
        .order_by(Proposal.submission_date.desc())
    )
    return [await _proposal_out(db, p, group.group_name) for p in result.scalars().all()]


@router.get("/employees", response_model=list[EmployeeRef])
async def list_group_employees(
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> list[EmployeeRef]:
    result = await db.execute(
        select(Employee.employee_id, Employee.employee_name)
        .where(Employee.technical_group_id == group.group_id, Employee.status == EmployeeStatus.ACTIVE)
        .order_by(Employee.employee_name)
    )
    return [EmployeeRef(employee_id=r.employee_id, employee_name=r.employee_name) for r in result]


@router.post("", response_model=ProposalOut, status_code=status.HTTP_201_CREATED)
async def create_proposal(
    payload: ProposalCreate,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> ProposalOut:
    proposal = Proposal(**payload.model_dump(exclude={"employees"}), group_id=group.group_id)
    db.add(proposal)
    await db.flush()
    await _set_employees(db, proposal.proposal_id, payload.employees)
    await db.commit()
    await db.refresh(proposal)
    return await _proposal_out(db, proposal, group.group_name)


@router.put("/{proposal_id}", response_model=ProposalOut)
async def update_proposal(
    proposal_id: int,
    payload: ProposalUpdate,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> ProposalOut:
    proposal = await _get_proposal(db, proposal_id, group)
    changes = payload.model_dump(exclude_unset=True, exclude={"employees"})
    for key in ("proposal_title", "submission_date", "status"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    new_status = changes.pop("status", None)
    for key, value in changes.items():
        setattr(proposal, key, value)
    if new_status is not None and new_status != proposal.status:
        db.add(_record_status(proposal, new_status, payload.remarks, date.today()))
    if payload.employees is not None:
        await _set_employees(db, proposal_id, payload.employees)
    await db.commit()
    await db.refresh(proposal)
    return await _proposal_out(db, proposal, group.group_name)


@router.put("/{proposal_id}/status", response_model=MessageOut)
async def change_proposal_status(
    proposal_id: int,
    payload: ProposalStatusChange,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> MessageOut:
    proposal = await _get_proposal(db, proposal_id, group)
    db.add(_record_status(proposal, payload.new_status, payload.remarks, payload.update_date or date.today()))
    await db.commit()
    return MessageOut(message="Status updated successfully")


@router.delete("/{proposal_id}", response_model=MessageOut)
async def delete_proposal(
    proposal_id: int,
    db: AsyncSession = Depends(get_db),
    group: TechnicalGroup = Depends(get_technical_group),
) -> MessageOut:
    proposal = await _get_proposal(db, proposal_id, group)
    await db.delete(proposal)
    await db.commit()
    return MessageOut(message="Proposal deleted successfully")
