from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.audit import log_audit, snapshot
from app.core.errors import NotFoundError, ValidationError
from app.db.models.hr import Designation, Employee, TechnicalGroup
from app.schemas.hr import (
    DesignationOut,
    EmployeeCreate,
    EmployeeOut,
    EmployeeUpdate,
    TechnicalGroupCreate,
    TechnicalGroupOut,
)
from app.services.lookups import ensure_designations, ensure_technical_groups

"""
Employees and HR lookups (/api/hr/...) plus the technical groups
directory (/api/technical-groups).
"""

router = APIRouter(dependencies=[Depends(get_current_user)])
groups_router = APIRouter(dependencies=[Depends(get_current_user)])

EMPLOYEE_FIELDS = [
    "employee_name",
    "join_date",
    "designation_id",
    "initial_designation_id",
    "technical_group_id",
    "status",
    "gender",
    "level",
    "centre",
]

current_desig = aliased(Designation, name="current_desig")
initial_desig = aliased(Designation, name="initial_desig")


def employee_query():
    return (
        select(
            Employee,
            current_desig.designation.label("designation"),
            initial_desig.designation.label("initial_designation"),
            TechnicalGroup.group_name.label("technical_group"),
        )
        .outerjoin(current_desig, current_desig.designation_id == Employee.designation_id)
        .outerjoin(
            initial_desig, initial_desig.designation_id == Employee.initial_designation_id
        )
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == Employee.technical_group_id)
    )


def employee_out(row) -> EmployeeOut:
    employee = row[0]
    return EmployeeOut(
        employee_id=employee.employee_id,
        **{f: getattr(employee, f) for f in EMPLOYEE_FIELDS},
        designation=row.designation,
        initial_designation=row.initial_designation,
        technical_group=row.technical_group,
    )


async def get_employee_out(db: AsyncSession, employee_id: str) -> EmployeeOut:
    row = (await db.execute(employee_query().where(Employee.employee_id == employee_id))).first()
    if row is None:
        raise NotFoundError("Employee", employee_id)
    return employee_out(row)


async def _ensure_refs(
    db: AsyncSession,
    designation_id: int,
    initial_designation_id: int,
    technical_group_id: int,
) -> None:
    for label, designation_id_ in (
        ("designation_id", designation_id),
        ("initial_designation_id", initial_designation_id),
    ):
        if await db.get(Designation, designation_id_) is None:
            raise ValidationError("Invalid designation", details={label: designation_id_})
    if await db.get(TechnicalGroup, technical_group_id) is None:
        raise ValidationError(
            "Invalid technical group", details={"technical_group_id": technical_group_id}
        )


# Lookups


@router.get("/designations", response_model=list[DesignationOut])
async def list_designations(db: AsyncSession = Depends(get_db)) -> list[DesignationOut]:
    await ensure_designations(db)
    result = await db.execute(select(Designation).order_by(Designation.level, Designation.designation))
    return [DesignationOut.model_validate(d) for d in result.scalars().all()]


async def _list_groups(db: AsyncSession) -> list[TechnicalGroupOut]:
    await ensure_technical_groups(db)
    result = await db.execute(select(TechnicalGroup).order_by(TechnicalGroup.group_name))
    return [TechnicalGroupOut.model_validate(g) for g in result.scalars().all()]


@router.get("/technical_groups", response_model=list[TechnicalGroupOut])
async def list_technical_groups(db: AsyncSession = Depends(get_db)) -> list[TechnicalGroupOut]:
    return await _list_groups(db)


@groups_router.get("", response_model=list[TechnicalGroupOut])
async def list_groups(db: AsyncSession = Depends(get_db)) -> list[TechnicalGroupOut]:
    return await _list_groups(db)


@groups_router.post("", response_model=TechnicalGroupOut, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: TechnicalGroupCreate, db: AsyncSession = Depends(get_db)
) -> TechnicalGroupOut:
    duplicate = await db.execute(
        select(TechnicalGroup.group_id).where(
            func.lower(TechnicalGroup.group_name) == payload.group_name.lower()
        )
    )
    if duplicate.first() is not None:
        raise ValidationError("Technical group already exists")
    group = TechnicalGroup(**payload.model_dump())
    db.add(group)
    await db.commit()
    await db.refresh(group)
    return TechnicalGroupOut.model_validate(group)


# Employees


@router.get("/employees", response_model=list[EmployeeOut])
async def list_employees(db: AsyncSession = Depends(get_db)) -> list[EmployeeOut]:
    result = await db.execute(employee_query().order_by(Employee.employee_name))
    return [employee_out(row) for row in result.all()]


@router.get("/employees/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: str, db: AsyncSession = Depends(get_db)) -> EmployeeOut:
    return await get_employee_out(db, employee_id)


@router.post("/employees", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> EmployeeOut:
    if await db.get(Employee, payload.employee_id) is not None:
        raise ValidationError(
            "Employee ID already exists", details={"employee_id": payload.employee_id}
        )
    await _ensure_refs(
        db, payload.designation_id, payload.initial_designation_id, payload.technical_group_id
    )

    employee = Employee(**payload.model_dump())
    if employee.level is None:
        designation = await db.get(Designation, payload.designation_id)
        employee.level = designation.level
    db.add(employee)
    await db.flush()
    await log_audit(
        db, "create", "employee", employee.employee_id,
        after_json=snapshot(employee, EMPLOYEE_FIELDS), actor=user.username,
    )
    await db.commit()
    return await get_employee_out(db, employee.employee_id)


@router.put("/employees/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: str,
    payload: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> EmployeeOut:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee", employee_id)
    before = snapshot(employee, EMPLOYEE_FIELDS)

    # Omitted (or null) fields keep their current values
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    await _ensure_refs(
        db,
        changes.get("designation_id", employee.designation_id),
        changes.get("initial_designation_id", employee.initial_designation_id),
        changes.get("technical_group_id", employee.technical_group_id),
    )
    for key, value in changes.items():
        setattr(employee, key, value)

    await log_audit(
        db, "update", "employee", employee_id,
        before_json=before, after_json=snapshot(employee, EMPLOYEE_FIELDS), actor=user.username,
    )
    await db.commit()
    return await get_employee_out(db, employee_id)
