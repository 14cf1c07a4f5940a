from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.audit import log_audit, snapshot
from app.core.errors import NotFoundError, ValidationError
from app.db.enums import StaffStatus
from app.db.models.admin import Department, Salary, Staff
from app.schemas.admin import (
    DepartmentCreate,
    DepartmentOut,
    SalaryCreate,
    SalaryOut,
    SalaryUpdate,
    StaffCreate,
    StaffOut,
    StaffUpdate,
)
from app.schemas.common import MessageOut

"""
Departments, staff and their salaries (/api/admin/...).
"""

router = APIRouter(dependencies=[Depends(get_current_user)])

STAFF_FIELDS = ["name", "department_id", "joining_date", "date_of_leaving", "status", "gender"]


# Departments


@router.get("/departments", response_model=list[DepartmentOut])
async def list_departments(db: AsyncSession = Depends(get_db)) -> list[DepartmentOut]:
    result = await db.execute(select(Department).order_by(Department.department_name))
    return [DepartmentOut.model_validate(d) for d in result.scalars().all()]


@router.post("/departments", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: DepartmentCreate, db: AsyncSession = Depends(get_db)
) -> DepartmentOut:
    duplicate = await db.execute(
        select(Department.department_id).where(
            func.lower(Department.department_name) == payload.department_name.lower()
        )
    )
    if duplicate.first() is not None:
        raise ValidationError("Department already exists")

    department = Department(department_name=payload.department_name)
    db.add(department)
    await db.commit()
    await db.refresh(department)
    return DepartmentOut.model_validate(department)


# Staff


async def _ensure_department(db: AsyncSession, department_id: int) -> None:
    if await db.get(Department, department_id) is None:
        raise ValidationError("Department not found", details={"department_id": department_id})


async def _ensure_unique_active_name(
    db: AsyncSession, name: str, department_id: int, exclude_id: int | None = None
) -> None:
    stmt = select(Staff.staff_id).where(
        func.lower(func.trim(Staff.name)) == name.strip().lower(),
        Staff.department_id == department_id,
        Staff.status == StaffStatus.ACTIVE,
    )
    if exclude_id is not None:
        stmt = stmt.where(Staff.staff_id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ValidationError(
            "An active staff member with this name already exists in the department"
        )


def _staff_query():
    last_salary = (
        select(
            Salary.staff_id,
            Salary.payment_date,
            Salary.net_salary,
            func.row_number()
            .over(
                partition_by=Salary.staff_id,
                order_by=[Salary.payment_date.desc(), Salary.salary_id.desc()],
            )
            .label("rn"),
        )
        .subquery()
    )
    return (
        select(
            Staff,
            Department.department_name,
            last_salary.c.payment_date.label("last_salary_date"),
            last_salary.c.net_salary.label("current_salary"),
        )
        .join(Department, Department.department_id == Staff.department_id)
        .outerjoin(
            last_salary,
            (last_salary.c.staff_id == Staff.staff_id) & (last_salary.c.rn == 1),
        )
    )


def _staff_out(row) -> StaffOut:
    staff = row[0]
    return StaffOut(
        **{f: getattr(staff, f) for f in STAFF_FIELDS},
        staff_id=staff.staff_id,
        department_name=row.department_name,
        last_salary_date=row.last_salary_date,
        current_salary=float(row.current_salary) if row.current_salary is not None else None,
    )


async def _get_staff_out(db: AsyncSession, staff_id: int) -> StaffOut:
    row = (await db.execute(_staff_query().where(Staff.staff_id == staff_id))).first()
    if row is None:
        raise NotFoundError("Staff", staff_id)
    return _staff_out(row)


@router.get("/staff", response_model=list[StaffOut])
async def list_staff(db: AsyncSession = Depends(get_db)) -> list[StaffOut]:
    result = await db.execute(_staff_query().order_by(Staff.name))
    return [_staff_out(row) for row in result.all()]


def _salary_out(salary: Salary, staff_name: str | None) -> SalaryOut:
    out = SalaryOut.model_validate(salary)
    out.staff_name = staff_name
    return out


# Salaries: registered before /staff/{staff_id}, which would capture "salaries"


@router.get("/staff/salaries", response_model=list[SalaryOut])
async def list_salaries(db: AsyncSession = Depends(get_db)) -> list[SalaryOut]:
    result = await db.execute(
        select(Salary, Staff.name)
        .join(Staff, Staff.staff_id == Salary.staff_id)
        .order_by(Salary.payment_date.desc())
    )
    return [_salary_out(salary, name) for salary, name in result.all()]


@router.get("/staff/salaries/staff/{staff_id}", response_model=list[SalaryOut])
async def list_staff_salaries(staff_id: int, db: AsyncSession = Depends(get_db)) -> list[SalaryOut]:
    staff = await db.get(Staff, staff_id)
    if staff is None:
        raise NotFoundError("Staff", staff_id)
    result = await db.execute(
        select(Salary).where(Salary.staff_id == staff_id).order_by(Salary.payment_date.desc())
    )
    return [_salary_out(s, staff.name) for s in result.scalars().all()]


@router.post("/staff/salaries", response_model=SalaryOut, status_code=status.HTTP_201_CREATED)
async def create_salary(payload: SalaryCreate, db: AsyncSession = Depends(get_db)) -> SalaryOut:
    staff = await db.get(Staff, payload.staff_id)
    if staff is None:
        raise ValidationError("Staff not found", details={"staff_id": payload.staff_id})

    salary = Salary(**payload.model_dump())
    db.add(salary)
    await db.commit()
    await db.refresh(salary)
    return _salary_out(salary, staff.name)


@router.put("/staff/salaries/{salary_id}", response_model=SalaryOut)
async def update_salary(
    salary_id: int, payload: SalaryUpdate, db: AsyncSession = Depends(get_db)
) -> SalaryOut:
    salary = await db.get(Salary, salary_id)
    if salary is None:
        raise NotFoundError("Salary", salary_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(salary, key, value)
    await db.commit()
    await db.refresh(salary)
    staff = await db.get(Staff, salary.staff_id)
    return _salary_out(salary, staff.name if staff else None)


@router.delete("/staff/salaries/{salary_id}", response_model=MessageOut)
async def delete_salary(salary_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    salary = await db.get(Salary, salary_id)
    if salary is None:
        raise NotFoundError("Salary", salary_id)
    await db.delete(salary)
    await db.commit()
    return MessageOut(message="Salary record deleted successfully")


@router.get("/staff/{staff_id}", response_model=StaffOut)
async def get_staff(staff_id: int, db: AsyncSession = Depends(get_db)) -> StaffOut:
    return await _get_staff_out(db, staff_id)


@router.post("/staff", response_model=StaffOut, status_code=status.HTTP_201_CREATED)
async def create_staff(
    payload: StaffCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StaffOut:
    await _ensure_department(db, payload.department_id)
    if payload.status == StaffStatus.ACTIVE:
        await _ensure_unique_active_name(db, payload.name, payload.department_id)

    staff = Staff(**payload.model_dump())
    db.add(staff)
    await db.flush()
    await log_audit(
        db, "create", "staff", staff.staff_id,
        after_json=snapshot(staff, STAFF_FIELDS), actor=user.username,
    )
    await db.commit()
    return await _get_staff_out(db, staff.staff_id)


@router.put("/staff/{staff_id}", response_model=StaffOut)
async def update_staff(
    staff_id: int,
    payload: StaffUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StaffOut:
    staff = await db.get(Staff, staff_id)
    if staff is None:
        raise NotFoundError("Staff", staff_id)
    before = snapshot(staff, STAFF_FIELDS)

    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "date_of_leaving" in payload.model_fields_set:
        changes["date_of_leaving"] = payload.date_of_leaving
    if "department_id" in changes:
        await _ensure_department(db, changes["department_id"])

    name = changes.get("name", staff.name)
    department_id = changes.get("department_id", staff.department_id)
    if changes.get("status", staff.status) == StaffStatus.ACTIVE:
        await _ensure_unique_active_name(db, name, department_id, exclude_id=staff_id)

    joining = changes.get("joining_date", staff.joining_date)
    leaving = changes.get("date_of_leaving", staff.date_of_leaving)
    if leaving is not None and leaving < joining:
        raise ValidationError("Date of leaving cannot be before joining date")

    for key, value in changes.items():
        setattr(staff, key, value)
    await log_audit(
        db, "update", "staff", staff_id,
        before_json=before, after_json=snapshot(staff, STAFF_FIELDS), actor=user.username,
    )
    await db.commit()
    return await _get_staff_out(db, staff_id)


@router.delete("/staff/{staff_id}", response_model=MessageOut)
async def delete_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    staff = await db.get(Staff, staff_id)
    if staff is None:
        raise NotFoundError("Staff", staff_id)

    salaries = await db.execute(
        select(func.count()).select_from(Salary).where(Salary.staff_id == staff_id)
    )
    if salaries.scalar_one():
        raise ValidationError("Cannot delete staff member with salary records")

    await log_audit(
        db, "delete", "staff", staff_id,
        before_json=snapshot(staff, STAFF_FIELDS), actor=user.username,
    )
    await db.delete(staff)
    await db.commit()
    return MessageOut(message="Staff member deleted successfully")
