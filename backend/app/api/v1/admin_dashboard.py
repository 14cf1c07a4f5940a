from __future__ import annotations

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.enums import StaffStatus
from app.db.models.admin import Contractor, ContractorMapping, Department, Staff, Vehicle
from app.db.models.amc import AmcContract
from app.schemas.admin import (
    AdminSummaryOut,
    MonthlyTrendOut,
    StaffByDepartmentOut,
    StatusCountOut,
)
from app.services.status import amc_status, last_months, month_label, month_start

router = APIRouter(dependencies=[Depends(get_current_user)])

TREND_MONTHS = 6


async def _count(db: AsyncSession, stmt) -> int:
    return int((await db.execute(stmt)).scalar_one() or 0)


def _active_mapping_exists(today: date):
    return exists().where(
        ContractorMapping.contractor_id == Contractor.contractor_id,
        ContractorMapping.end_date >= today,
    )


@router.get("/summary", response_model=AdminSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> AdminSummaryOut:
    today = date.today()
    total_vehicles = await _count(db, select(func.count()).select_from(Vehicle))
    return AdminSummaryOut(
        total_staff=await _count(db, select(func.count()).select_from(Staff)),
        active_staff=await _count(
            db, select(func.count()).select_from(Staff).where(Staff.status == StaffStatus.ACTIVE)
        ),
        total_contractors=await _count(db, select(func.count()).select_from(Contractor)),
        active_contractors=await _count(
            db, select(func.count()).select_from(Contractor).where(_active_mapping_exists(today))
        ),
        total_vehicles=total_vehicles,
        # No vehicle status is tracked: every registered vehicle counts as operational
        operational_vehicles=total_vehicles,
        total_amc_contracts=await _count(db, select(func.count()).select_from(AmcContract)),
        active_amc_contracts=await _count(
            db, select(func.count()).select_from(AmcContract).where(AmcContract.end_date >= today)
        ),
    )


@router.get("/staff-by-department", response_model=list[StaffByDepartmentOut])
async def staff_by_department(db: AsyncSession = Depends(get_db)) -> list[StaffByDepartmentOut]:
    staff_count = func.count(Staff.staff_id).label("staff_count")
    result = await db.execute(
        select(Department.department_name, staff_count)
        .outerjoin(
            Staff,
            (Staff.department_id == Department.department_id) & (Staff.status == StaffStatus.ACTIVE),
        )
        .group_by(Department.department_id, Department.department_name)
        .order_by(staff_count.desc(), Department.department_name)
    )
    return [
        StaffByDepartmentOut(department_name=row.department_name, staff_count=row.staff_count)
        for row in result.all()
    ]


@router.get("/contractor-status", response_model=list[StatusCountOut])
async def contractor_status(db: AsyncSession = Depends(get_db)) -> list[StatusCountOut]:
    today = date.today()
    total = await _count(db, select(func.count()).select_from(Contractor))
    active = await _count(
        db, select(func.count()).select_from(Contractor).where(_active_mapping_exists(today))
    )
    counts = [StatusCountOut(status="ACTIVE", count=active), StatusCountOut(status="INACTIVE", count=total - active)]
    return sorted([c for c in counts if c.count], key=lambda c: c.count, reverse=True)


@router.get("/vehicle-status", response_model=list[StatusCountOut])
async def vehicle_status(db: AsyncSession = Depends(get_db)) -> list[StatusCountOut]:
    total = await _count(db, select(func.count()).select_from(Vehicle))
    return [StatusCountOut(status="OPERATIONAL", count=total)]


@router.get("/amc-status", response_model=list[StatusCountOut])
async def amc_contract_status(db: AsyncSession = Depends(get_db)) -> list[StatusCountOut]:
    today = date.today()
    end_dates = (await db.execute(select(AmcContract.end_date))).scalars().all()
    counts = Counter(amc_status(end_date, today).value for end_date in end_dates)
    return [StatusCountOut(status=s, count=c) for s, c in counts.most_common()]


@router.get("/monthly-trends", response_model=list[MonthlyTrendOut])
async def monthly_trends(db: AsyncSession = Depends(get_db)) -> list[MonthlyTrendOut]:
    months = last_months(date.today(), TREND_MONTHS)
    since = months[0]

    staff_dates = (
        await db.execute(select(Staff.joining_date).where(Staff.joining_date >= since))
    ).scalars().all()
    mapping_rows = (
        await db.execute(
            select(ContractorMapping.contractor_id, ContractorMapping.start_date).where(
                ContractorMapping.start_date >= since
            )
        )
    ).all()
    vehicle_created = (
        await db.execute(select(Vehicle.created_at).where(Vehicle.created_at >= since))
    ).scalars().all()

    staff_joined = Counter(month_start(d) for d in staff_dates)
    contractors: dict[date, set[int]] = {}
    for contractor_id, start in mapping_rows:
        contractors.setdefault(month_start(start), set()).add(contractor_id)
    vehicles_added = Counter(month_start(created.date()) for created in vehicle_created)

    return [
        MonthlyTrendOut(
            month=month_label(m),
            staff_joined=staff_joined.get(m, 0),
            contractors_added=len(contractors.get(m, ())),
            vehicles_added=vehicles_added.get(m, 0),
        )
        for m in months
    ]
