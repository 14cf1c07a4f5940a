from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.enums import EmployeeStatus
from app.db.models.hr import Attrition, Employee, Recruitment, TechnicalGroup, Training
from app.schemas.hr import (
    EmployeeGrowthOut,
    GroupDistributionOut,
    HrSummaryOut,
    RecruitmentByModeOut,
    RecruitmentSummaryOut,
    TrainingByTypeOut,
    TrainingSummaryOut,
)

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _scalar(db: AsyncSession, stmt) -> int:
    return int((await db.execute(stmt)).scalar_one() or 0)


@router.get("/summary", response_model=HrSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> HrSummaryOut:
    year = date.today().year
    total = await _scalar(db, select(func.count()).select_from(Employee))
    active = await _scalar(
        db,
        select(func.count()).select_from(Employee).where(Employee.status == EmployeeStatus.ACTIVE),
    )
    new_hires = await _scalar(
        db,
        select(func.count()).select_from(Employee).where(extract("year", Employee.join_date) == year),
    )
    left = await _scalar(
        db, select(func.count()).select_from(Attrition).where(Attrition.year == year)
    )
    return HrSummaryOut(
        total_employees=total,
        active_employees=active,
        new_hires_this_year=new_hires,
        attrition_rate=round(left * 100 / total, 2) if total else 0.0,
    )


@router.get("/group-distribution", response_model=list[GroupDistributionOut])
async def group_distribution(db: AsyncSession = Depends(get_db)) -> list[GroupDistributionOut]:
    employee_count = func.count(Employee.employee_id).label("employee_count")
    result = await db.execute(
        select(TechnicalGroup.group_name, employee_count)
        .outerjoin(
            Employee,
            (Employee.technical_group_id == TechnicalGroup.group_id)
            & (Employee.status == EmployeeStatus.ACTIVE),
        )
        .group_by(TechnicalGroup.group_id, TechnicalGroup.group_name)
        .order_by(employee_count.desc(), TechnicalGroup.group_name)
    )
    return [GroupDistributionOut(group_name=r.group_name, employee_count=r.employee_count) for r in result]


@router.get("/employee-growth", response_model=list[EmployeeGrowthOut])
async def employee_growth(db: AsyncSession = Depends(get_db)) -> list[EmployeeGrowthOut]:
    year = extract("year", Employee.join_date)
    result = await db.execute(
        select(year.label("year"), func.count().label("employee_count"))
        .where(Employee.join_date.is_not(None))
        .group_by(year)
        .order_by(year)
    )
    return [EmployeeGrowthOut(year=int(r.year), employee_count=r.employee_count) for r in result]


@router.get("/training-summary", response_model=TrainingSummaryOut)
async def training_summary(db: AsyncSession = Depends(get_db)) -> TrainingSummaryOut:
    year = date.today().year
    total = await _scalar(db, select(func.count()).select_from(Training))
    participants = await _scalar(db, select(func.coalesce(func.sum(Training.attended_count), 0)))
    this_year = await _scalar(
        db,
        select(func.count()).select_from(Training).where(extract("year", Training.start_date) == year),
    )
    return TrainingSummaryOut(
        total_trainings=total,
        trainings_this_year=this_year,
        total_participants=participants,
        avg_participants_per_training=round(participants / total) if total else 0,
    )


@router.get("/training-by-type", response_model=list[TrainingByTypeOut])
async def training_by_type(db: AsyncSession = Depends(get_db)) -> list[TrainingByTypeOut]:
    training_count = func.count().label("training_count")
    result = await db.execute(
        select(
            Training.training_type,
            training_count,
            func.coalesce(func.sum(Training.attended_count), 0).label("total_participants"),
        )
        .group_by(Training.training_type)
        .order_by(training_count.desc())
    )
    return [
        TrainingByTypeOut(
            training_type=r.training_type.value,
            training_count=r.training_count,
            total_participants=int(r.total_participants),
        )
        for r in result
    ]


@router.get("/recruitment-summary", response_model=RecruitmentSummaryOut)
async def recruitment_summary(db: AsyncSession = Depends(get_db)) -> RecruitmentSummaryOut:
    year = date.today().year
    recruited = func.coalesce(func.sum(Recruitment.recruited_count), 0)
    return RecruitmentSummaryOut(
        total_recruitments=await _scalar(db, select(func.count()).select_from(Recruitment)),
        recruitments_this_year=await _scalar(
            db, select(func.count()).select_from(Recruitment).where(Recruitment.year == year)
        ),
        total_recruited=await _scalar(db, select(recruited)),
        recruited_this_year=await _scalar(db, select(recruited).where(Recruitment.year == year)),
    )


@router.get("/recruitment-by-mode", response_model=list[RecruitmentByModeOut])
async def recruitment_by_mode(db: AsyncSession = Depends(get_db)) -> list[RecruitmentByModeOut]:
    total_recruited = func.coalesce(func.sum(Recruitment.recruited_count), 0).label("total_recruited")
    result = await db.execute(
        select(Recruitment.recruitment_mode, func.count().label("recruitment_count"), total_recruited)
        .group_by(Recruitment.recruitment_mode)
        .order_by(total_recruited.desc())
    )
    return [
        RecruitmentByModeOut(
            recruitment_mode=r.recruitment_mode.value,
            recruitment_count=r.recruitment_count,
            total_recruited=int(r.total_recruited),
        )
        for r in result
    ]
