from __future__ import annotations

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.enums import ProjectStatusValue
from app.db.models.finance import FinanceProject
from app.db.models.hr import TechnicalGroup
from app.db.models.technical import Patent, ProjectPublication, ProjectStatus, Proposal
from app.schemas.technical import MonthCountOut, StatusCountOut, TechnicalSummaryOut, TypeCountOut
from app.services.status import last_months, month_label, month_start, project_timeline_status

router = APIRouter(dependencies=[Depends(get_current_user)])

TREND_MONTHS = 12


async def _count(db: AsyncSession, model) -> int:
    return int((await db.execute(select(func.count()).select_from(model))).scalar_one() or 0)


async def _project_statuses(db: AsyncSession) -> Counter:
    """Recorded project status, else the one derived from the (extended) end date."""
    result = await db.execute(
        select(FinanceProject.end_date, FinanceProject.extension_end_date, ProjectStatus.status)
        .outerjoin(ProjectStatus, ProjectStatus.project_id == FinanceProject.project_id)
    )
    today = date.today()
    return Counter(
        stored.value if stored is not None else project_timeline_status(end, extension, today)
        for end, extension, stored in result.all()
    )


def _per_month(days: list[date], months: list[date] | None = None) -> list[MonthCountOut]:
    """Counts per calendar month; empty months are skipped."""
    counts = Counter(month_start(d) for d in days)
    keys = months if months is not None else sorted(counts)
    return [MonthCountOut(month=month_label(m), count=counts[m]) for m in keys if counts.get(m)]


async def _recent_per_month(db: AsyncSession, column) -> list[MonthCountOut]:
    months = last_months(date.today(), TREND_MONTHS)
    days = (await db.execute(select(column).where(column >= months[0]))).scalars().all()
    return _per_month(list(days), months)


@router.get("/summary", response_model=TechnicalSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> TechnicalSummaryOut:
    statuses = await _project_statuses(db)
    total = sum(statuses.values())
    completed = statuses[ProjectStatusValue.COMPLETED.value]
    return TechnicalSummaryOut(
        total_projects=total,
        active_projects=total - completed - statuses[ProjectStatusValue.ON_HOLD.value],
        completed_projects=completed,
        total_publications=await _count(db, ProjectPublication),
        total_patents=await _count(db, Patent),
        total_proposals=await _count(db, Proposal),
    )


@router.get("/patents-by-status", response_model=list[StatusCountOut])
async def patents_by_status(db: AsyncSession = Depends(get_db)) -> list[StatusCountOut]:
    count = func.count(Patent.patent_id)
    result = await db.execute(
        select(Patent.status, count.label("total")).group_by(Patent.status).order_by(count.desc())
    )
    return [StatusCountOut(status=r.status.value, count=r.total) for r in result]


@router.get("/publications-by-type", response_model=list[TypeCountOut])
async def publications_by_type(db: AsyncSession = Depends(get_db)) -> list[TypeCountOut]:
    count = func.count(ProjectPublication.publication_id)
    result = await db.execute(
        select(ProjectPublication.type, count.label("total"))
        .group_by(ProjectPublication.type)
        .order_by(count.desc())
    )
    return [TypeCountOut(type=r.type, count=r.total) for r in result]


@router.get("/projects-per-month", response_model=list[MonthCountOut])
async def projects_per_month(db: AsyncSession = Depends(get_db)) -> list[MonthCountOut]:
    return await _recent_per_month(db, FinanceProject.start_date)


@router.get("/publications-per-month", response_model=list[MonthCountOut])
async def publications_per_month(db: AsyncSession = Depends(get_db)) -> list[MonthCountOut]:
    days = (
        await db.execute(
            select(ProjectPublication.publication_date).where(
                ProjectPublication.publication_date.is_not(None)
            )
        )
    ).scalars().all()
    return _per_month(list(days))


@router.get("/patents-per-month", response_model=list[MonthCountOut])
async def patents_per_month(db: AsyncSession = Depends(get_db)) -> list[MonthCountOut]:
    return await _recent_per_month(db, Patent.filing_date)


@router.get("/proposals-per-month", response_model=list[MonthCountOut])
async def proposals_per_month(db: AsyncSession = Depends(get_db)) -> list[MonthCountOut]:
    return await _recent_per_month(db, Proposal.submission_date)


@router.get("/project-status-distribution", response_model=list[StatusCountOut])
async def project_status_distribution(db: AsyncSession = Depends(get_db)) -> list[StatusCountOut]:
    statuses = await _project_statuses(db)
    return [StatusCountOut(status=s, count=n) for s, n in statuses.most_common()]


@router.get("/project-type-distribution", response_model=list[TypeCountOut])
async def project_type_distribution(db: AsyncSession = Depends(get_db)) -> list[TypeCountOut]:
    """Projects have no type column; they are grouped by technical group."""
    count = func.count(FinanceProject.project_id)
    group_name = func.coalesce(TechnicalGroup.group_name, "Unassigned").label("group_label")
    result = await db.execute(
        select(group_name, count.label("total"))
        .select_from(FinanceProject)
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == FinanceProject.group_id)
        .group_by(group_name)
        .order_by(count.desc())
    )
    return [TypeCountOut(type=r.group_label, count=r.total) for r in result]
