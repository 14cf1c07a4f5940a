from __future__ import annotations

import calendar
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.models.finance import BudgetEntry, Expenditure, FinanceProject, GrantReceived
from app.db.models.hr import TechnicalGroup
from app.db.models.technical import ProjectStatus
from app.schemas.finance import (
    BudgetVsExpenditureOut,
    FinanceSummaryOut,
    FundingOverviewOut,
    FyBudgetRemainingOut,
    GrantHistoryOut,
    GroupProjectsOut,
    MonthlySpendOut,
    ProjectStatusCountOut,
    RemainingBudgetOut,
    TopProjectOut,
    YearlySpendingOut,
    YearSpendingOut,
)
from app.services.status import budget_utilization, project_timeline_status

router = APIRouter(dependencies=[Depends(get_current_user)])

TOP_PROJECTS = 10
BUDGET_VS_EXPENDITURE_PROJECTS = 15
REMAINING_BUDGET_PROJECTS = 15
FY_BUDGET_PROJECTS = 20
GRANT_HISTORY_ROWS = 100


async def _sum(db: AsyncSession, stmt) -> float:
    return float((await db.execute(stmt)).scalar_one() or 0)


def _spent_per_project():
    return (
        select(
            Expenditure.project_id,
            func.coalesce(func.sum(Expenditure.amount_spent), 0).label("total_spent"),
        )
        .group_by(Expenditure.project_id)
        .subquery()
    )


async def _year_spending(db: AsyncSession, year: int) -> YearSpendingOut:
    spent = await _sum(
        db, select(func.sum(Expenditure.amount_spent)).where(Expenditure.year_number == year)
    )
    budget = await _sum(db, select(func.sum(BudgetEntry.amount)).where(BudgetEntry.year_number == year))
    return YearSpendingOut(year=year, spent=spent, budget=budget, pending=budget - spent)


@router.get("/summary", response_model=FinanceSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> FinanceSummaryOut:
    current = await _year_spending(db, date.today().year)
    return FinanceSummaryOut(
        total_projects=int(await _sum(db, select(func.count()).select_from(FinanceProject))),
        total_value=await _sum(db, select(func.sum(FinanceProject.total_value))),
        current_year_spent=current.spent,
        current_year_budget=current.budget,
        current_year_pending=current.pending,
    )


@router.get("/group-projects", response_model=list[GroupProjectsOut])
async def group_projects(db: AsyncSession = Depends(get_db)) -> list[GroupProjectsOut]:
    spent = _spent_per_project()
    total_budget = func.coalesce(func.sum(FinanceProject.total_value), 0).label("total_budget")
    result = await db.execute(
        select(
            TechnicalGroup.group_name,
            func.count(FinanceProject.project_id).label("project_count"),
            total_budget,
            func.coalesce(func.sum(spent.c.total_spent), 0).label("total_spent"),
        )
        .outerjoin(FinanceProject, FinanceProject.group_id == TechnicalGroup.group_id)
        .outerjoin(spent, spent.c.project_id == FinanceProject.project_id)
        .group_by(TechnicalGroup.group_id, TechnicalGroup.group_name)
        .order_by(total_budget.desc())
    )
    return [
        GroupProjectsOut(
            group_name=r.group_name,
            project_count=r.project_count,
            total_budget=float(r.total_budget),
            total_spent=float(r.total_spent),
            pending_amount=float(r.total_budget) - float(r.total_spent),
        )
        for r in result
    ]


@router.get("/yearly-spending", response_model=YearlySpendingOut)
async def yearly_spending(db: AsyncSession = Depends(get_db)) -> YearlySpendingOut:
    year = date.today().year
    return YearlySpendingOut(
        current_year=await _year_spending(db, year),
        previous_year=await _year_spending(db, year - 1),
    )


@router.get("/monthly-trend", response_model=list[MonthlySpendOut])
async def monthly_trend(db: AsyncSession = Depends(get_db)) -> list[MonthlySpendOut]:
    month = extract("month", Expenditure.expenditure_date)
    result = await db.execute(
        select(month.label("month"), func.sum(Expenditure.amount_spent).label("spent"))
        .where(extract("year", Expenditure.expenditure_date) == date.today().year)
        .group_by(month)
        .order_by(month)
    )
    return [
        MonthlySpendOut(
            month=int(r.month), month_name=calendar.month_name[int(r.month)], spent=float(r.spent)
        )
        for r in result
    ]


@router.get("/top-projects", response_model=list[TopProjectOut])
async def top_projects(db: AsyncSession = Depends(get_db)) -> list[TopProjectOut]:
    spent = _spent_per_project()
    result = await db.execute(
        select(
            FinanceProject,
            TechnicalGroup.group_name,
            ProjectStatus.status,
            func.coalesce(spent.c.total_spent, 0).label("total_spent"),
        )
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == FinanceProject.group_id)
        .outerjoin(ProjectStatus, ProjectStatus.project_id == FinanceProject.project_id)
        .outerjoin(spent, spent.c.project_id == FinanceProject.project_id)
        .order_by(FinanceProject.total_value.desc())
        .limit(TOP_PROJECTS)
    )
    today = date.today()
    rows = []
    for project, group_name, stored_status, total_spent in result.all():
        # A recorded project status wins over the one derived from the dates
        status = (
            stored_status.value
            if stored_status is not None
            else project_timeline_status(project.end_date, project.extension_end_date, today)
        )
        rows.append(
            TopProjectOut(
                project_name=project.project_name,
                total_budget=float(project.total_value),
                total_spent=float(total_spent),
                pending_amount=float(project.total_value) - float(total_spent),
                status=status,
                group_name=group_name,
                end_date=project.end_date,
                extension_end_date=project.extension_end_date,
            )
        )
    return rows


@router.get("/budget-vs-expenditure", response_model=list[BudgetVsExpenditureOut])
async def budget_vs_expenditure(db: AsyncSession = Depends(get_db)) -> list[BudgetVsExpenditureOut]:
    spent = _spent_per_project()
    result = await db.execute(
        select(
            FinanceProject.project_name,
            FinanceProject.total_value,
            func.coalesce(spent.c.total_spent, 0).label("total_spent"),
        )
        .outerjoin(spent, spent.c.project_id == FinanceProject.project_id)
        .order_by(FinanceProject.total_value.desc())
        .limit(BUDGET_VS_EXPENDITURE_PROJECTS)
    )
    return [
        BudgetVsExpenditureOut(
            project_name=r.project_name, budget=float(r.total_value), expenditure=float(r.total_spent)
        )
        for r in result
    ]


@router.get("/project-status", response_model=list[ProjectStatusCountOut])
async def project_status(db: AsyncSession = Depends(get_db)) -> list[ProjectStatusCountOut]:
    result = await db.execute(
        select(FinanceProject, ProjectStatus.status).outerjoin(
            ProjectStatus, ProjectStatus.project_id == FinanceProject.project_id
        )
    )
    today = date.today()
    counts: dict[str, list[float]] = {}
    for project, stored_status in result.all():
        status = (
            stored_status.value
            if stored_status is not None
            else project_timeline_status(project.end_date, project.extension_end_date, today)
        )
        bucket = counts.setdefault(status, [0, 0.0])
        bucket[0] += 1
        bucket[1] += float(project.total_value)
    return sorted(
        (ProjectStatusCountOut(status=s, count=int(c), value=v) for s, (c, v) in counts.items()),
        key=lambda row: (-row.count, row.status),
    )


@router.get("/remaining-budget", response_model=list[RemainingBudgetOut])
async def remaining_budget(db: AsyncSession = Depends(get_db)) -> list[RemainingBudgetOut]:
    spent = _spent_per_project()
    total_spent = func.coalesce(spent.c.total_spent, 0)
    remaining = FinanceProject.total_value - total_spent
    result = await db.execute(
        select(
            FinanceProject.project_name,
            FinanceProject.total_value,
            total_spent.label("total_spent"),
            remaining.label("remaining_budget"),
        )
        .outerjoin(spent, spent.c.project_id == FinanceProject.project_id)
        .where(remaining > 0)
        .order_by(remaining.desc())
        .limit(REMAINING_BUDGET_PROJECTS)
    )
    return [
        RemainingBudgetOut(
            project_name=r.project_name,
            total_budget=float(r.total_value),
            total_expenditure=float(r.total_spent),
            remaining_budget=float(r.remaining_budget),
        )
        for r in result
    ]


@router.get("/funding-overview", response_model=list[FundingOverviewOut])
async def funding_overview(db: AsyncSession = Depends(get_db)) -> list[FundingOverviewOut]:
    spent = _spent_per_project()
    agency = func.coalesce(FinanceProject.funding_agency, "Unknown").label("funding_agency")
    total_value = func.coalesce(func.sum(FinanceProject.total_value), 0).label("agency_value")
    result = await db.execute(
        select(
            agency,
            func.count(FinanceProject.project_id).label("project_count"),
            total_value,
            func.coalesce(func.sum(spent.c.total_spent), 0).label("total_spent"),
        )
        .outerjoin(spent, spent.c.project_id == FinanceProject.project_id)
        .group_by(agency)
        .order_by(total_value.desc())
    )
    return [
        FundingOverviewOut(
            funding_agency=r.funding_agency,
            project_count=r.project_count,
            total_value=float(r.agency_value),
            total_expenditure=float(r.total_spent),
            remaining_budget=float(r.agency_value) - float(r.total_spent),
        )
        for r in result
    ]


@router.get("/grant-history", response_model=list[GrantHistoryOut])
async def grant_history(db: AsyncSession = Depends(get_db)) -> list[GrantHistoryOut]:
    result = await db.execute(
        select(
            GrantReceived.received_date,
            FinanceProject.project_name,
            func.sum(GrantReceived.amount).label("amount_received"),
        )
        .join(FinanceProject, FinanceProject.project_id == GrantReceived.project_id)
        .group_by(GrantReceived.received_date, FinanceProject.project_name)
        .order_by(GrantReceived.received_date, FinanceProject.project_name)
        .limit(GRANT_HISTORY_ROWS)
    )
    return [
        GrantHistoryOut(
            received_date=r.received_date,
            project_name=r.project_name,
            amount_received=float(r.amount_received or 0),
        )
        for r in result
    ]


@router.get("/fy-budget-remaining", response_model=list[FyBudgetRemainingOut])
async def fy_budget_remaining(
    year: int | None = Query(default=None, ge=2000),
    db: AsyncSession = Depends(get_db),
) -> list[FyBudgetRemainingOut]:
    """Per-project budget left in one financial year; projects without a budget that year are skipped."""
    year = year or date.today().year
    budget = (
        select(BudgetEntry.project_id, func.sum(BudgetEntry.amount).label("allocated"))
        .where(BudgetEntry.year_number == year)
        .group_by(BudgetEntry.project_id)
        .subquery()
    )
    spent = (
        select(Expenditure.project_id, func.sum(Expenditure.amount_spent).label("spent"))
        .where(Expenditure.year_number == year)
        .group_by(Expenditure.project_id)
        .subquery()
    )
    fy_spent = func.coalesce(spent.c.spent, 0)
    remaining = budget.c.allocated - fy_spent
    result = await db.execute(
        select(
            FinanceProject.project_name,
            FinanceProject.total_value,
            budget.c.allocated,
            fy_spent.label("fy_spent"),
            remaining.label("remaining"),
        )
        .join(budget, budget.c.project_id == FinanceProject.project_id)
        .outerjoin(spent, spent.c.project_id == FinanceProject.project_id)
        .where(budget.c.allocated > 0)
        .order_by(remaining.desc())
        .limit(FY_BUDGET_PROJECTS)
    )
    rows = []
    for r in result:
        allocated, used = float(r.allocated), float(r.fy_spent)
        band, percentage = budget_utilization(allocated, used)
        rows.append(
            FyBudgetRemainingOut(
                project_name=r.project_name,
                total_project_budget=float(r.total_value),
                fy_budget_allocated=allocated,
                fy_expenditure=used,
                fy_budget_remaining=float(r.remaining),
                utilization_status=band,
                utilization_percentage=percentage,
            )
        )
    return rows
