from __future__ import annotations

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.enums import MmgPoStatus
from app.db.models.mmg import MmgPurchaseOrder, Procurement
from app.schemas.mmg import (
    MmgSummaryOut,
    ProcurementStatusOut,
    ProcurementsPerMonthOut,
    SourcingDistributionOut,
)
from app.services.procurement import AWAITING_APPROVAL
from app.services.status import last_months, month_label, month_start

router = APIRouter(dependencies=[Depends(get_current_user)])

TREND_MONTHS = 12


async def _count(db: AsyncSession, stmt) -> int:
    return int((await db.execute(stmt)).scalar_one() or 0)


@router.get("/summary", response_model=MmgSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> MmgSummaryOut:
    procurements = select(func.count()).select_from(Procurement)
    return MmgSummaryOut(
        total_procurements=await _count(db, procurements),
        pending_approvals=await _count(db, procurements.where(Procurement.status.in_(AWAITING_APPROVAL))),
        procurements_with_sourcing=await _count(
            db, procurements.where(Procurement.sourcing_method.is_not(None))
        ),
        completed_pos=await _count(
            db,
            select(func.count())
            .select_from(MmgPurchaseOrder)
            .where(MmgPurchaseOrder.status == MmgPoStatus.PAYMENT_PROCESSED),
        ),
    )


@router.get("/procurements-per-month", response_model=list[ProcurementsPerMonthOut])
async def procurements_per_month(db: AsyncSession = Depends(get_db)) -> list[ProcurementsPerMonthOut]:
    months = last_months(date.today(), TREND_MONTHS)
    created = (
        await db.execute(select(Procurement.created_at).where(Procurement.created_at >= months[0]))
    ).scalars().all()
    counts = Counter(month_start(c.date()) for c in created)
    # Months without procurements are skipped
    return [
        ProcurementsPerMonthOut(month=month_label(m), procurement_count=counts[m])
        for m in months
        if counts.get(m)
    ]


@router.get("/procurement-status", response_model=list[ProcurementStatusOut])
async def procurement_status(db: AsyncSession = Depends(get_db)) -> list[ProcurementStatusOut]:
    procurement_count = func.count().label("procurement_count")
    result = await db.execute(
        select(Procurement.status, procurement_count)
        .group_by(Procurement.status)
        .order_by(procurement_count.desc())
    )
    return [ProcurementStatusOut(status=r.status, procurement_count=r.procurement_count) for r in result]


@router.get("/sourcing-method-distribution", response_model=list[SourcingDistributionOut])
async def sourcing_method_distribution(
    db: AsyncSession = Depends(get_db),
) -> list[SourcingDistributionOut]:
    procurement_count = func.count().label("procurement_count")
    result = await db.execute(
        select(Procurement.sourcing_method, procurement_count)
        .group_by(Procurement.sourcing_method)
        .order_by(procurement_count.desc())
    )
    return [
        SourcingDistributionOut(sourcing_method=r.sourcing_method, procurement_count=r.procurement_count)
        for r in result
    ]
