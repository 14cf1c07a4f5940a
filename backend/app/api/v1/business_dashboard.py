from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.db.enums import PaymentStatus
from app.db.models.business import BusinessEntity, BusinessPurchaseOrder, Client, EntityPayment
from app.schemas.business import BusinessSummaryOut, EntitiesByTypeOut, PurchaseOrdersByStatusOut

router = APIRouter(dependencies=[Depends(get_current_user)])


async def _scalar(db: AsyncSession, stmt) -> float:
    return float((await db.execute(stmt)).scalar_one() or 0)


@router.get("/summary", response_model=BusinessSummaryOut)
async def summary(db: AsyncSession = Depends(get_db)) -> BusinessSummaryOut:
    return BusinessSummaryOut(
        total_clients=int(await _scalar(db, select(func.count()).select_from(Client))),
        total_entities=int(await _scalar(db, select(func.count()).select_from(BusinessEntity))),
        total_purchase_orders=int(
            await _scalar(db, select(func.count()).select_from(BusinessPurchaseOrder))
        ),
        total_order_value=await _scalar(db, select(func.sum(BusinessEntity.order_value))),
        total_invoice_value=await _scalar(db, select(func.sum(BusinessPurchaseOrder.invoice_value))),
        total_payments_received=await _scalar(
            db,
            select(func.sum(EntityPayment.amount)).where(
                EntityPayment.status == PaymentStatus.RECEIVED
            ),
        ),
    )


@router.get("/entities-by-type", response_model=list[EntitiesByTypeOut])
async def entities_by_type(db: AsyncSession = Depends(get_db)) -> list[EntitiesByTypeOut]:
    count = func.count(BusinessEntity.id)
    result = await db.execute(
        select(BusinessEntity.entity_type, count.label("entity_count"))
        .group_by(BusinessEntity.entity_type)
        .order_by(count.desc())
    )
    return [
        EntitiesByTypeOut(entity_type=r.entity_type.value, entity_count=r.entity_count)
        for r in result
    ]


@router.get("/purchase-orders-by-status", response_model=list[PurchaseOrdersByStatusOut])
async def purchase_orders_by_status(
    db: AsyncSession = Depends(get_db),
) -> list[PurchaseOrdersByStatusOut]:
    count = func.count(BusinessPurchaseOrder.po_id)
    result = await db.execute(
        select(BusinessPurchaseOrder.invoice_status, count.label("po_count"))
        .group_by(BusinessPurchaseOrder.invoice_status)
        .order_by(count.desc())
    )
    return [PurchaseOrdersByStatusOut(invoice_status=r.invoice_status, po_count=r.po_count) for r in result]
