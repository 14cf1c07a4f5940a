from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.audit import log_audit
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import logger
from app.db.enums import MmgPoStatus
from app.db.models.hr import Employee, TechnicalGroup
from app.db.models.mmg import Bid, MmgPurchaseOrder, Procurement, ProcurementHistory, ProcurementItem
from app.schemas.common import MessageOut
from app.schemas.mmg import (
    ApprovalRequest,
    BidCreate,
    BidOut,
    CombinedRowOut,
    FinalizeVendorRequest,
    HistoryOut,
    PoStatusUpdate,
    ProcurementCreate,
    ProcurementCreatedOut,
    ProcurementDetailOut,
    ProcurementItemOut,
    ProcurementOut,
    ProcurementUpdate,
    PurchaseOrderCreate,
    PurchaseOrderOut,
    SourcingRequest,
    StatusRequest,
)
from app.services import procurement as workflow

"""
MMG procurement workflow (/api/mmg/...).

indent -> approvals -> sourcing -> bids -> vendor finalization -> purchase
order -> payment. Every status change writes a procurement_history row.
"""

router = APIRouter(dependencies=[Depends(get_current_user)])


def _procurement_query():
    return (
        select(
            Procurement,
            Employee.employee_name.label("indentor_name"),
            TechnicalGroup.group_name.label("group_name"),
        )
        .outerjoin(Employee, Employee.employee_id == Procurement.indentor_id)
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == Procurement.group_id)
    )


def _procurement_fields(procurement: Procurement, indentor_name, group_name) -> dict:
    return dict(
        id=procurement.id,
        indent_number=procurement.indent_number,
        title=procurement.title,
        project_id=procurement.project_id,
        indentor_id=procurement.indentor_id,
        indentor_name=indentor_name,
        group_id=procurement.group_id,
        group_name=group_name,
        purchase_type=procurement.purchase_type,
        delivery_place=procurement.delivery_place,
        estimated_cost=float(procurement.estimated_cost)
        if procurement.estimated_cost is not None
        else None,
        status=procurement.status,
        indent_date=procurement.indent_date,
        mmg_acceptance_date=procurement.mmg_acceptance_date,
        sourcing_method=procurement.sourcing_method,
        created_at=procurement.created_at,
    )


async def _get_procurement(db: AsyncSession, procurement_id: int) -> Procurement:
    procurement = await db.get(Procurement, procurement_id)
    if procurement is None:
        raise NotFoundError("Procurement", procurement_id)
    return procurement


def _record_status(
    db: AsyncSession,
    procurement: Procurement,
    new_status: str,
    remarks: str | None,
    status_date: datetime | None = None,
) -> None:
    history = ProcurementHistory(
        procurement_id=procurement.id,
        old_status=procurement.status,
        new_status=new_status,
        remarks=remarks,
    )
    if status_date is not None:
        history.status_date = status_date
    db.add(history)
    procurement.status = new_status


async def _detail(db: AsyncSession, procurement_id: int) -> ProcurementDetailOut:
    row = (await db.execute(_procurement_query().where(Procurement.id == procurement_id))).first()
    if row is None:
        raise NotFoundError("Procurement", procurement_id)

    items = await db.execute(
        select(ProcurementItem)
        .where(ProcurementItem.procurement_id == procurement_id)
        .order_by(ProcurementItem.id)
    )
    history = await db.execute(
        select(ProcurementHistory)
        .where(ProcurementHistory.procurement_id == procurement_id)
        .order_by(ProcurementHistory.status_date, ProcurementHistory.id)
    )
    bids = await db.execute(
        select(Bid).where(Bid.procurement_id == procurement_id).order_by(Bid.created_at, Bid.id)
    )
    orders = await db.execute(
        select(MmgPurchaseOrder)
        .where(MmgPurchaseOrder.procurement_id == procurement_id)
        .order_by(MmgPurchaseOrder.po_date)
    )
    return ProcurementDetailOut(
        **_procurement_fields(*row),
        items=[ProcurementItemOut.model_validate(i) for i in items.scalars().all()],
        history=[HistoryOut.model_validate(h) for h in history.scalars().all()],
        bids=[BidOut.model_validate(b) for b in bids.scalars().all()],
        purchase_orders=[PurchaseOrderOut.model_validate(po) for po in orders.scalars().all()],
    )


@router.get("/combined-data", response_model=list[CombinedRowOut])
async def combined_data(db: AsyncSession = Depends(get_db)) -> list[CombinedRowOut]:
    bid_counts = (
        select(Bid.procurement_id, func.count().label("bid_count"))
        .group_by(Bid.procurement_id)
        .subquery()
    )
    # one row per procurement: only the most recently created PO is shown
    latest_po = (
        select(
            MmgPurchaseOrder.procurement_id,
            func.max(MmgPurchaseOrder.po_id).label("latest_po_id"),
        )
        .group_by(MmgPurchaseOrder.procurement_id)
        .subquery()
    )
    result = await db.execute(
        select(
            Procurement,
            TechnicalGroup.group_name,
            Employee.employee_name.label("indentor_name"),
            func.coalesce(bid_counts.c.bid_count, 0).label("bid_count"),
            MmgPurchaseOrder,
        )
        .outerjoin(TechnicalGroup, TechnicalGroup.group_id == Procurement.group_id)
        .outerjoin(Employee, Employee.employee_id == Procurement.indentor_id)
        .outerjoin(bid_counts, bid_counts.c.procurement_id == Procurement.id)
        .outerjoin(latest_po, latest_po.c.procurement_id == Procurement.id)
        .outerjoin(MmgPurchaseOrder, MmgPurchaseOrder.po_id == latest_po.c.latest_po_id)
        .order_by(Procurement.indent_date.desc().nulls_last(), Procurement.id.desc())
    )
    rows = []
    for procurement, group_name, indentor_name, bid_count, po in result.all():
        po_status = po.status.value if po is not None else None
        rows.append(
            CombinedRowOut(
                id=procurement.id,
                indent_number=procurement.indent_number,
                title=procurement.title,
                purchase_type=procurement.purchase_type,
                delivery_place=procurement.delivery_place,
                procurement_status=procurement.status,
                estimated_cost=float(procurement.estimated_cost)
                if procurement.estimated_cost is not None
                else None,
                indent_date=procurement.indent_date,
                mmg_acceptance_date=procurement.mmg_acceptance_date,
                sourcing_method=procurement.sourcing_method,
                group_name=group_name,
                indentor_name=indentor_name,
                bid_count=bid_count,
                po_number=po.po_number if po else None,
                po_date=po.po_date if po else None,
                po_value=float(po.po_value) if po else None,
                po_vendor=po.vendor_name if po else None,
                po_status=po_status,
                payment_status=workflow.payment_status(po_status),
            )
        )
    return rows


# Procurements


@router.get("/procurements", response_model=list[ProcurementOut])
async def list_procurements(db: AsyncSession = Depends(get_db)) -> list[ProcurementOut]:
    result = await db.execute(_procurement_query().order_by(Procurement.created_at.desc()))
    return [ProcurementOut(**_procurement_fields(*row)) for row in result.all()]


@router.post(
    "/procurements", response_model=ProcurementCreatedOut, status_code=status.HTTP_201_CREATED
)
async def create_procurement(
    payload: ProcurementCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ProcurementCreatedOut:
    existing = await db.execute(
        select(Procurement.id).where(Procurement.indent_number == payload.indent_number)
    )
    if existing.first() is not None:
        raise ValidationError("Indent number already exists")

    data = payload.model_dump(exclude={"items"})
    procurement = Procurement(**data, status=workflow.INDENT_RECEIVED)
    db.add(procurement)
    await db.flush()

    db.add(
        ProcurementHistory(
            procurement_id=procurement.id,
            old_status=None,
            new_status=workflow.INDENT_RECEIVED,
            remarks=f"Indent created by {user.username}",
        )
    )
    db.add_all(ProcurementItem(procurement_id=procurement.id, **item.model_dump()) for item in payload.items)
    await log_audit(
        db, "create", "procurement", procurement.id,
        after_json={"indent_number": payload.indent_number, "title": payload.title},
        actor=user.username,
    )
    await db.commit()
    logger.info(f"Procurement {payload.indent_number} created with {len(payload.items)} items")
    return ProcurementCreatedOut(
        message="Procurement created successfully",
        procurementId=procurement.id,
        indent_number=procurement.indent_number,
    )


# Registered before /procurements/{procurement_id}/... so that "purchase-order" is not read as an id
@router.put("/procurements/purchase-order/{po_id}/status", response_model=MessageOut)
async def update_po_status(
    po_id: int,
    payload: PoStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    po = await db.get(MmgPurchaseOrder, po_id)
    if po is None:
        raise NotFoundError("Purchase order", po_id)
    before = {"status": po.status.value}
    po.status = payload.status
    po.status_update_date = payload.status_update_date
    if payload.status == MmgPoStatus.PAYMENT_PROCESSED:
        po.payment_completion_date = payload.payment_completion_date
    await log_audit(
        db, "status_change", "purchase_order", po_id,
        before_json=before, after_json={"status": payload.status.value}, actor=user.username,
    )
    await db.commit()
    return MessageOut(message="PO status updated successfully")


@router.get("/procurements/{procurement_id}", response_model=ProcurementDetailOut)
async def get_procurement(procurement_id: int, db: AsyncSession = Depends(get_db)) -> ProcurementDetailOut:
    return await _detail(db, procurement_id)


@router.put("/procurements/{procurement_id}", response_model=ProcurementDetailOut)
async def update_procurement(
    procurement_id: int, payload: ProcurementUpdate, db: AsyncSession = Depends(get_db)
) -> ProcurementDetailOut:
    procurement = await _get_procurement(db, procurement_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("title", "") is None:
        changes.pop("title")
    for key, value in changes.items():
        setattr(procurement, key, value)
    await db.commit()
    return await _detail(db, procurement_id)


@router.post("/procurements/{procurement_id}/approve", response_model=ProcurementDetailOut)
async def approve_procurement(
    procurement_id: int,
    payload: ApprovalRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ProcurementDetailOut:
    procurement = await _get_procurement(db, procurement_id)
    new_status = workflow.approval_status(payload.role, payload.status)
    remarks = payload.remarks or f"{new_status} ({user.username})"
    _record_status(db, procurement, new_status, remarks)
    await db.commit()
    return await _detail(db, procurement_id)


@router.post("/procurements/{procurement_id}/status", response_model=ProcurementDetailOut)
async def update_procurement_status(
    procurement_id: int, payload: StatusRequest, db: AsyncSession = Depends(get_db)
) -> ProcurementDetailOut:
    procurement = await _get_procurement(db, procurement_id)
    # History only records real transitions
    if procurement.status != payload.status:
        remarks = payload.remarks or f"Status updated to {payload.status} by MMG user"
        _record_status(db, procurement, payload.status, remarks, payload.status_date)
        await db.commit()
    return await _detail(db, procurement_id)


@router.post(
    "/procurements/{procurement_id}/sourcing",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
)
async def select_sourcing(
    procurement_id: int, payload: SourcingRequest, db: AsyncSession = Depends(get_db)
) -> MessageOut:
    procurement = await _get_procurement(db, procurement_id)
    procurement.sourcing_method = payload.sourcing_method.value
    remarks = payload.remarks or f"Sourcing method set to {payload.sourcing_method.value}"
    _record_status(db, procurement, workflow.SOURCING_SELECTED, remarks)
    await db.commit()
    return MessageOut(message="Sourcing method updated successfully")


@router.get("/procurements/{procurement_id}/bids", response_model=list[BidOut])
async def list_bids(procurement_id: int, db: AsyncSession = Depends(get_db)) -> list[BidOut]:
    await _get_procurement(db, procurement_id)
    result = await db.execute(
        select(Bid).where(Bid.procurement_id == procurement_id).order_by(Bid.created_at, Bid.id)
    )
    return [BidOut.model_validate(b) for b in result.scalars().all()]


@router.post(
    "/procurements/{procurement_id}/bids", response_model=BidOut, status_code=status.HTTP_201_CREATED
)
async def add_bid(
    procurement_id: int, payload: BidCreate, db: AsyncSession = Depends(get_db)
) -> BidOut:
    procurement = await _get_procurement(db, procurement_id)
    workflow.ensure_status(procurement.status, workflow.BID_ALLOWED, "add bids")

    bid = Bid(procurement_id=procurement_id, **payload.model_dump())
    db.add(bid)
    if procurement.status != workflow.BIDS_RECEIVED:
        _record_status(db, procurement, workflow.BIDS_RECEIVED, f"Bid received from {payload.vendor_name}")
    await db.commit()
    await db.refresh(bid)
    return BidOut.model_validate(bid)


@router.post("/procurements/{procurement_id}/finalize-vendor", response_model=MessageOut)
async def finalize_vendor(
    procurement_id: int, payload: FinalizeVendorRequest, db: AsyncSession = Depends(get_db)
) -> MessageOut:
    procurement = await _get_procurement(db, procurement_id)
    workflow.ensure_status(procurement.status, workflow.FINALIZE_ALLOWED, "finalize vendor")

    bid = await db.get(Bid, payload.bid_id)
    if bid is None or bid.procurement_id != procurement_id:
        raise NotFoundError("Bid", payload.bid_id)
    bid.is_finalized = True
    bid.finalization_date = payload.finalization_date
    _record_status(
        db,
        procurement,
        workflow.VENDOR_FINALIZED,
        f"Vendor {bid.vendor_name} selected",
        datetime.combine(payload.finalization_date, datetime.min.time()),
    )
    await db.commit()
    return MessageOut(message="Vendor finalized successfully")


@router.post(
    "/procurements/{procurement_id}/purchase-order",
    response_model=PurchaseOrderOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase_order(
    procurement_id: int,
    payload: PurchaseOrderCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PurchaseOrderOut:
    procurement = await _get_procurement(db, procurement_id)
    workflow.ensure_status(procurement.status, workflow.PURCHASE_ORDER_ALLOWED, "create a purchase order")

    # The finalized bid wins, otherwise the most recent one
    bid = (
        await db.execute(
            select(Bid)
            .where(Bid.procurement_id == procurement_id)
            .order_by(Bid.is_finalized.desc(), Bid.created_at.desc(), Bid.id.desc())
            .limit(1)
        )
    ).scalar_one_or_none()
    if bid is None:
        raise ValidationError("No vendor selected for this procurement")

    po = MmgPurchaseOrder(
        procurement_id=procurement_id,
        bid_id=bid.id,
        vendor_name=bid.vendor_name,
        status=MmgPoStatus.PENDING,
        **payload.model_dump(),
    )
    db.add(po)
    _record_status(
        db,
        procurement,
        workflow.PO_CREATED,
        f"Purchase order {payload.po_number} created",
        datetime.combine(payload.po_creation_date, datetime.min.time()),
    )
    await db.flush()
    await log_audit(
        db, "create", "purchase_order", po.po_id,
        after_json={"po_number": payload.po_number, "procurement_id": procurement_id},
        actor=user.username,
    )
    await db.commit()
    await db.refresh(po)
    return PurchaseOrderOut.model_validate(po)


@router.get("/procurements/{procurement_id}/purchase-orders", response_model=list[PurchaseOrderOut])
async def list_purchase_orders(
    procurement_id: int, db: AsyncSession = Depends(get_db)
) -> list[PurchaseOrderOut]:
    await _get_procurement(db, procurement_id)
    result = await db.execute(
        select(MmgPurchaseOrder)
        .where(MmgPurchaseOrder.procurement_id == procurement_id)
        .order_by(MmgPurchaseOrder.po_date)
    )
    return [PurchaseOrderOut.model_validate(po) for po in result.scalars().all()]


@router.delete("/procurements/{procurement_id}", response_model=MessageOut)
async def delete_procurement(
    procurement_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    procurement = await _get_procurement(db, procurement_id)
    if not workflow.can_delete(procurement.status):
        raise ValidationError(
            "Cannot delete procurement. Only pending or rejected procurements can be deleted.",
            details={"status": procurement.status},
        )
    await log_audit(
        db, "delete", "procurement", procurement_id,
        before_json={"indent_number": procurement.indent_number, "status": procurement.status},
        actor=user.username,
    )
    await db.delete(procurement)
    await db.commit()
    return MessageOut(message="Procurement deleted successfully")
