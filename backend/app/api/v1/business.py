from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user, get_db
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import logger
from app.db.enums import PaymentStatus
from app.db.models.auth import User
from app.db.models.business import (
    BusinessEntity,
    BusinessPurchaseOrder,
    Client,
    EntityPayment,
    PoStatusHistory,
)
from app.db.models.hr import Employee
from app.schemas.business import (
    AutoStatusOut,
    ClientIn,
    ClientOut,
    EntityCreate,
    EntityOut,
    EntityUpdate,
    PaymentCreate,
    PaymentOut,
    PaymentUpdate,
    PoStatusChange,
    PoStatusHistoryOut,
    PurchaseOrderCreate,
    PurchaseOrderOut,
    PurchaseOrderUpdate,
)
from app.schemas.common import MessageOut
from app.services.status import po_payment_status

"""
Business development (/api/business/...): clients, business entities
(projects, services, products), their purchase orders and payment milestones.
"""

router = APIRouter(dependencies=[Depends(get_current_user)])

AUTO_UPDATE_REASON = "Auto-updated based on payment milestones"


async def sync_po_status(db: AsyncSession, po: BusinessPurchaseOrder, user_id: int | None) -> str | None:
    """
    Re-derive the payment status of `po` from its received milestones.

    Records a history row and returns the previous status when it changes,
    None otherwise. Does not commit.
    """
    await db.flush()
    received = await db.execute(
        select(func.coalesce(func.sum(EntityPayment.amount), 0)).where(
            EntityPayment.po_id == po.po_id, EntityPayment.status == PaymentStatus.RECEIVED
        )
    )
    new_status = po_payment_status(received.scalar_one(), po.invoice_value)
    if new_status == po.status:
        return None
    old_status = po.status
    db.add(
        PoStatusHistory(
            po_id=po.po_id,
            old_status=old_status,
            new_status=new_status,
            changed_by=user_id,
            reason=AUTO_UPDATE_REASON,
        )
    )
    po.status = new_status
    logger.info(f"Business PO {po.po_id}: {old_status} -> {new_status}")
    return old_status


# Clients


async def _get_client(db: AsyncSession, client_id: int) -> Client:
    client = await db.get(Client, client_id)
    if client is None:
        raise NotFoundError("Client", client_id)
    return client


def _require_client_fields(payload: ClientIn) -> None:
    missing = payload.missing_fields()
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})


@router.get("/clients", response_model=list[ClientOut])
async def list_clients(db: AsyncSession = Depends(get_db)) -> list[ClientOut]:
    result = await db.execute(select(Client).order_by(Client.client_name))
    return [ClientOut.model_validate(c) for c in result.scalars().all()]


@router.post("/clients", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(payload: ClientIn, db: AsyncSession = Depends(get_db)) -> ClientOut:
    _require_client_fields(payload)
    client = Client(**payload.model_dump())
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return ClientOut.model_validate(client)


@router.put("/clients/{client_id}", response_model=ClientOut)
async def update_client(client_id: int, payload: ClientIn, db: AsyncSession = Depends(get_db)) -> ClientOut:
    _require_client_fields(payload)
    client = await _get_client(db, client_id)
    for key, value in payload.model_dump().items():
        setattr(client, key, value)
    await db.commit()
    await db.refresh(client)
    return ClientOut.model_validate(client)


@router.delete("/clients/{client_id}", response_model=MessageOut)
async def delete_client(client_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    client = await _get_client(db, client_id)
    entities = await db.execute(
        select(func.count()).select_from(BusinessEntity).where(BusinessEntity.client_id == client_id)
    )
    if entities.scalar_one():
        raise ValidationError("Cannot delete client with existing business entities")
    await db.delete(client)
    await db.commit()
    return MessageOut(message="Client deleted successfully")


# Business entities


def _entity_query():
    return select(BusinessEntity, Client.client_name).outerjoin(
        Client, Client.id == BusinessEntity.client_id
    )


def _entity_out(entity: BusinessEntity, client_name: str | None) -> EntityOut:
    return EntityOut(
        id=entity.id,
        name=entity.name,
        entity_type=entity.entity_type,
        service_type=entity.service_type,
        client_id=entity.client_id,
        client_name=client_name,
        start_date=entity.start_date,
        end_date=entity.end_date,
        order_value=float(entity.order_value),
        payment_duration=entity.payment_duration,
        description=entity.description,
    )


async def _get_entity(db: AsyncSession, entity_id: int) -> BusinessEntity:
    entity = await db.get(BusinessEntity, entity_id)
    if entity is None:
        raise NotFoundError("Business entity", entity_id)
    return entity


async def _get_entity_out(db: AsyncSession, entity_id: int) -> EntityOut:
    row = (await db.execute(_entity_query().where(BusinessEntity.id == entity_id))).first()
    if row is None:
        raise NotFoundError("Business entity", entity_id)
    return _entity_out(*row)


async def _ensure_unique_name(
    db: AsyncSession, name: str, client_id: int, exclude_id: int | None = None
) -> None:
    stmt = select(BusinessEntity.id).where(
        BusinessEntity.name == name, BusinessEntity.client_id == client_id
    )
    if exclude_id is not None:
        stmt = stmt.where(BusinessEntity.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ValidationError("Business entity with this name already exists for this client")


@router.get("/business-entities", response_model=list[EntityOut])
async def list_entities(db: AsyncSession = Depends(get_db)) -> list[EntityOut]:
    result = await db.execute(_entity_query().order_by(BusinessEntity.name))
    return [_entity_out(*row) for row in result.all()]


@router.get("/business-entities/{entity_id}", response_model=EntityOut)
async def get_entity(entity_id: int, db: AsyncSession = Depends(get_db)) -> EntityOut:
    return await _get_entity_out(db, entity_id)


@router.post("/business-entities", response_model=EntityOut, status_code=status.HTTP_201_CREATED)
async def create_entity(payload: EntityCreate, db: AsyncSession = Depends(get_db)) -> EntityOut:
    await _get_client(db, payload.client_id)
    await _ensure_unique_name(db, payload.name, payload.client_id)
    entity = BusinessEntity(**payload.model_dump())
    db.add(entity)
    await db.commit()
    return await _get_entity_out(db, entity.id)


@router.put("/business-entities/{entity_id}", response_model=EntityOut)
async def update_entity(
    entity_id: int, payload: EntityUpdate, db: AsyncSession = Depends(get_db)
) -> EntityOut:
    entity = await _get_entity(db, entity_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    entity_type = changes.get("entity_type", entity.entity_type)
    service_type = changes.get("service_type", entity.service_type)
    if entity_type == "service" and not service_type:
        raise ValidationError("Service type is required when entity type is service")
    if changes.get("end_date", entity.end_date) < changes.get("start_date", entity.start_date):
        raise ValidationError("End date must be on or after start date")
    if "name" in changes or "client_id" in changes:
        await _get_client(db, changes.get("client_id", entity.client_id))
        await _ensure_unique_name(
            db, changes.get("name", entity.name), changes.get("client_id", entity.client_id), entity_id
        )

    for key, value in changes.items():
        setattr(entity, key, value)
    await db.commit()
    return await _get_entity_out(db, entity_id)


@router.delete("/business-entities/{entity_id}", response_model=MessageOut)
async def delete_entity(entity_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    entity = await _get_entity(db, entity_id)
    payments = await db.execute(
        select(func.count()).select_from(EntityPayment).where(EntityPayment.entity_id == entity_id)
    )
    payment_count = payments.scalar_one()
    if payment_count:
        raise ValidationError(
            f"Cannot delete business entity: It has {payment_count} payment milestone(s) "
            "that must be deleted first.",
            details={"payment_milestones": payment_count},
        )
    orders = await db.execute(
        select(func.count())
        .select_from(BusinessPurchaseOrder)
        .where(BusinessPurchaseOrder.entity_id == entity_id)
    )
    po_count = orders.scalar_one()
    # Purchase orders go with the entity (ON DELETE CASCADE)
    await db.delete(entity)
    await db.commit()
    if po_count:
        return MessageOut(
            message=f"Business entity deleted successfully. {po_count} purchase order(s) were also deleted."
        )
    return MessageOut(message="Business entity deleted successfully")


# Payment milestones


@router.get("/business-entities/{entity_id}/payment-milestones", response_model=list[PaymentOut])
async def list_payments(entity_id: int, db: AsyncSession = Depends(get_db)) -> list[PaymentOut]:
    await _get_entity(db, entity_id)
    result = await db.execute(
        select(EntityPayment)
        .where(EntityPayment.entity_id == entity_id)
        .order_by(EntityPayment.payment_date)
    )
    return [PaymentOut.model_validate(p) for p in result.scalars().all()]


async def _get_entity_po(db: AsyncSession, entity_id: int, po_id: int) -> BusinessPurchaseOrder:
    po = await db.get(BusinessPurchaseOrder, po_id)
    if po is None or po.entity_id != entity_id:
        raise ValidationError(
            "Purchase order not found or does not belong to this entity",
            details={"po_id": po_id, "entity_id": entity_id},
        )
    return po


@router.post(
    "/business-entities/{entity_id}/payment-milestones",
    response_model=PaymentOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    entity_id: int,
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentOut:
    await _get_entity(db, entity_id)
    po = await _get_entity_po(db, entity_id, payload.po_id)
    payment = EntityPayment(entity_id=entity_id, **payload.model_dump())
    db.add(payment)
    await sync_po_status(db, po, user.id)
    await db.commit()
    await db.refresh(payment)
    return PaymentOut.model_validate(payment)


async def _get_payment(db: AsyncSession, entity_id: int, payment_id: int) -> EntityPayment:
    payment = await db.get(EntityPayment, payment_id)
    if payment is None or payment.entity_id != entity_id:
        raise NotFoundError("Payment milestone", payment_id)
    return payment


@router.put(
    "/business-entities/{entity_id}/payment-milestones/{payment_id}", response_model=PaymentOut
)
async def update_payment(
    entity_id: int,
    payment_id: int,
    payload: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentOut:
    payment = await _get_payment(db, entity_id, payment_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    start = changes.get("billing_start_date", payment.billing_start_date)
    if changes.get("billing_end_date", payment.billing_end_date) < start:
        raise ValidationError("Billing end date must be on or after billing start date")
    for key, value in changes.items():
        setattr(payment, key, value)
    po = await db.get(BusinessPurchaseOrder, payment.po_id)
    await sync_po_status(db, po, user.id)
    await db.commit()
    await db.refresh(payment)
    return PaymentOut.model_validate(payment)


@router.delete(
    "/business-entities/{entity_id}/payment-milestones/{payment_id}", response_model=MessageOut
)
async def delete_payment(
    entity_id: int,
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    payment = await _get_payment(db, entity_id, payment_id)
    po = await db.get(BusinessPurchaseOrder, payment.po_id)
    await db.delete(payment)
    await sync_po_status(db, po, user.id)
    await db.commit()
    return MessageOut(message="Payment milestone deleted successfully")


# Purchase orders


def _po_query():
    return (
        select(
            BusinessPurchaseOrder,
            BusinessEntity.name.label("entity_name"),
            BusinessEntity.entity_type,
            Client.client_name,
            Employee.employee_name.label("requested_by_name"),
        )
        .join(BusinessEntity, BusinessEntity.id == BusinessPurchaseOrder.entity_id)
        .outerjoin(Client, Client.id == BusinessEntity.client_id)
        .outerjoin(Employee, Employee.employee_id == BusinessPurchaseOrder.requested_by)
    )


def _po_out(row) -> PurchaseOrderOut:
    po = row[0]
    return PurchaseOrderOut(
        po_id=po.po_id,
        entity_id=po.entity_id,
        entity_name=row.entity_name,
        entity_type=row.entity_type,
        client_name=row.client_name,
        invoice_no=po.invoice_no,
        invoice_date=po.invoice_date,
        invoice_value=float(po.invoice_value),
        payment_duration=po.payment_duration,
        invoice_status=po.invoice_status,
        status=po.status,
        requested_by=po.requested_by,
        requested_by_name=row.requested_by_name,
        payment_mode=po.payment_mode,
        remarks=po.remarks,
    )


async def _get_po(db: AsyncSession, po_id: int) -> BusinessPurchaseOrder:
    po = await db.get(BusinessPurchaseOrder, po_id)
    if po is None:
        raise NotFoundError("Purchase order", po_id)
    return po


async def _get_po_out(db: AsyncSession, po_id: int) -> PurchaseOrderOut:
    row = (await db.execute(_po_query().where(BusinessPurchaseOrder.po_id == po_id))).first()
    if row is None:
        raise NotFoundError("Purchase order", po_id)
    return _po_out(row)


@router.get("/business-entities/{entity_id}/purchase-orders", response_model=list[PurchaseOrderOut])
async def list_entity_purchase_orders(
    entity_id: int, db: AsyncSession = Depends(get_db)
) -> list[PurchaseOrderOut]:
    await _get_entity(db, entity_id)
    result = await db.execute(
        _po_query()
        .where(BusinessPurchaseOrder.entity_id == entity_id)
        .order_by(BusinessPurchaseOrder.invoice_date.desc())
    )
    return [_po_out(row) for row in result.all()]


@router.get("/purchase-orders", response_model=list[PurchaseOrderOut])
async def list_purchase_orders(db: AsyncSession = Depends(get_db)) -> list[PurchaseOrderOut]:
    result = await db.execute(_po_query().order_by(BusinessPurchaseOrder.invoice_date.desc()))
    return [_po_out(row) for row in result.all()]


@router.post("/purchase-orders", response_model=PurchaseOrderOut, status_code=status.HTTP_201_CREATED)
async def create_purchase_order(
    payload: PurchaseOrderCreate, db: AsyncSession = Depends(get_db)
) -> PurchaseOrderOut:
    await _get_entity(db, payload.entity_id)
    po = BusinessPurchaseOrder(**payload.model_dump())
    db.add(po)
    await db.commit()
    return await _get_po_out(db, po.po_id)


@router.put("/purchase-orders/{po_id}", response_model=PurchaseOrderOut)
async def update_purchase_order(
    po_id: int,
    payload: PurchaseOrderUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PurchaseOrderOut:
    po = await _get_po(db, po_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "entity_id" in changes:
        await _get_entity(db, changes["entity_id"])
    for key, value in changes.items():
        setattr(po, key, value)
    if "invoice_value" in changes:
        await sync_po_status(db, po, user.id)
    await db.commit()
    return await _get_po_out(db, po_id)


@router.delete("/purchase-orders/{po_id}", response_model=MessageOut)
async def delete_purchase_order(po_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
    po = await _get_po(db, po_id)
    await db.delete(po)
    await db.commit()
    return MessageOut(message="Purchase order deleted successfully")


@router.get("/purchase-orders/{po_id}/status-history", response_model=list[PoStatusHistoryOut])
async def po_status_history(po_id: int, db: AsyncSession = Depends(get_db)) -> list[PoStatusHistoryOut]:
    await _get_po(db, po_id)
    result = await db.execute(
        select(PoStatusHistory, User.username)
        .outerjoin(User, User.id == PoStatusHistory.changed_by)
        .where(PoStatusHistory.po_id == po_id)
        .order_by(PoStatusHistory.changed_at.desc(), PoStatusHistory.id.desc())
    )
    return [
        PoStatusHistoryOut(
            id=h.id,
            old_status=h.old_status,
            new_status=h.new_status,
            changed_at=h.changed_at,
            reason=h.reason,
            changed_by=username,
        )
        for h, username in result.all()
    ]


@router.put("/purchase-orders/{po_id}/status", response_model=MessageOut)
async def change_po_status(
    po_id: int,
    payload: PoStatusChange,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageOut:
    po = await _get_po(db, po_id)
    db.add(
        PoStatusHistory(
            po_id=po_id,
            old_status=po.status,
            new_status=payload.new_status,
            changed_by=user.id,
            reason=payload.reason,
        )
    )
    po.status = payload.new_status
    await db.commit()
    return MessageOut(message="Status updated successfully")


@router.post("/purchase-orders/{po_id}/auto-update-status", response_model=AutoStatusOut)
async def auto_update_po_status(
    po_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AutoStatusOut:
    po = await _get_po(db, po_id)
    old_status = await sync_po_status(db, po, user.id)
    if old_status is None:
        return AutoStatusOut(message="Status unchanged", current_status=po.status)
    await db.commit()
    return AutoStatusOut(
        message="Status auto-updated successfully", old_status=old_status, new_status=po.status
    )
