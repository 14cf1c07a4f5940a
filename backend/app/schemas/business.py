from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.db.enums import BusinessEntityType, PaymentStatus
from app.schemas.common import StrippedModel, check_period

CLIENT_REQUIRED = ("client_name", "contact_person", "contact_number", "email", "address")


class ClientIn(StrippedModel):
    # Optional at the schema level: the route answers "Missing required fields"
    client_name: str | None = None
    contact_person: str | None = None
    contact_number: str | None = None
    email: str | None = None
    address: str | None = None
    description: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in CLIENT_REQUIRED if not getattr(self, name)]


class ClientOut(BaseModel):
    id: int
    client_name: str
    contact_person: str
    contact_number: str
    email: str
    address: str
    description: str | None = None

    class Config:
        from_attributes = True


class EntityCreate(StrippedModel):
    name: str = Field(min_length=1, max_length=300)
    entity_type: BusinessEntityType
    service_type: str | None = None
    client_id: int
    start_date: date
    end_date: date
    order_value: Decimal = Field(gt=0)
    payment_duration: str = Field(min_length=1, max_length=50)
    description: str | None = None

    @model_validator(mode="after")
    def _check(self) -> "EntityCreate":
        if self.entity_type == BusinessEntityType.SERVICE and not self.service_type:
            raise ValueError("Service type is required when entity type is service")
        check_period(self.start_date, self.end_date, "End date must be on or after start date")
        return self


class EntityUpdate(StrippedModel):
    name: str | None = Field(default=None, min_length=1, max_length=300)
    entity_type: BusinessEntityType | None = None
    service_type: str | None = None
    client_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    order_value: Decimal | None = Field(default=None, gt=0)
    payment_duration: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None


class EntityOut(BaseModel):
    id: int
    name: str
    entity_type: BusinessEntityType
    service_type: str | None = None
    client_id: int
    client_name: str | None = None
    start_date: date
    end_date: date
    order_value: float
    payment_duration: str
    description: str | None = None


class PaymentCreate(StrippedModel):
    po_id: int
    payment_date: date
    amount: Decimal = Field(gt=0)
    status: PaymentStatus = PaymentStatus.PENDING
    remarks: str | None = None
    billing_start_date: date
    billing_end_date: date

    @model_validator(mode="after")
    def _check_period(self) -> "PaymentCreate":
        check_period(
            self.billing_start_date,
            self.billing_end_date,
            "Billing end date must be on or after billing start date",
        )
        return self


class PaymentUpdate(StrippedModel):
    payment_date: date | None = None
    amount: Decimal | None = Field(default=None, gt=0)
    status: PaymentStatus | None = None
    remarks: str | None = None
    billing_start_date: date | None = None
    billing_end_date: date | None = None


class PaymentOut(BaseModel):
    id: int
    entity_id: int
    po_id: int
    payment_date: date
    amount: float
    status: PaymentStatus
    remarks: str | None = None
    billing_start_date: date
    billing_end_date: date

    class Config:
        from_attributes = True


class PurchaseOrderCreate(StrippedModel):
    entity_id: int
    invoice_no: str = Field(min_length=1, max_length=100)
    invoice_date: date
    invoice_value: Decimal = Field(gt=0)
    payment_duration: str | None = None
    invoice_status: str = Field(min_length=1, max_length=50)
    requested_by: str | None = None
    payment_mode: str | None = None
    remarks: str | None = None


class PurchaseOrderUpdate(StrippedModel):
    entity_id: int | None = None
    invoice_no: str | None = Field(default=None, min_length=1, max_length=100)
    invoice_date: date | None = None
    invoice_value: Decimal | None = Field(default=None, gt=0)
    payment_duration: str | None = None
    invoice_status: str | None = Field(default=None, min_length=1, max_length=50)
    requested_by: str | None = None
    payment_mode: str | None = None
    remarks: str | None = None


class PurchaseOrderOut(BaseModel):
    po_id: int
    entity_id: int
    entity_name: str | None = None
    entity_type: BusinessEntityType | None = None
    client_name: str | None = None
    invoice_no: str
    invoice_date: date
    invoice_value: float
    payment_duration: str | None = None
    invoice_status: str
    status: str
    requested_by: str | None = None
    requested_by_name: str | None = None
    payment_mode: str | None = None
    remarks: str | None = None


class PoStatusChange(StrippedModel):
    new_status: str = Field(min_length=1, max_length=50)
    reason: str | None = None


class PoStatusHistoryOut(BaseModel):
    id: int
    old_status: str | None = None
    new_status: str
    changed_at: datetime
    reason: str | None = None
    changed_by: str | None = None


class AutoStatusOut(BaseModel):
    message: str
    old_status: str | None = None
    new_status: str | None = None
    current_status: str | None = None


# Dashboard


class BusinessSummaryOut(BaseModel):
    total_clients: int
    total_entities: int
    total_purchase_orders: int
    total_order_value: float
    total_invoice_value: float
    total_payments_received: float


class EntitiesByTypeOut(BaseModel):
    entity_type: str
    entity_count: int


class PurchaseOrdersByStatusOut(BaseModel):
    invoice_status: str
    po_count: int
