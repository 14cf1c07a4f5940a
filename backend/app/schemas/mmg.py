from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.db.enums import ApprovalDecision, ApproverRole, MmgPoStatus, SourcingMethod
from app.schemas.common import StrippedModel


class ProcurementItemIn(StrippedModel):
    item_name: str = Field(min_length=1, max_length=300)
    quantity: int = Field(gt=0)
    specifications: str | None = None


class ProcurementItemOut(BaseModel):
    id: int
    item_name: str
    quantity: int
    specifications: str | None = None

    class Config:
        from_attributes = True


class ProcurementCreate(StrippedModel):
    indent_number: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=300)
    project_id: int | None = None
    indentor_id: str | None = None
    group_id: int | None = None
    purchase_type: str | None = None
    delivery_place: str | None = None
    estimated_cost: Decimal | None = Field(default=None, ge=0)
    indent_date: date | None = None
    mmg_acceptance_date: date | None = None
    items: list[ProcurementItemIn] = Field(min_length=1)


class ProcurementUpdate(StrippedModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    project_id: int | None = None
    indentor_id: str | None = None
    group_id: int | None = None
    purchase_type: str | None = None
    delivery_place: str | None = None
    estimated_cost: Decimal | None = Field(default=None, ge=0)
    indent_date: date | None = None
    mmg_acceptance_date: date | None = None


class ProcurementCreatedOut(BaseModel):
    message: str
    procurementId: int
    indent_number: str


class ProcurementOut(BaseModel):
    id: int
    indent_number: str
    title: str
    project_id: int | None = None
    indentor_id: str | None = None
    indentor_name: str | None = None
    group_id: int | None = None
    group_name: str | None = None
    purchase_type: str | None = None
    delivery_place: str | None = None
    estimated_cost: float | None = None
    status: str
    indent_date: date | None = None
    mmg_acceptance_date: date | None = None
    sourcing_method: str | None = None
    created_at: datetime | None = None


class HistoryOut(BaseModel):
    id: int
    old_status: str | None = None
    new_status: str
    remarks: str | None = None
    status_date: datetime

    class Config:
        from_attributes = True


class BidCreate(StrippedModel):
    vendor_name: str = Field(min_length=1, max_length=200)
    bid_amount: Decimal = Field(gt=0)
    bid_date: date | None = None
    number_of_bids: int = Field(default=1, ge=1)
    remarks: str | None = None


class BidOut(BaseModel):
    id: int
    procurement_id: int
    vendor_name: str
    bid_amount: float
    bid_date: date | None = None
    number_of_bids: int
    remarks: str | None = None
    is_finalized: bool
    finalization_date: date | None = None

    class Config:
        from_attributes = True


class PurchaseOrderOut(BaseModel):
    po_id: int
    procurement_id: int
    bid_id: int | None = None
    vendor_name: str | None = None
    po_number: str
    po_date: date
    po_value: float
    po_creation_date: date
    status: MmgPoStatus
    status_update_date: date | None = None
    payment_completion_date: date | None = None
    remarks: str | None = None

    class Config:
        from_attributes = True


class ProcurementDetailOut(ProcurementOut):
    items: list[ProcurementItemOut] = []
    history: list[HistoryOut] = []
    bids: list[BidOut] = []
    purchase_orders: list[PurchaseOrderOut] = []


class ApprovalRequest(StrippedModel):
    role: ApproverRole
    status: ApprovalDecision
    remarks: str | None = None


class StatusRequest(StrippedModel):
    status: str = Field(min_length=1, max_length=100)
    remarks: str | None = None
    status_date: datetime | None = None


class SourcingRequest(BaseModel):
    sourcing_method: SourcingMethod
    remarks: str | None = None


class FinalizeVendorRequest(BaseModel):
    bid_id: int
    finalization_date: date


class PurchaseOrderCreate(StrippedModel):
    po_number: str = Field(min_length=1, max_length=100)
    po_date: date
    po_value: Decimal = Field(gt=0)
    po_creation_date: date
    remarks: str | None = None


class PoStatusUpdate(BaseModel):
    status: MmgPoStatus
    status_update_date: date
    payment_completion_date: date | None = None

    @model_validator(mode="after")
    def _completion_date(self) -> "PoStatusUpdate":
        if self.status == MmgPoStatus.PAYMENT_PROCESSED and self.payment_completion_date is None:
            raise ValueError("Payment completion date is required when marking as Payment Processed")
        return self


class CombinedRowOut(BaseModel):
    id: int
    indent_number: str
    title: str
    purchase_type: str | None = None
    delivery_place: str | None = None
    procurement_status: str
    estimated_cost: float | None = None
    indent_date: date | None = None
    mmg_acceptance_date: date | None = None
    sourcing_method: str | None = None
    group_name: str | None = None
    indentor_name: str | None = None
    bid_count: int
    po_number: str | None = None
    po_date: date | None = None
    po_value: float | None = None
    po_vendor: str | None = None
    po_status: str | None = None
    payment_status: str


# Dashboard


class MmgSummaryOut(BaseModel):
    total_procurements: int
    pending_approvals: int
    procurements_with_sourcing: int
    completed_pos: int


class ProcurementsPerMonthOut(BaseModel):
    month: str
    procurement_count: int


class ProcurementStatusOut(BaseModel):
    status: str
    procurement_count: int


class SourcingDistributionOut(BaseModel):
    sourcing_method: str | None = None
    procurement_count: int
