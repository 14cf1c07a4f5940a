from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import MmgPoStatus


class Procurement(TimestampMixin, Base):
    __tablename__ = "procurements"

    id: Mapped[int] = mapped_column(primary_key=True)
    indent_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    project_id: Mapped[int | None] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="SET NULL"), nullable=True
    )
    indentor_id: Mapped[str | None] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="SET NULL"), nullable=True
    )
    group_id: Mapped[int | None] = mapped_column(
        ForeignKey("technical_groups.group_id", ondelete="SET NULL"), nullable=True
    )
    purchase_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    delivery_place: Mapped[str | None] = mapped_column(String(200), nullable=True)
    estimated_cost: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    # Free-form workflow status, see app.services.procurement
    status: Mapped[str] = mapped_column(String(100), nullable=False)
    indent_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    mmg_acceptance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    sourcing_method: Mapped[str | None] = mapped_column(String(20), nullable=True)


class ProcurementItem(Base):
    __tablename__ = "procurement_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="quantity_positive"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    procurement_id: Mapped[int] = mapped_column(
        ForeignKey("procurements.id", ondelete="CASCADE"), nullable=False
    )
    item_name: Mapped[str] = mapped_column(String(300), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    specifications: Mapped[str | None] = mapped_column(Text, nullable=True)


class ProcurementHistory(Base):
    __tablename__ = "procurement_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    procurement_id: Mapped[int] = mapped_column(
        ForeignKey("procurements.id", ondelete="CASCADE"), nullable=False
    )
    old_status: Mapped[str | None] = mapped_column(String(100), nullable=True)
    new_status: Mapped[str] = mapped_column(String(100), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    status_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Bid(TimestampMixin, Base):
    __tablename__ = "bids"
    __table_args__ = (CheckConstraint("bid_amount > 0", name="amount_positive"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    procurement_id: Mapped[int] = mapped_column(
        ForeignKey("procurements.id", ondelete="CASCADE"), nullable=False
    )
    vendor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    bid_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    bid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    number_of_bids: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    finalization_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class MmgPurchaseOrder(TimestampMixin, Base):
    __tablename__ = "purchase_orders"

    po_id: Mapped[int] = mapped_column(primary_key=True)
    procurement_id: Mapped[int] = mapped_column(
        ForeignKey("procurements.id", ondelete="CASCADE"), nullable=False
    )
    bid_id: Mapped[int | None] = mapped_column(
        ForeignKey("bids.id", ondelete="SET NULL"), nullable=True
    )
    vendor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    po_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    po_date: Mapped[date] = mapped_column(Date, nullable=False)
    po_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    po_creation_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[MmgPoStatus] = mapped_column(
        str_enum(MmgPoStatus), nullable=False, default=MmgPoStatus.PENDING
    )
    status_update_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
