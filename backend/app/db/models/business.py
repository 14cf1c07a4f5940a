from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import BusinessEntityType, PaymentStatus


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class BusinessEntity(TimestampMixin, Base):
    __tablename__ = "business_entities"
    __table_args__ = (
        UniqueConstraint("name", "client_id", name="uq_entity_name_client"),
        CheckConstraint("end_date >= start_date", name="valid_period"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    entity_type: Mapped[BusinessEntityType] = mapped_column(
        str_enum(BusinessEntityType), nullable=False
    )
    service_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    order_value: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    payment_duration: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class BusinessPurchaseOrder(TimestampMixin, Base):
    __tablename__ = "purchase_orders_bd"

    po_id: Mapped[int] = mapped_column(primary_key=True)
    entity_id: Mapped[int] = mapped_column(
        ForeignKey("business_entities.id", ondelete="CASCADE"), nullable=False
    )
    invoice_no: Mapped[str] = mapped_column(String(100), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    invoice_value: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    payment_duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    invoice_status: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Payment Pending", server_default="Payment Pending"
    )
    requested_by: Mapped[str | None] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="SET NULL"), nullable=True
    )
    payment_mode: Mapped[str | None] = mapped_column(String(50), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)


class PoStatusHistory(Base):
    __tablename__ = "po_status_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders_bd.po_id", ondelete="CASCADE"), nullable=False
    )
    old_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    new_status: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class EntityPayment(TimestampMixin, Base):
    __tablename__ = "entity_payments"
    __table_args__ = (
        CheckConstraint("billing_end_date >= billing_start_date", name="valid_billing_period"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    entity_id: Mapped[int] = mapped_column(
        ForeignKey("business_entities.id", ondelete="CASCADE"), nullable=False
    )
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders_bd.po_id", ondelete="CASCADE"), nullable=False
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        str_enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    billing_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    billing_end_date: Mapped[date] = mapped_column(Date, nullable=False)
