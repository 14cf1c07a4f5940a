from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import AmcStatus


class Equipment(TimestampMixin, Base):
    __tablename__ = "admin_equipments"

    equipment_id: Mapped[int] = mapped_column(primary_key=True)
    equipment_name: Mapped[str] = mapped_column(String(200), nullable=False)
    equipment_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)


class AmcProvider(TimestampMixin, Base):
    __tablename__ = "amc_providers"

    amcprovider_id: Mapped[int] = mapped_column(primary_key=True)
    amcprovider_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)


class AmcContract(TimestampMixin, Base):
    __tablename__ = "amc_contracts"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="valid_date_range"),
        CheckConstraint("amc_value > 0", name="positive_value"),
    )

    amccontract_id: Mapped[int] = mapped_column(primary_key=True)
    # No ON DELETE action: equipment under contract cannot be removed
    equipment_id: Mapped[int] = mapped_column(
        ForeignKey("admin_equipments.equipment_id"), nullable=False
    )
    amcprovider_id: Mapped[int] = mapped_column(
        ForeignKey("amc_providers.amcprovider_id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    amc_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[AmcStatus] = mapped_column(
        str_enum(AmcStatus), nullable=False, default=AmcStatus.ACTIVE
    )
