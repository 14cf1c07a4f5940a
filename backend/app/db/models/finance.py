from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class FinanceProject(TimestampMixin, Base):
    __tablename__ = "finance_projects"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="valid_period"),)

    project_id: Mapped[int] = mapped_column(primary_key=True)
    project_name: Mapped[str] = mapped_column(String(300), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    extension_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_value: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False, default=0)
    funding_agency: Mapped[str | None] = mapped_column(String(200), nullable=True)
    duration_years: Mapped[int | None] = mapped_column(Integer, nullable=True)
    group_id: Mapped[int | None] = mapped_column(
        ForeignKey("technical_groups.group_id", ondelete="SET NULL"), nullable=True
    )
    centre: Mapped[str | None] = mapped_column(String(100), nullable=True)
    project_investigator_id: Mapped[str | None] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="SET NULL"), nullable=True
    )


class BudgetField(TimestampMixin, Base):
    __tablename__ = "budget_fields"

    field_id: Mapped[int] = mapped_column(primary_key=True)
    field_name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ProjectBudgetFieldMapping(Base):
    __tablename__ = "project_budget_fields_mapping"
    __table_args__ = (UniqueConstraint("project_id", "field_id", name="uq_project_field"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[int] = mapped_column(
        ForeignKey("budget_fields.field_id", ondelete="CASCADE"), nullable=False
    )
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class BudgetEntry(Base):
    __tablename__ = "project_budget_entries"

    entry_id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[int] = mapped_column(ForeignKey("budget_fields.field_id"), nullable=False)
    year_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)


class Expenditure(TimestampMixin, Base):
    __tablename__ = "project_expenditure_entries"
    __table_args__ = (CheckConstraint("period_number BETWEEN 1 AND 4", name="valid_quarter"),)

    expenditure_id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[int] = mapped_column(ForeignKey("budget_fields.field_id"), nullable=False)
    year_number: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[str] = mapped_column(String(10), nullable=False, default="FY")
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_spent: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    expenditure_date: Mapped[date] = mapped_column(Date, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)


class GrantReceived(TimestampMixin, Base):
    __tablename__ = "grant_received"

    grant_id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    field_id: Mapped[int] = mapped_column(ForeignKey("budget_fields.field_id"), nullable=False)
    received_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Zero and negative adjustments are allowed
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
