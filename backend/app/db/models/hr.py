from __future__ import annotations

from datetime import date

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import EmployeeStatus, Gender, RecruitmentMode, TrainingType


class Designation(TimestampMixin, Base):
    __tablename__ = "designations"

    designation_id: Mapped[int] = mapped_column(primary_key=True)
    designation: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    designation_full: Mapped[str | None] = mapped_column(String(200), nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class TechnicalGroup(TimestampMixin, Base):
    __tablename__ = "technical_groups"

    group_id: Mapped[int] = mapped_column(primary_key=True)
    group_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    group_description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Employee(TimestampMixin, Base):
    __tablename__ = "hr_employees"

    employee_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    join_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    designation_id: Mapped[int] = mapped_column(
        ForeignKey("designations.designation_id"), nullable=False
    )
    initial_designation_id: Mapped[int] = mapped_column(
        ForeignKey("designations.designation_id"), nullable=False
    )
    technical_group_id: Mapped[int] = mapped_column(
        ForeignKey("technical_groups.group_id"), nullable=False
    )
    status: Mapped[EmployeeStatus] = mapped_column(
        str_enum(EmployeeStatus), nullable=False, default=EmployeeStatus.ACTIVE
    )
    gender: Mapped[Gender] = mapped_column(str_enum(Gender), nullable=False)
    level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    centre: Mapped[str] = mapped_column(String(100), nullable=False)


class Promotion(TimestampMixin, Base):
    __tablename__ = "hr_promotions"

    id: Mapped[int] = mapped_column(primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="CASCADE"), nullable=False
    )
    from_designation_id: Mapped[int] = mapped_column(
        ForeignKey("designations.designation_id"), nullable=False
    )
    to_designation_id: Mapped[int] = mapped_column(
        ForeignKey("designations.designation_id"), nullable=False
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False)


class Transfer(TimestampMixin, Base):
    __tablename__ = "hr_transfers"

    id: Mapped[int] = mapped_column(primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="CASCADE"), nullable=False
    )
    from_group_id: Mapped[int] = mapped_column(
        ForeignKey("technical_groups.group_id"), nullable=False
    )
    to_group_id: Mapped[int] = mapped_column(ForeignKey("technical_groups.group_id"), nullable=False)
    transfer_date: Mapped[date] = mapped_column(Date, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)


class Attrition(TimestampMixin, Base):
    __tablename__ = "hr_attrition"
    __table_args__ = (CheckConstraint("month BETWEEN 1 AND 12", name="valid_month"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="CASCADE"), nullable=False
    )
    reason_for_leaving: Mapped[str] = mapped_column(String(200), nullable=False)
    reason_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_date: Mapped[date] = mapped_column(Date, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)


class Training(TimestampMixin, Base):
    __tablename__ = "hr_trainings"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="valid_dates"),
        CheckConstraint("attended_count >= 0", name="attended_not_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    training_type: Mapped[TrainingType] = mapped_column(str_enum(TrainingType, 40), nullable=False)
    training_topic: Mapped[str] = mapped_column(String(300), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    venue: Mapped[str | None] = mapped_column(String(200), nullable=True)
    attended_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    training_mode: Mapped[str | None] = mapped_column(String(50), nullable=True)
    guest_lecture_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    lecturer_details: Mapped[str | None] = mapped_column(Text, nullable=True)


class Recruitment(TimestampMixin, Base):
    __tablename__ = "hr_recruitments"
    __table_args__ = (
        CheckConstraint("year >= 2000", name="valid_year"),
        CheckConstraint("month BETWEEN 1 AND 12", name="valid_month"),
        CheckConstraint("recruited_count >= 0", name="count_not_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    recruitment_mode: Mapped[RecruitmentMode] = mapped_column(
        str_enum(RecruitmentMode), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    recruited_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ContractRenewal(TimestampMixin, Base):
    __tablename__ = "hr_contract_renewals"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="valid_period"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("hr_employees.employee_id", ondelete="CASCADE"), nullable=False
    )
    contract_type: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
