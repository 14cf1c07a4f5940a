from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import Gender, SalaryStatus, StaffStatus


class Department(TimestampMixin, Base):
    __tablename__ = "admin_departments"

    department_id: Mapped[int] = mapped_column(primary_key=True)
    department_name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)


class Staff(TimestampMixin, Base):
    __tablename__ = "admin_staff"
    __table_args__ = (
        CheckConstraint(
            "date_of_leaving IS NULL OR date_of_leaving >= joining_date",
            name="leaving_after_joining",
        ),
    )

    staff_id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department_id: Mapped[int] = mapped_column(
        ForeignKey("admin_departments.department_id"), nullable=False
    )
    joining_date: Mapped[date] = mapped_column(Date, nullable=False)
    date_of_leaving: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[StaffStatus] = mapped_column(
        str_enum(StaffStatus), nullable=False, default=StaffStatus.ACTIVE
    )
    gender: Mapped[Gender] = mapped_column(str_enum(Gender), nullable=False)


class Salary(TimestampMixin, Base):
    __tablename__ = "admin_salaries"
    __table_args__ = (CheckConstraint("net_salary > 0", name="net_salary_positive"),)

    salary_id: Mapped[int] = mapped_column(primary_key=True)
    staff_id: Mapped[int] = mapped_column(ForeignKey("admin_staff.staff_id"), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[SalaryStatus] = mapped_column(
        str_enum(SalaryStatus), nullable=False, default=SalaryStatus.PENDING
    )


class Contractor(TimestampMixin, Base):
    __tablename__ = "admin_contractors"

    contractor_id: Mapped[int] = mapped_column(primary_key=True)
    contractor_company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)


class ContractorMapping(TimestampMixin, Base):
    __tablename__ = "admin_contractor_department_mappings"
    __table_args__ = (CheckConstraint("end_date >= start_date", name="valid_period"),)

    contract_id: Mapped[int] = mapped_column(primary_key=True)
    contractor_id: Mapped[int] = mapped_column(
        ForeignKey("admin_contractors.contractor_id"), nullable=False
    )
    department_id: Mapped[int] = mapped_column(
        ForeignKey("admin_departments.department_id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)


class Vehicle(TimestampMixin, Base):
    __tablename__ = "admin_vehicles"

    vehicle_id: Mapped[int] = mapped_column(primary_key=True)
    company_name: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    registration_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)


class VehicleServicing(TimestampMixin, Base):
    __tablename__ = "admin_vehicle_servicing"
    __table_args__ = (
        CheckConstraint("next_service_date >= service_date", name="valid_service_dates"),
        CheckConstraint("servicing_amount >= 0", name="amount_not_negative"),
    )

    service_id: Mapped[int] = mapped_column(primary_key=True)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("admin_vehicles.vehicle_id"), nullable=False)
    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    next_service_date: Mapped[date] = mapped_column(Date, nullable=False)
    service_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    servicing_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)


class VehicleInsurance(TimestampMixin, Base):
    __tablename__ = "admin_vehicle_insurance"
    __table_args__ = (
        CheckConstraint(
            "insurance_end_date >= insurance_start_date", name="valid_insurance_dates"
        ),
    )

    insurance_id: Mapped[int] = mapped_column(primary_key=True)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("admin_vehicles.vehicle_id"), nullable=False)
    insurance_provider: Mapped[str] = mapped_column(String(200), nullable=False)
    policy_number: Mapped[str] = mapped_column(String(100), nullable=False)
    insurance_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    insurance_end_date: Mapped[date] = mapped_column(Date, nullable=False)
