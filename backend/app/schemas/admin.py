from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.db.enums import Gender, MappingStatus, SalaryStatus, StaffStatus
from app.schemas.common import StrippedModel, check_period


# Departments


class DepartmentCreate(StrippedModel):
    department_name: str = Field(min_length=1, max_length=200)


class DepartmentOut(BaseModel):
    department_id: int
    department_name: str
    created_at: datetime

    class Config:
        from_attributes = True


# Staff


class StaffCreate(StrippedModel):
    name: str = Field(min_length=1, max_length=200)
    department_id: int
    joining_date: date
    date_of_leaving: date | None = None
    status: StaffStatus = StaffStatus.ACTIVE
    gender: Gender

    @model_validator(mode="after")
    def _check_dates(self) -> "StaffCreate":
        check_period(self.joining_date, self.date_of_leaving, "Date of leaving cannot be before joining date")
        return self


class StaffUpdate(StrippedModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    department_id: int | None = None
    joining_date: date | None = None
    date_of_leaving: date | None = None
    status: StaffStatus | None = None
    gender: Gender | None = None


class StaffOut(BaseModel):
    staff_id: int
    name: str
    department_id: int
    department_name: str | None = None
    joining_date: date
    date_of_leaving: date | None = None
    status: StaffStatus
    gender: Gender
    last_salary_date: date | None = None
    current_salary: float | None = None

    class Config:
        from_attributes = True


# Salaries


class SalaryCreate(BaseModel):
    staff_id: int
    net_salary: Decimal = Field(gt=0)
    payment_date: date
    status: SalaryStatus = SalaryStatus.PENDING


class SalaryUpdate(BaseModel):
    net_salary: Decimal | None = Field(default=None, gt=0)
    payment_date: date | None = None
    status: SalaryStatus | None = None


class SalaryOut(BaseModel):
    salary_id: int
    staff_id: int
    staff_name: str | None = None
    net_salary: float
    payment_date: date
    status: SalaryStatus

    class Config:
        from_attributes = True


# Contractors


class ContractorCreate(StrippedModel):
    contractor_company_name: str = Field(min_length=1, max_length=200)
    contact_person: str = Field(min_length=1, max_length=200)
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class ContractorUpdate(StrippedModel):
    contractor_company_name: str | None = Field(default=None, min_length=1, max_length=200)
    contact_person: str | None = Field(default=None, min_length=1, max_length=200)
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class ContractorOut(BaseModel):
    contractor_id: int
    contractor_company_name: str
    contact_person: str
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    class Config:
        from_attributes = True


class MappingCreate(BaseModel):
    contractor_id: int
    department_id: int
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_period(self) -> "MappingCreate":
        check_period(self.start_date, self.end_date, "End date must be on or after start date")
        return self


class MappingUpdate(BaseModel):
    contractor_id: int | None = None
    department_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None


class MappingOut(BaseModel):
    contract_id: int
    contractor_id: int
    contractor_company_name: str | None = None
    department_id: int
    department_name: str | None = None
    start_date: date
    end_date: date
    status: MappingStatus


# Vehicles


class VehicleCreate(StrippedModel):
    company_name: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    registration_no: str = Field(min_length=1, max_length=50)


class VehicleUpdate(StrippedModel):
    company_name: str | None = Field(default=None, min_length=1, max_length=100)
    model: str | None = Field(default=None, min_length=1, max_length=100)
    registration_no: str | None = Field(default=None, min_length=1, max_length=50)


class VehicleOut(BaseModel):
    vehicle_id: int
    company_name: str
    model: str
    registration_no: str
    created_at: datetime

    class Config:
        from_attributes = True


class ServicingCreate(BaseModel):
    vehicle_id: int
    service_date: date
    next_service_date: date
    service_description: str | None = None
    servicing_amount: Decimal = Field(ge=0)

    @model_validator(mode="after")
    def _check_dates(self) -> "ServicingCreate":
        check_period(
            self.service_date, self.next_service_date, "Next service date cannot be before service date"
        )
        return self


class ServicingUpdate(BaseModel):
    service_date: date | None = None
    next_service_date: date | None = None
    service_description: str | None = None
    servicing_amount: Decimal | None = Field(default=None, ge=0)


class ServicingOut(BaseModel):
    service_id: int
    vehicle_id: int
    service_date: date
    next_service_date: date
    service_description: str | None = None
    servicing_amount: float

    class Config:
        from_attributes = True


class InsuranceCreate(StrippedModel):
    vehicle_id: int
    insurance_provider: str = Field(min_length=1, max_length=200)
    policy_number: str = Field(min_length=1, max_length=100)
    insurance_start_date: date
    insurance_end_date: date

    @model_validator(mode="after")
    def _check_dates(self) -> "InsuranceCreate":
        check_period(
            self.insurance_start_date,
            self.insurance_end_date,
            "Insurance end date cannot be before start date",
        )
        return self


class InsuranceUpdate(StrippedModel):
    insurance_provider: str | None = Field(default=None, min_length=1, max_length=200)
    policy_number: str | None = Field(default=None, min_length=1, max_length=100)
    insurance_start_date: date | None = None
    insurance_end_date: date | None = None


class InsuranceOut(BaseModel):
    insurance_id: int
    vehicle_id: int
    insurance_provider: str
    policy_number: str
    insurance_start_date: date
    insurance_end_date: date

    class Config:
        from_attributes = True


# Dashboard


class AdminSummaryOut(BaseModel):
    total_staff: int
    active_staff: int
    total_contractors: int
    active_contractors: int
    total_vehicles: int
    operational_vehicles: int
    total_amc_contracts: int
    active_amc_contracts: int


class StaffByDepartmentOut(BaseModel):
    department_name: str
    staff_count: int


class StatusCountOut(BaseModel):
    status: str
    count: int


class MonthlyTrendOut(BaseModel):
    month: str
    staff_joined: int
    contractors_added: int
    vehicles_added: int
