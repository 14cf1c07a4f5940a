from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, model_validator

from app.db.enums import EmployeeStatus, Gender, RecruitmentMode, TrainingType
from app.schemas.common import StrippedModel, check_period


# Lookups


class DesignationOut(BaseModel):
    designation_id: int
    designation: str
    designation_full: str | None = None
    level: int

    class Config:
        from_attributes = True


class TechnicalGroupCreate(StrippedModel):
    group_name: str = Field(min_length=1, max_length=100)
    group_description: str | None = None


class TechnicalGroupOut(BaseModel):
    group_id: int
    group_name: str
    group_description: str | None = None

    class Config:
        from_attributes = True


# Employees


class EmployeeCreate(StrippedModel):
    employee_id: str = Field(min_length=1, max_length=50)
    employee_name: str = Field(min_length=1, max_length=200)
    join_date: date | None = None
    designation_id: int
    initial_designation_id: int
    technical_group_id: int
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    gender: Gender
    level: int | None = None
    centre: str = Field(min_length=1, max_length=100)


class EmployeeUpdate(StrippedModel):
    employee_name: str | None = Field(default=None, min_length=1, max_length=200)
    join_date: date | None = None
    designation_id: int | None = None
    initial_designation_id: int | None = None
    technical_group_id: int | None = None
    status: EmployeeStatus | None = None
    gender: Gender | None = None
    level: int | None = None
    centre: str | None = Field(default=None, min_length=1, max_length=100)


class EmployeeOut(BaseModel):
    employee_id: str
    employee_name: str
    join_date: date | None = None
    designation_id: int
    designation: str | None = None
    initial_designation_id: int
    initial_designation: str | None = None
    technical_group_id: int
    technical_group: str | None = None
    status: EmployeeStatus
    gender: Gender
    level: int | None = None
    centre: str


# Promotions


class PromotionCreate(BaseModel):
    employee_id: str
    to_designation_id: int
    effective_date: date
    remarks: str | None = None
    level: int = Field(ge=0)


class PromotionUpdate(BaseModel):
    to_designation_id: int | None = None
    effective_date: date | None = None
    remarks: str | None = None
    level: int | None = Field(default=None, ge=0)


class PromotionOut(BaseModel):
    id: int
    employee_id: str
    employee_name: str | None = None
    from_designation_id: int
    from_designation: str | None = None
    to_designation_id: int
    to_designation: str | None = None
    effective_date: date
    remarks: str | None = None
    level: int


class PromotionImportRow(BaseModel):
    employee_id: str
    to_designation_id: int
    effective_date: date | None = None
    remarks: str | None = None
    level: int | None = None


class PromotionImportRequest(BaseModel):
    promotions: list[PromotionImportRow]


class PromotionValidationOut(BaseModel):
    errors: list[str]


class PromotionImportOut(BaseModel):
    message: str
    imported: int


# Transfers


class TransferCreate(BaseModel):
    employee_id: str
    to_group_id: int
    transfer_date: date
    remarks: str | None = None


class TransferUpdate(BaseModel):
    to_group_id: int | None = None
    transfer_date: date | None = None
    remarks: str | None = None


class TransferOut(BaseModel):
    id: int
    employee_id: str
    employee_name: str | None = None
    from_group_id: int
    from_group: str | None = None
    to_group_id: int
    to_group: str | None = None
    transfer_date: date
    remarks: str | None = None


# Attrition


class AttritionCreate(BaseModel):
    employee_id: str
    reason_for_leaving: str = Field(min_length=1, max_length=200)
    reason_details: str | None = None
    last_date: date
    year: int | None = None
    month: int | None = Field(default=None, ge=1, le=12)


class AttritionUpdate(BaseModel):
    reason_for_leaving: str | None = Field(default=None, min_length=1, max_length=200)
    reason_details: str | None = None
    last_date: date | None = None
    year: int | None = None
    month: int | None = Field(default=None, ge=1, le=12)


class AttritionOut(BaseModel):
    id: int
    employee_id: str
    employee_name: str | None = None
    reason_for_leaving: str
    reason_details: str | None = None
    last_date: date
    year: int
    month: int


# Trainings


class TrainingCreate(StrippedModel):
    training_type: TrainingType
    training_topic: str = Field(min_length=1, max_length=300)
    start_date: date
    end_date: date
    venue: str | None = None
    attended_count: int = Field(default=0, ge=0)
    training_mode: str | None = None
    guest_lecture_name: str | None = None
    lecturer_details: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "TrainingCreate":
        check_period(self.start_date, self.end_date, "End date must be on or after start date")
        return self


class TrainingUpdate(StrippedModel):
    training_type: TrainingType | None = None
    training_topic: str | None = Field(default=None, min_length=1, max_length=300)
    start_date: date | None = None
    end_date: date | None = None
    venue: str | None = None
    attended_count: int | None = Field(default=None, ge=0)
    training_mode: str | None = None
    guest_lecture_name: str | None = None
    lecturer_details: str | None = None


class TrainingOut(BaseModel):
    id: int
    training_type: TrainingType
    training_topic: str
    start_date: date
    end_date: date
    venue: str | None = None
    attended_count: int
    training_mode: str | None = None
    guest_lecture_name: str | None = None
    lecturer_details: str | None = None

    class Config:
        from_attributes = True


# Recruitments


class RecruitmentCreate(BaseModel):
    recruitment_mode: RecruitmentMode
    year: int = Field(ge=2000)
    month: int = Field(ge=1, le=12)
    recruited_count: int = Field(default=0, ge=0)


class RecruitmentUpdate(BaseModel):
    recruitment_mode: RecruitmentMode | None = None
    year: int | None = Field(default=None, ge=2000)
    month: int | None = Field(default=None, ge=1, le=12)
    recruited_count: int | None = Field(default=None, ge=0)


class RecruitmentOut(BaseModel):
    id: int
    recruitment_mode: RecruitmentMode
    year: int
    month: int
    recruited_count: int

    class Config:
        from_attributes = True


# Contract renewals


class ContractRenewalCreate(StrippedModel):
    employee_id: str
    contract_type: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date
    duration_months: int | None = Field(default=None, ge=0)
    remarks: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "ContractRenewalCreate":
        check_period(self.start_date, self.end_date, "End date must be on or after start date")
        return self


class ContractRenewalUpdate(StrippedModel):
    contract_type: str | None = Field(default=None, min_length=1, max_length=100)
    start_date: date | None = None
    end_date: date | None = None
    duration_months: int | None = Field(default=None, ge=0)
    remarks: str | None = None


class ContractRenewalOut(BaseModel):
    id: int
    employee_id: str
    employee_name: str | None = None
    contract_type: str
    start_date: date
    end_date: date
    duration_months: int | None = None
    remarks: str | None = None


# Dashboard


class HrSummaryOut(BaseModel):
    total_employees: int
    active_employees: int
    new_hires_this_year: int
    attrition_rate: float


class GroupDistributionOut(BaseModel):
    group_name: str
    employee_count: int


class EmployeeGrowthOut(BaseModel):
    year: int
    employee_count: int


class TrainingSummaryOut(BaseModel):
    total_trainings: int
    trainings_this_year: int
    total_participants: int
    avg_participants_per_training: int


class TrainingByTypeOut(BaseModel):
    training_type: str
    training_count: int
    total_participants: int


class RecruitmentSummaryOut(BaseModel):
    total_recruitments: int
    recruitments_this_year: int
    total_recruited: int
    recruited_this_year: int


class RecruitmentByModeOut(BaseModel):
    recruitment_mode: str
    recruitment_count: int
    total_recruited: int
