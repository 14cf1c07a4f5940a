from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import StrippedModel, check_period


# Projects


class ProjectCreate(StrippedModel):
    project_name: str = Field(min_length=1, max_length=300)
    start_date: date
    end_date: date
    extension_end_date: date | None = None
    total_value: Decimal = Field(default=Decimal("0"), ge=0)
    funding_agency: str | None = None
    duration_years: int | None = Field(default=None, ge=0)
    group_id: int | None = None
    centre: str | None = None
    project_investigator_id: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "ProjectCreate":
        check_period(self.start_date, self.end_date, "End date must be on or after start date")
        return self


class ProjectUpdate(StrippedModel):
    project_name: str | None = Field(default=None, min_length=1, max_length=300)
    start_date: date | None = None
    end_date: date | None = None
    extension_end_date: date | None = None
    total_value: Decimal | None = Field(default=None, ge=0)
    funding_agency: str | None = None
    duration_years: int | None = Field(default=None, ge=0)
    group_id: int | None = None
    centre: str | None = None
    project_investigator_id: str | None = None


class ProjectOut(BaseModel):
    project_id: int
    project_name: str
    start_date: date
    end_date: date
    extension_end_date: date | None = None
    total_value: float
    funding_agency: str | None = None
    duration_years: int | None = None
    group_id: int | None = None
    group_name: str | None = None
    centre: str | None = None
    project_investigator_id: str | None = None
    project_investigator_name: str | None = None


# Budget fields


class BudgetFieldCreate(StrippedModel):
    field_name: str = Field(min_length=1, max_length=200)
    is_default: bool = False


class BudgetFieldUpdate(StrippedModel):
    field_name: str | None = Field(default=None, min_length=1, max_length=200)
    is_default: bool | None = None


class BudgetFieldOut(BaseModel):
    field_id: int
    field_name: str
    is_default: bool

    class Config:
        from_attributes = True


class FieldMappingCreate(BaseModel):
    field_id: int
    is_custom: bool = False


class FieldMappingOut(BaseModel):
    id: int
    project_id: int
    field_id: int
    is_custom: bool

    class Config:
        from_attributes = True


# Budget entries


class BudgetEntryIn(BaseModel):
    field_id: int
    year_number: int = Field(ge=1)
    amount: Decimal


class BudgetEntriesRequest(BaseModel):
    entries: list[BudgetEntryIn]


class BudgetEntryOut(BaseModel):
    entry_id: int
    project_id: int
    field_id: int
    year_number: int
    amount: float

    class Config:
        from_attributes = True


# Expenditures


class ExpenditureCreate(StrippedModel):
    field_id: int
    amount_spent: Decimal
    expenditure_date: date
    remarks: str | None = None


class ExpenditureUpdate(StrippedModel):
    field_id: int | None = None
    amount_spent: Decimal | None = None
    expenditure_date: date | None = None
    remarks: str | None = None


class BulkExpenditureIn(ExpenditureCreate):
    project_id: int


class BulkExpenditureRequest(BaseModel):
    expenditures: list[BulkExpenditureIn] = Field(min_length=1)
    # Date whose rows are being edited: replaced together with the new dates
    originalDate: date | None = None


class ExpenditureOut(BaseModel):
    expenditure_id: int
    project_id: int
    field_id: int
    field_name: str | None = None
    year_number: int
    period_type: str
    period_number: int
    amount_spent: float
    expenditure_date: date
    remarks: str | None = None


class BulkExpenditureOut(BaseModel):
    message: str
    entries: list[ExpenditureOut]


# Grants


class GrantAllocation(BaseModel):
    field_id: int
    amount: Decimal | None = None


class GrantReceivedCreate(StrippedModel):
    project_id: int
    received_date: date
    remarks: str | None = None
    allocations: list[GrantAllocation]


class GrantBulkEntry(StrippedModel):
    field_id: int
    amount: Decimal | None = None
    remarks: str | None = None


class GrantBulkEditRequest(BaseModel):
    """Replaces every grant row of a project on one received date."""

    project_id: int
    received_date: date
    grants: list[GrantBulkEntry]


class GrantReceivedOut(BaseModel):
    grant_id: int
    project_id: int
    field_id: int
    field_name: str | None = None
    received_date: date
    amount: float
    remarks: str | None = None


class GrantDeletedOut(BaseModel):
    message: str
    count: int


# Dashboard


class FinanceSummaryOut(BaseModel):
    total_projects: int
    total_value: float
    current_year_spent: float
    current_year_budget: float
    current_year_pending: float


class GroupProjectsOut(BaseModel):
    group_name: str
    project_count: int
    total_budget: float
    total_spent: float
    pending_amount: float


class YearSpendingOut(BaseModel):
    year: int
    spent: float
    budget: float
    pending: float


class YearlySpendingOut(BaseModel):
    current_year: YearSpendingOut
    previous_year: YearSpendingOut


class MonthlySpendOut(BaseModel):
    month: int
    month_name: str
    spent: float


class TopProjectOut(BaseModel):
    project_name: str
    total_budget: float
    total_spent: float
    pending_amount: float
    status: str
    group_name: str | None = None
    end_date: date
    extension_end_date: date | None = None


class BudgetVsExpenditureOut(BaseModel):
    project_name: str
    budget: float
    expenditure: float


class ProjectStatusCountOut(BaseModel):
    status: str
    count: int
    value: float


class RemainingBudgetOut(BaseModel):
    project_name: str
    total_budget: float
    total_expenditure: float
    remaining_budget: float


class FundingOverviewOut(BaseModel):
    funding_agency: str
    project_count: int
    total_value: float
    total_expenditure: float
    remaining_budget: float


class GrantHistoryOut(BaseModel):
    received_date: date
    project_name: str
    amount_received: float


class FyBudgetRemainingOut(BaseModel):
    project_name: str
    total_project_budget: float
    fy_budget_allocated: float
    fy_expenditure: float
    fy_budget_remaining: float
    utilization_status: str
    utilization_percentage: int
