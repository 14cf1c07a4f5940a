from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.db.enums import PatentStatus, ProjectStatusValue
from app.schemas.common import StrippedModel, check_period


class EmployeeRef(BaseModel):
    employee_id: str
    employee_name: str


# Patents


class PatentCreate(StrippedModel):
    patent_title: str = Field(min_length=1, max_length=500)
    filing_date: date
    application_number: str = Field(min_length=1, max_length=100)
    status: PatentStatus = PatentStatus.FILED
    remarks: str | None = None
    inventors: list[str] = Field(min_length=1)
    grant_date: date | None = None
    rejection_date: date | None = None
    rejection_reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data):
        # Forms post "" for untouched optional inputs
        if isinstance(data, dict):
            for key in ("remarks", "grant_date", "rejection_date", "rejection_reason"):
                if data.get(key) == "":
                    data[key] = None
        return data

    @model_validator(mode="after")
    def _check_inventors(self) -> "PatentCreate":
        if not any(self.inventors):
            raise ValueError("At least one inventor is required")
        return self


class PatentUpdate(PatentCreate):
    pass


class PatentStatusChange(StrippedModel):
    new_status: PatentStatus
    remarks: str | None = None
    update_date: date


class PatentHistoryOut(BaseModel):
    history_id: int
    patent_id: int
    old_status: str | None = None
    new_status: str
    remarks: str | None = None
    update_date: date
    updated_by_group_name: str | None = None


class PatentOut(BaseModel):
    patent_id: int
    patent_title: str
    filing_date: date
    application_number: str
    status: PatentStatus
    remarks: str | None = None
    grant_date: date | None = None
    rejection_date: date | None = None
    rejection_reason: str | None = None
    group_name: str | None = None
    created_at: datetime
    inventors: list[EmployeeRef] = []
    status_history: list[PatentHistoryOut] = []


# Proposals


class ProposalCreate(StrippedModel):
    proposal_title: str = Field(min_length=1, max_length=500)
    submission_date: date
    funding_agency: str | None = None
    amount: Decimal | None = Field(default=None, ge=0)
    status: str = Field(default="Draft", min_length=1, max_length=50)
    remarks: str | None = None
    employees: list[str] = []


class ProposalUpdate(StrippedModel):
    proposal_title: str | None = Field(default=None, min_length=1, max_length=500)
    submission_date: date | None = None
    funding_agency: str | None = None
    amount: Decimal | None = Field(default=None, ge=0)
    status: str | None = Field(default=None, min_length=1, max_length=50)
    remarks: str | None = None
    employees: list[str] | None = None


class ProposalStatusChange(StrippedModel):
    new_status: str = Field(min_length=1, max_length=50)
    remarks: str | None = None
    update_date: date | None = None


class ProposalHistoryOut(BaseModel):
    history_id: int
    old_status: str | None = None
    new_status: str
    remarks: str | None = None
    update_date: date

    class Config:
        from_attributes = True


class ProposalOut(BaseModel):
    proposal_id: int
    proposal_title: str
    submission_date: date
    funding_agency: str | None = None
    amount: float | None = None
    status: str
    remarks: str | None = None
    group_id: int
    group_name: str | None = None
    employees: list[EmployeeRef] = []
    status_history: list[ProposalHistoryOut] = []


# Project publications and events


class PublicationCreate(StrippedModel):
    project_id: int
    type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=500)
    details: str | None = None
    publication_date: date | None = None
    authors: str | None = None
    doi: str | None = None


class PublicationUpdate(StrippedModel):
    project_id: int | None = None
    type: str | None = Field(default=None, min_length=1, max_length=50)
    title: str | None = Field(default=None, min_length=1, max_length=500)
    details: str | None = None
    publication_date: date | None = None
    authors: str | None = None
    doi: str | None = None


class PublicationOut(BaseModel):
    publication_id: int
    project_id: int
    project_name: str | None = None
    type: str
    title: str
    details: str | None = None
    publication_date: date | None = None
    authors: str | None = None
    doi: str | None = None


class EventCreate(StrippedModel):
    project_id: int
    event_type: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=500)
    start_date: date
    end_date: date
    participants_count: int = Field(default=0, ge=0)
    venue: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "EventCreate":
        check_period(self.start_date, self.end_date, "End date must be on or after start date")
        return self


class EventUpdate(EventCreate):
    pass


class EventOut(BaseModel):
    event_id: int
    project_id: int
    project_name: str | None = None
    group_id: int | None = None
    event_type: str
    title: str
    start_date: date
    end_date: date
    participants_count: int
    venue: str | None = None


# Project status


class ProjectStatusCreate(StrippedModel):
    project_id: int
    status: ProjectStatusValue
    status_date: date | None = None
    remarks: str | None = None


class ProjectStatusOut(BaseModel):
    project_id: int
    project_name: str
    group_name: str | None = None
    start_date: date
    end_date: date
    status: ProjectStatusValue | None = None
    status_date: date | None = None
    remarks: str | None = None


class ProjectStatusHistoryOut(BaseModel):
    id: int
    project_id: int
    old_status: str | None = None
    new_status: str
    status_date: date
    remarks: str | None = None
    changed_by: str | None = None

    class Config:
        from_attributes = True


# Dashboard


class TechnicalSummaryOut(BaseModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    total_publications: int
    total_patents: int
    total_proposals: int


class StatusCountOut(BaseModel):
    status: str
    count: int


class TypeCountOut(BaseModel):
    type: str
    count: int


class MonthCountOut(BaseModel):
    month: str
    count: int
