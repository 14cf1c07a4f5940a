from __future__ import annotations

from datetime import date, datetime

from pydantic import AliasChoices, BaseModel, Field, model_validator

from app.db.enums import TravelStatus, TravelType
from app.schemas.common import StrippedModel, check_period

TALK_FIELDS = ("speaker_name", "topic_role", "event_name", "venue", "talk_date")
DEPUTING_REMARKS_REQUIRED = "Remarks are required when status is deputing"


def check_deputing_remarks(status: TravelStatus | None, remarks: str | None) -> None:
    if status == TravelStatus.DEPUTING and not remarks:
        raise ValueError(DEPUTING_REMARKS_REQUIRED)


# Travels


class TravelCreate(StrippedModel):
    travel_type: TravelType
    location: str = Field(min_length=1, max_length=200)
    onward_date: date
    return_date: date
    purpose: str = Field(min_length=1)
    accommodation: str | None = None
    remarks: str | None = Field(default=None, validation_alias=AliasChoices("remarks", "deputing_remarks"))
    status: TravelStatus = TravelStatus.GOING

    @model_validator(mode="after")
    def _check(self) -> "TravelCreate":
        check_period(self.onward_date, self.return_date, "Invalid travel type or dates")
        check_deputing_remarks(self.status, self.remarks)
        return self


class TravelUpdate(StrippedModel):
    travel_type: TravelType | None = None
    location: str | None = Field(default=None, min_length=1, max_length=200)
    onward_date: date | None = None
    return_date: date | None = None
    purpose: str | None = Field(default=None, min_length=1)
    accommodation: str | None = None
    remarks: str | None = Field(default=None, validation_alias=AliasChoices("remarks", "deputing_remarks"))
    status: TravelStatus | None = None


class TravelStatusUpdate(StrippedModel):
    """Body of PATCH /travels/{id}/status; checked before the row is touched."""

    status: TravelStatus
    deputing_remarks: str | None = None

    @model_validator(mode="after")
    def _check_remarks(self) -> "TravelStatusUpdate":
        check_deputing_remarks(self.status, self.deputing_remarks)
        return self


class TravelOut(BaseModel):
    id: int
    travel_type: TravelType
    location: str
    onward_date: date
    return_date: date
    purpose: str
    accommodation: str | None = None
    remarks: str | None = None
    deputing_remarks: str | None = None
    status: TravelStatus
    created_at: datetime
    updated_at: datetime


# Talks


class TalkIn(StrippedModel):
    # Optional at the schema level: the route answers "All fields are required"
    speaker_name: str | None = None
    topic_role: str | None = None
    event_name: str | None = None
    venue: str | None = None
    talk_date: date | None = None

    def is_complete(self) -> bool:
        return all(getattr(self, name) for name in TALK_FIELDS)


class TalkOut(BaseModel):
    id: int
    speaker_name: str
    topic_role: str
    event_name: str
    venue: str
    talk_date: date

    class Config:
        from_attributes = True


# Calendar events


class CalendarEventIn(StrippedModel):
    title: str | None = None
    description: str | None = None
    meeting_link: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    venue: str | None = None
    reminder_minutes: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_times(self) -> "CalendarEventIn":
        check_period(self.start_time, self.end_time, "End time must be on or after start time")
        return self

    def is_complete(self) -> bool:
        return bool(self.title and self.start_time and self.end_time)


class CalendarEventOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    meeting_link: str | None = None
    start_time: datetime
    end_time: datetime
    venue: str | None = None
    reminder_minutes: int | None = None

    class Config:
        from_attributes = True


class SuccessOut(BaseModel):
    success: bool


# Dashboard


class ProjectsInfoOut(BaseModel):
    total_projects: int
    total_publications: int
    total_patents: int
    total_proposals: int


class PublicationItemOut(BaseModel):
    id: int
    title: str
    type: str
    details: str | None = None
    publication_date: date | None = None
    authors: str | None = None
    doi: str | None = None
    project_name: str | None = None


class PatentItemOut(BaseModel):
    id: int
    title: str
    application_number: str
    status: str
    filing_date: date
    grant_date: date | None = None
    rejection_date: date | None = None
    inventors: str | None = None


class ProposalItemOut(BaseModel):
    id: int
    title: str
    funding_agency: str | None = None
    budget: float | None = None
    status: str
    submission_date: date
    group_name: str | None = None
