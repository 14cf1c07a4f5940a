from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import PatentStatus, ProjectStatusValue


class Patent(TimestampMixin, Base):
    __tablename__ = "patents"

    patent_id: Mapped[int] = mapped_column(primary_key=True)
    patent_title: Mapped[str] = mapped_column(String(500), nullable=False)
    filing_date: Mapped[date] = mapped_column(Date, nullable=False)
    application_number: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[PatentStatus] = mapped_column(str_enum(PatentStatus), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    grant_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rejection_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("technical_groups.group_id"), nullable=False)
    updated_by_group: Mapped[int | None] = mapped_column(
        ForeignKey("technical_groups.group_id"), nullable=True
    )


class PatentInventor(Base):
    __tablename__ = "patent_inventors"

    patent_id: Mapped[int] = mapped_column(
        ForeignKey("patents.patent_id", ondelete="CASCADE"), primary_key=True
    )
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("hr_employees.employee_id"), primary_key=True
    )


class PatentStatusHistory(Base):
    __tablename__ = "patent_status_history"

    history_id: Mapped[int] = mapped_column(primary_key=True)
    patent_id: Mapped[int] = mapped_column(
        ForeignKey("patents.patent_id", ondelete="CASCADE"), nullable=False
    )
    old_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    new_status: Mapped[str] = mapped_column(String(50), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by_group: Mapped[int | None] = mapped_column(
        ForeignKey("technical_groups.group_id"), nullable=True
    )
    update_date: Mapped[date] = mapped_column(Date, nullable=False)


class Proposal(TimestampMixin, Base):
    __tablename__ = "proposals"

    proposal_id: Mapped[int] = mapped_column(primary_key=True)
    proposal_title: Mapped[str] = mapped_column(String(500), nullable=False)
    submission_date: Mapped[date] = mapped_column(Date, nullable=False)
    funding_agency: Mapped[str | None] = mapped_column(String(200), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(16, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Draft")
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("technical_groups.group_id"), nullable=False)


class ProposalEmployee(Base):
    __tablename__ = "proposal_employees"

    proposal_id: Mapped[int] = mapped_column(
        ForeignKey("proposals.proposal_id", ondelete="CASCADE"), primary_key=True
    )
    employee_id: Mapped[str] = mapped_column(
        ForeignKey("hr_employees.employee_id"), primary_key=True
    )


class ProposalStatusHistory(Base):
    __tablename__ = "proposal_status_history"

    history_id: Mapped[int] = mapped_column(primary_key=True)
    proposal_id: Mapped[int] = mapped_column(
        ForeignKey("proposals.proposal_id", ondelete="CASCADE"), nullable=False
    )
    old_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    new_status: Mapped[str] = mapped_column(String(50), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    update_date: Mapped[date] = mapped_column(Date, nullable=False)


class ProjectPublication(TimestampMixin, Base):
    __tablename__ = "project_publications"

    publication_id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    publication_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    authors: Mapped[str | None] = mapped_column(Text, nullable=True)
    doi: Mapped[str | None] = mapped_column(String(200), nullable=True)


class ProjectEvent(TimestampMixin, Base):
    __tablename__ = "project_events"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="valid_dates"),
        CheckConstraint("participants_count >= 0", name="participants_not_negative"),
    )

    event_id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    group_id: Mapped[int | None] = mapped_column(
        ForeignKey("technical_groups.group_id"), nullable=True
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    participants_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    venue: Mapped[str | None] = mapped_column(String(300), nullable=True)


class ProjectStatus(TimestampMixin, Base):
    """Current status per project; history rows keep every change."""

    __tablename__ = "technical_project_status"

    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), primary_key=True
    )
    status: Mapped[ProjectStatusValue] = mapped_column(
        str_enum(ProjectStatusValue), nullable=False
    )
    status_date: Mapped[date] = mapped_column(Date, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)


class ProjectStatusHistory(Base):
    __tablename__ = "technical_project_status_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("finance_projects.project_id", ondelete="CASCADE"), nullable=False
    )
    old_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    new_status: Mapped[str] = mapped_column(String(50), nullable=False)
    status_date: Mapped[date] = mapped_column(Date, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
