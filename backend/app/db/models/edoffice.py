from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin, str_enum
from app.db.enums import TravelStatus, TravelType


class Travel(TimestampMixin, Base):
    __tablename__ = "travels"
    __table_args__ = (
        CheckConstraint("return_date >= onward_date", name="valid_dates"),
        CheckConstraint("travel_type IN ('foreign', 'domestic')", name="valid_travel_type"),
        CheckConstraint(
            "status IN ('going', 'not_going', 'deputing')", name="valid_status"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    travel_type: Mapped[TravelType] = mapped_column(str_enum(TravelType, 20), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    onward_date: Mapped[date] = mapped_column(Date, nullable=False)
    return_date: Mapped[date] = mapped_column(Date, nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    accommodation: Mapped[str | None] = mapped_column(Text, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TravelStatus] = mapped_column(
        str_enum(TravelStatus, 20), nullable=False, default=TravelStatus.GOING
    )


class Talk(TimestampMixin, Base):
    __tablename__ = "talks"

    id: Mapped[int] = mapped_column(primary_key=True)
    speaker_name: Mapped[str] = mapped_column(String(200), nullable=False)
    topic_role: Mapped[str] = mapped_column(String(300), nullable=False)
    event_name: Mapped[str] = mapped_column(String(300), nullable=False)
    venue: Mapped[str] = mapped_column(String(300), nullable=False)
    talk_date: Mapped[date] = mapped_column(Date, nullable=False)


class CalendarEvent(TimestampMixin, Base):
    __tablename__ = "calendar_events"
    __table_args__ = (CheckConstraint("end_time >= start_time", name="valid_times"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meeting_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    venue: Mapped[str | None] = mapped_column(String(300), nullable=True)
    reminder_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
