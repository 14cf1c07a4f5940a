from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class ActsCourse(TimestampMixin, Base):
    __tablename__ = "acts_course"
    __table_args__ = (
        UniqueConstraint("course_name", "batch_id", name="uq_course_batch"),
        CheckConstraint("students_enrolled >= 0", name="enrolled_not_negative"),
        CheckConstraint("students_placed >= 0", name="placed_not_negative"),
        CheckConstraint("students_placed <= students_enrolled", name="placed_within_enrolled"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    course_name: Mapped[str] = mapped_column(String(200), nullable=False)
    batch_name: Mapped[str] = mapped_column(String(100), nullable=False)
    batch_id: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    students_enrolled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    students_placed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    course_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)


class ManpowerCount(TimestampMixin, Base):
    __tablename__ = "manpower_counts"

    id: Mapped[int] = mapped_column(primary_key=True)
    on_rolls: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cocp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    regular: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cc: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gbc: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ka: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    spe: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pe: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pa: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
