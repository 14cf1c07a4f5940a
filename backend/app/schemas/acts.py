from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import StrippedModel

PLACED_EXCEEDS_ENROLLED = "Students placed cannot exceed students enrolled"


class CourseCreate(StrippedModel):
    course_name: str = Field(min_length=1, max_length=200)
    batch_name: str = Field(min_length=1, max_length=100)
    batch_id: str = Field(min_length=1, max_length=50)
    year: int = Field(ge=1900, le=2100)
    students_enrolled: int = Field(default=0, ge=0)
    students_placed: int = Field(default=0, ge=0)
    course_fee: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def _check_placed(self) -> "CourseCreate":
        if self.students_placed > self.students_enrolled:
            raise ValueError(PLACED_EXCEEDS_ENROLLED)
        return self


class CourseUpdate(CourseCreate):
    pass


class CourseOut(BaseModel):
    id: int
    course_name: str
    batch_name: str
    batch_id: str
    year: int
    students_enrolled: int
    students_placed: int
    course_fee: float
    created_at: datetime

    class Config:
        from_attributes = True


class ActsSummaryOut(BaseModel):
    total_courses: int
    total_students_enrolled: int
    total_students_placed: int
    total_revenue: float
    overall_placement_rate: float


class CourseRevenueOut(BaseModel):
    course_name: str
    total_revenue: float


class ManpowerIn(BaseModel):
    on_rolls: int = Field(default=0, ge=0)
    cocp: int = Field(default=0, ge=0)
    regular: int = Field(default=0, ge=0)
    cc: int = Field(default=0, ge=0)
    gbc: int = Field(default=0, ge=0)
    ka: int = Field(default=0, ge=0)
    spe: int = Field(default=0, ge=0)
    pe: int = Field(default=0, ge=0)
    pa: int = Field(default=0, ge=0)


class ManpowerOut(ManpowerIn):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
