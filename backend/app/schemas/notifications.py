from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.db.enums import NotificationCategory


class NotificationOut(BaseModel):
    id: int
    category: NotificationCategory
    entity_type: str
    entity_id: str
    title: str
    message: str
    due_date: date
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationCheckRequest(BaseModel):
    today: date | None = None
    lookahead_days: int | None = Field(default=None, ge=0, le=365)


class NotificationCheckOut(BaseModel):
    created: int
