from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, field_validator


class ErrorResponse(BaseModel):
    """Error body rendered by app.core.errors."""

    detail: str
    error: str
    code: str
    details: dict[str, Any] = {}


class MessageOut(BaseModel):
    message: str


class DeletedOut(BaseModel):
    message: str
    deletedId: int | str


class CountItem(BaseModel):
    """One bar/slice of a dashboard chart."""

    label: str
    count: int


def strip_required(value: str) -> str:
    """Shared validator body: trimmed, non-empty string."""
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def check_period(start: date | None, end: date | None, message: str) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError(message)


class StrippedModel(BaseModel):
    """Base for payloads whose string fields are trimmed before validation."""

    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value
