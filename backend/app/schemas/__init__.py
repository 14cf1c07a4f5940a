from __future__ import annotations

from app.schemas.common import CountItem, DeletedOut, ErrorResponse, MessageOut

__all__ = [
    "CountItem",
    "DeletedOut",
    "ErrorResponse",
    "MessageOut",
]
