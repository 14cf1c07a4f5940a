from __future__ import annotations

from app.services.notifications import NotificationService

__all__ = [
    "NotificationService",
]
