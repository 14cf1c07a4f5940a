from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.audit import AuditLog

"""
Audit trail helpers.
"""


async def log_audit(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: Any,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
    actor: str | None = None,
) -> None:
    """
    Adds an audit_log row to the current session.

    Args:
        db: Database session
        action: create, update, delete, status_change ...
        entity_type: staff, employee, procurement, travel, user ...
        entity_id: Entity key, stored as a string
        before_json: State before the change (optional)
        after_json: State after the change (optional)
        actor: Username of the caller (optional)
    """
    db.add(
        AuditLog(
            actor_username=actor,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            before_json=before_json,
            after_json=after_json,
        )
    )
    # No commit here: the caller commits together with the change itself


def snapshot(obj: Any, fields: list[str]) -> dict[str, Any]:
    """JSON-safe dict of selected ORM attributes for before/after payloads."""
    out: dict[str, Any] = {}
    for name in fields:
        value = getattr(obj, name, None)
        if hasattr(value, "value"):
            value = value.value
        elif value is not None and not isinstance(value, (str, int, float, bool)):
            value = str(value)
        out[name] = value
    return out
