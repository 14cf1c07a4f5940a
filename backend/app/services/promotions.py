from __future__ import annotations

"""
Promotion chain of an employee.

Promotions of one employee form a chain ordered by effective_date: the
from_designation of each link is the to_designation of the previous one (the
employee's initial designation for the first link), and the last link gives
the employee's current designation and level.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError
from app.db.models.hr import Designation, Employee, Promotion


class PromotionLink(Protocol):
    id: Any
    effective_date: date
    from_designation_id: int
    to_designation_id: int
    level: int


@dataclass(frozen=True)
class CurrentDesignation:
    designation_id: int
    level: int | None


def sort_chain(promotions: Sequence[PromotionLink]) -> list[PromotionLink]:
    return sorted(promotions, key=lambda p: (p.effective_date, p.id or 0))


def neighbours(
    chain: Sequence[PromotionLink], promotion_id: Any
) -> tuple[PromotionLink | None, PromotionLink | None]:
    """Previous and next links around `promotion_id` in a sorted chain."""
    for index, link in enumerate(chain):
        if link.id == promotion_id:
            prev_link = chain[index - 1] if index > 0 else None
            next_link = chain[index + 1] if index + 1 < len(chain) else None
            return prev_link, next_link
    return None, None


def check_between(
    effective_date: date, prev_link: PromotionLink | None, next_link: PromotionLink | None
) -> None:
    if prev_link is not None and effective_date <= prev_link.effective_date:
        raise ValidationError("Promotion date must be after the previous promotion date")
    if next_link is not None and effective_date >= next_link.effective_date:
        raise ValidationError("Promotion date must be before the next promotion date")


def relink_chain(
    chain: Sequence[PromotionLink],
    initial_designation_id: int,
    initial_level: int | None = None,
) -> CurrentDesignation:
    """
    Re-derive from_designation_id along a sorted chain in place.

    Returns the designation and level the employee holds after the last link.
    """
    current = CurrentDesignation(initial_designation_id, initial_level)
    for link in chain:
        if link.from_designation_id != current.designation_id:
            link.from_designation_id = current.designation_id
        current = CurrentDesignation(link.to_designation_id, link.level)
    return current


def validate_import_row(
    row_number: int,
    row: dict[str, Any],
    employee: Employee | None,
    designation_levels: dict[int, int],
) -> list[str]:
    """Errors of one bulk-import row, formatted as `Row N: ...`."""
    prefix = f"Row {row_number}:"
    employee_id = row.get("employee_id")
    if employee is None:
        return [f"{prefix} Employee ID {employee_id} does not exist"]

    errors: list[str] = []
    effective_date = row.get("effective_date")
    if effective_date is None:
        errors.append(f"{prefix} Effective date is required")
    elif employee.join_date is not None and effective_date < employee.join_date:
        errors.append(
            f"{prefix} Promotion date cannot be before employee join date for employee {employee_id}"
        )

    to_designation_id = row.get("to_designation_id")
    if to_designation_id not in designation_levels:
        errors.append(f"{prefix} Invalid designation ID {to_designation_id}")
        return errors

    current_level = employee.level
    if current_level is None:
        current_level = designation_levels.get(employee.designation_id, 0)
    if designation_levels[to_designation_id] < current_level:
        errors.append(f"{prefix} Cannot demote employee {employee_id}")
    return errors


async def load_chain(db: AsyncSession, employee_id: str) -> list[Promotion]:
    result = await db.execute(
        select(Promotion)
        .where(Promotion.employee_id == employee_id)
        .order_by(Promotion.effective_date, Promotion.id)
    )
    return list(result.scalars().all())


async def resync_employee(db: AsyncSession, employee: Employee) -> CurrentDesignation:
    """Repair the chain of `employee` and copy its tail onto the employee row."""
    await db.flush()
    chain = await load_chain(db, employee.employee_id)
    initial = await db.get(Designation, employee.initial_designation_id)
    current = relink_chain(chain, employee.initial_designation_id, initial.level if initial else None)
    employee.designation_id = current.designation_id
    employee.level = current.level
    return current


async def designation_levels(db: AsyncSession) -> dict[int, int]:
    result = await db.execute(select(Designation.designation_id, Designation.level))
    return {row.designation_id: row.level for row in result}
