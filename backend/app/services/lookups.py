from __future__ import annotations

"""
Default rows of the lookup tables.

Designations and technical groups are seeded lazily on the first read of an
empty table; budget fields are seeded by 005_finance.sql and by the seed
script.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import logger
from app.db.models.finance import BudgetField
from app.db.models.hr import Designation, TechnicalGroup

DEFAULT_DESIGNATIONS = [
    ("PE", "Project Engineer", 1),
    ("KA", "Knowledge Associate", 1),
    ("SPE", "Senior Project Engineer", 2),
    ("PA", "Project Associate", 1),
]

DEFAULT_TECHNICAL_GROUPS = [
    ("SOULWARE", "Software and Open Source group"),
    ("VLSI", "VLSI design group"),
    ("HPC", "High Performance Computing group"),
    ("SSP", "Signal and Speech Processing group"),
    ("AI", "Artificial Intelligence group"),
    ("IoT", "Internet of Things group"),
]

DEFAULT_BUDGET_FIELDS = [
    "Manpower",
    "Equipment",
    "Consumables",
    "Travel",
    "Contingency",
    "Overheads",
]


async def _is_empty(db: AsyncSession, model) -> bool:
    return not (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def ensure_designations(db: AsyncSession) -> bool:
    """Insert the default designations into an empty table. Returns True if seeded."""
    if not await _is_empty(db, Designation):
        return False
    db.add_all(
        Designation(designation=code, designation_full=full, level=level)
        for code, full, level in DEFAULT_DESIGNATIONS
    )
    await db.commit()
    logger.info("Seeded default designations")
    return True


async def ensure_technical_groups(db: AsyncSession) -> bool:
    if not await _is_empty(db, TechnicalGroup):
        return False
    db.add_all(
        TechnicalGroup(group_name=name, group_description=description)
        for name, description in DEFAULT_TECHNICAL_GROUPS
    )
    await db.commit()
    logger.info("Seeded default technical groups")
    return True


async def ensure_budget_fields(db: AsyncSession) -> int:
    existing = set((await db.execute(select(BudgetField.field_name))).scalars().all())
    missing = [name for name in DEFAULT_BUDGET_FIELDS if name not in existing]
    db.add_all(BudgetField(field_name=name, is_default=True) for name in missing)
    await db.commit()
    return len(missing)
