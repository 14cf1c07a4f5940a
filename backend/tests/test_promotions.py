"""
Promotion chain rules (pure functions, no database).
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from app.core.errors import ValidationError
from app.services.promotions import (
    CurrentDesignation,
    check_between,
    neighbours,
    relink_chain,
    sort_chain,
    validate_import_row,
)


@dataclass
class Link:
    id: int
    effective_date: date
    from_designation_id: int
    to_designation_id: int
    level: int


@dataclass
class FakeEmployee:
    employee_id: str
    join_date: date | None
    designation_id: int
    level: int | None


PE, SPE, PA, KA = 1, 2, 3, 4
LEVELS = {PE: 1, SPE: 2, PA: 1, KA: 1}


def _chain() -> list[Link]:
    return sort_chain(
        [
            Link(3, date(2023, 6, 1), 99, PA, 3),
            Link(1, date(2020, 1, 1), PE, SPE, 2),
        ]
    )


class TestChain:
    def test_sort_by_date(self):
        assert [link.id for link in _chain()] == [1, 3]

    def test_relink_repairs_from_designation(self):
        chain = _chain()
        current = relink_chain(chain, PE, 1)
        assert chain[1].from_designation_id == SPE
        assert current == CurrentDesignation(PA, 3)

    def test_empty_chain_keeps_initial(self):
        assert relink_chain([], KA, 1) == CurrentDesignation(KA, 1)

    def test_neighbours(self):
        chain = _chain()
        assert neighbours(chain, 1) == (None, chain[1])
        assert neighbours(chain, 3) == (chain[0], None)
        assert neighbours(chain, 42) == (None, None)


class TestCheckBetween:
    def test_must_follow_previous(self):
        prev_link = Link(1, date(2020, 1, 1), PE, SPE, 2)
        with pytest.raises(ValidationError, match="after the previous"):
            check_between(date(2020, 1, 1), prev_link, None)

    def test_must_precede_next(self):
        next_link = Link(2, date(2022, 1, 1), SPE, PA, 3)
        with pytest.raises(ValidationError, match="before the next"):
            check_between(date(2022, 2, 1), None, next_link)

    def test_in_between_is_fine(self):
        check_between(
            date(2021, 1, 1),
            Link(1, date(2020, 1, 1), PE, SPE, 2),
            Link(2, date(2022, 1, 1), SPE, PA, 3),
        )


class TestImportRow:
    def test_unknown_employee(self):
        errors = validate_import_row(2, {"employee_id": "E9"}, None, LEVELS)
        assert errors == ["Row 2: Employee ID E9 does not exist"]

    def test_before_join_date_and_demotion(self):
        employee = FakeEmployee("E1", date(2021, 1, 1), SPE, 2)
        row = {"employee_id": "E1", "effective_date": date(2020, 1, 1), "to_designation_id": PE}
        errors = validate_import_row(3, row, employee, LEVELS)
        assert errors == [
            "Row 3: Promotion date cannot be before employee join date for employee E1",
            "Row 3: Cannot demote employee E1",
        ]

    def test_invalid_designation(self):
        employee = FakeEmployee("E1", None, PE, None)
        row = {"employee_id": "E1", "effective_date": date(2024, 1, 1), "to_designation_id": 77}
        assert validate_import_row(4, row, employee, LEVELS) == ["Row 4: Invalid designation ID 77"]

    def test_valid_row(self):
        employee = FakeEmployee("E1", date(2019, 1, 1), PE, None)
        row = {"employee_id": "E1", "effective_date": date(2024, 1, 1), "to_designation_id": SPE}
        assert validate_import_row(5, row, employee, LEVELS) == []
