"""
Unit tests for the date-derived statuses in app.services.status.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.api.v1.acts_dashboard import placement_rate
from app.db.enums import AmcStatus, MappingStatus
from app.services.status import (
    PO_PAID_COMPLETELY,
    PO_PARTIAL_PAYMENT,
    PO_PAYMENT_PENDING,
    amc_status,
    budget_utilization,
    last_months,
    mapping_status,
    month_label,
    month_start,
    periods_overlap,
    po_payment_status,
    project_timeline_status,
    quarter_of,
)

TODAY = date(2024, 6, 15)


class TestMappingStatus:
    def test_upcoming(self):
        assert mapping_status(date(2024, 7, 1), date(2024, 12, 31), TODAY) == MappingStatus.UPCOMING

    def test_inactive(self):
        assert mapping_status(date(2023, 1, 1), date(2024, 6, 14), TODAY) == MappingStatus.INACTIVE

    def test_bounds_are_active(self):
        assert mapping_status(TODAY, TODAY, TODAY) == MappingStatus.ACTIVE


def test_amc_status_boundary():
    assert amc_status(TODAY, TODAY) == AmcStatus.ACTIVE
    assert amc_status(date(2024, 6, 14), TODAY) == AmcStatus.INACTIVE


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((date(2024, 1, 1), date(2024, 1, 31)), (date(2024, 1, 31), date(2024, 2, 28)), True),
        ((date(2024, 1, 1), date(2024, 1, 30)), (date(2024, 1, 31), date(2024, 2, 28)), False),
        ((date(2024, 3, 1), date(2024, 3, 31)), (date(2024, 1, 1), date(2024, 12, 31)), True),
    ],
)
def test_periods_overlap(a, b, expected):
    assert periods_overlap(*a, *b) is expected
    assert periods_overlap(*b, *a) is expected


def test_quarter_of():
    assert [quarter_of(date(2024, m, 1)) for m in (1, 3, 4, 6, 7, 10, 12)] == [1, 1, 2, 2, 3, 4, 4]


class TestPoPaymentStatus:
    def test_nothing_received(self):
        assert po_payment_status(Decimal("0"), Decimal("100")) == PO_PAYMENT_PENDING

    def test_partial(self):
        assert po_payment_status(Decimal("40"), Decimal("100")) == PO_PARTIAL_PAYMENT

    def test_full_or_over(self):
        assert po_payment_status(Decimal("100"), Decimal("100")) == PO_PAID_COMPLETELY
        assert po_payment_status(Decimal("120"), Decimal("100")) == PO_PAID_COMPLETELY


class TestMonths:
    def test_month_start_crosses_year(self):
        assert month_start(date(2024, 2, 20), 3) == date(2023, 11, 1)
        assert month_start(date(2024, 2, 20)) == date(2024, 2, 1)

    def test_last_months_oldest_first(self):
        months = last_months(date(2024, 2, 10), 4)
        assert months == [date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]

    def test_label(self):
        assert month_label(date(2024, 1, 1)) == "Jan 2024"


class TestProjectTimeline:
    def test_extension_keeps_project_running(self):
        assert project_timeline_status(date(2024, 3, 31), date(2024, 9, 30), TODAY) == "Ongoing"

    def test_completed_after_end(self):
        assert project_timeline_status(date(2024, 3, 31), None, TODAY) == "Completed"


class TestPlacementRate:
    def test_rounded_percentage(self):
        assert placement_rate(3, 2) == 66.67

    def test_zero_enrolled(self):
        assert placement_rate(0, 0) == 0


class TestBudgetUtilization:
    @pytest.mark.parametrize(
        "spent,expected",
        [
            (0, ("Low Utilization", 0)),
            (49, ("Low Utilization", 49)),
            (50, ("Medium Utilization", 50)),
            (80, ("High Utilization", 80)),
            (100, ("Exhausted", 100)),
            (130, ("Exhausted", 130)),
        ],
    )
    def test_bands(self, spent, expected):
        assert budget_utilization(100, spent) == expected

    def test_no_budget(self):
        assert budget_utilization(0, 25) == ("No FY Budget", 0)
