from __future__ import annotations

"""
Date-derived statuses and small calendar helpers shared by routes and dashboards.
"""

from datetime import date
from decimal import Decimal

from app.db.enums import AmcStatus, MappingStatus

# Sort order of contractor mappings in lists
MAPPING_STATUS_ORDER = {
    MappingStatus.ACTIVE: 0,
    MappingStatus.UPCOMING: 1,
    MappingStatus.INACTIVE: 2,
}

PO_PAYMENT_PENDING = "Payment Pending"
PO_PARTIAL_PAYMENT = "Partial Payment"
PO_PAID_COMPLETELY = "Paid Completely"


def mapping_status(start_date: date, end_date: date, today: date | None = None) -> MappingStatus:
    today = today or date.today()
    if start_date > today:
        return MappingStatus.UPCOMING
    if end_date < today:
        return MappingStatus.INACTIVE
    return MappingStatus.ACTIVE


def amc_status(end_date: date, today: date | None = None) -> AmcStatus:
    today = today or date.today()
    return AmcStatus.INACTIVE if end_date < today else AmcStatus.ACTIVE


def periods_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed intervals [a_start, a_end] and [b_start, b_end] share at least one day."""
    return a_start <= b_end and b_start <= a_end


def quarter_of(day: date) -> int:
    return (day.month - 1) // 3 + 1


def po_payment_status(total_received: Decimal, invoice_value: Decimal) -> str:
    if total_received <= 0:
        return PO_PAYMENT_PENDING
    if total_received < invoice_value:
        return PO_PARTIAL_PAYMENT
    return PO_PAID_COMPLETELY


def month_start(day: date, months_back: int = 0) -> date:
    """First day of the month `months_back` months before `day`."""
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def last_months(today: date, count: int) -> list[date]:
    """First days of the last `count` months, oldest first, current month included."""
    return [month_start(today, back) for back in range(count - 1, -1, -1)]


def month_label(day: date) -> str:
    return day.strftime("%b %Y")


def project_timeline_status(end_date: date, extension_end_date: date | None, today: date | None = None) -> str:
    """`Ongoing` until the (extended) end date has passed, then `Completed`."""
    today = today or date.today()
    last_day = extension_end_date or end_date
    return "Completed" if last_day < today else "Ongoing"


def budget_utilization(allocated: float, spent: float) -> tuple[str, int]:
    """Utilization band and rounded percentage of a financial-year budget."""
    if allocated <= 0:
        return "No FY Budget", 0
    ratio = spent / allocated
    if ratio >= 1:
        band = "Exhausted"
    elif ratio >= 0.8:
        band = "High Utilization"
    elif ratio >= 0.5:
        band = "Medium Utilization"
    else:
        band = "Low Utilization"
    return band, round(ratio * 100)
