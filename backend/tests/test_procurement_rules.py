"""
MMG procurement workflow rules.
"""
from __future__ import annotations

import pytest

from app.core.errors import ValidationError
from app.db.enums import ApprovalDecision, ApproverRole
from app.services.procurement import (
    AWAITING_APPROVAL,
    BID_ALLOWED,
    BIDS_RECEIVED,
    INDENT_RECEIVED,
    NO_PO,
    PAYMENT_PENDING,
    PAYMENT_PROCESSED,
    PO_CREATED,
    approval_status,
    can_delete,
    ensure_status,
    payment_status,
)


def test_approval_status_text():
    assert approval_status(ApproverRole.ED, ApprovalDecision.APPROVED) == "Approved by ED"
    assert approval_status(ApproverRole.FINANCE, ApprovalDecision.REJECTED) == "Rejected by Finance"


def test_ed_approval_is_not_awaiting():
    assert "Approved by Group Head" in AWAITING_APPROVAL
    assert "Approved by ED" not in AWAITING_APPROVAL


def test_ensure_status_reports_allowed_states():
    ensure_status(BIDS_RECEIVED, BID_ALLOWED, "add a bid")
    with pytest.raises(ValidationError) as info:
        ensure_status(PO_CREATED, BID_ALLOWED, "add a bid")
    assert info.value.details["status"] == PO_CREATED
    assert "Cannot add a bid" in info.value.message


@pytest.mark.parametrize(
    "status, expected",
    [
        (INDENT_RECEIVED, True),
        ("Rejected by Group Head", True),
        ("Approved by ED", False),
        (PO_CREATED, False),
    ],
)
def test_can_delete(status, expected):
    assert can_delete(status) is expected


def test_payment_status():
    assert payment_status(None) == NO_PO
    assert payment_status(PAYMENT_PROCESSED) == PAYMENT_PROCESSED
    assert payment_status("Pending") == PAYMENT_PENDING
