from __future__ import annotations

"""
MMG procurement workflow.

Statuses are free-form strings in the database; the constants below are the
ones the workflow endpoints set and check.
"""

from app.core.errors import ValidationError
from app.db.enums import ApprovalDecision, ApproverRole, MmgPoStatus

INDENT_RECEIVED = "Indent Received"
PENDING_APPROVAL = "Pending Approval"
SOURCING_SELECTED = "Sourcing Method Selected"
ORDER_PLACED_GEM = "Order Placed in GeM"
TENDER_CALLED = "Tender Called"
BIDS_RECEIVED = "Bids Received"
VENDOR_FINALIZED = "Vendor Finalized"
ACCEPTED_BY_MMG = "Accepted by MMG"
PO_CREATED = "PO Created"

BID_ALLOWED = (ORDER_PLACED_GEM, TENDER_CALLED, BIDS_RECEIVED)
FINALIZE_ALLOWED = (BIDS_RECEIVED, TENDER_CALLED)
PURCHASE_ORDER_ALLOWED = (VENDOR_FINALIZED, ACCEPTED_BY_MMG)
DELETE_ALLOWED = (PENDING_APPROVAL, INDENT_RECEIVED)

# Waiting for an approval step: ED approval is the last one
AWAITING_APPROVAL = (
    INDENT_RECEIVED,
    PENDING_APPROVAL,
    f"{ApprovalDecision.APPROVED.value} by {ApproverRole.GROUP_HEAD.value}",
    f"{ApprovalDecision.APPROVED.value} by {ApproverRole.FINANCE.value}",
)

PAYMENT_PROCESSED = MmgPoStatus.PAYMENT_PROCESSED.value
PAYMENT_PENDING = "Payment Pending"
NO_PO = "No PO"


def approval_status(role: ApproverRole, decision: ApprovalDecision) -> str:
    """`Approved by ED`, `Rejected by Finance` ..."""
    return f"{decision.value} by {role.value}"


def ensure_status(current: str, allowed: tuple[str, ...], action: str) -> None:
    if current not in allowed:
        raise ValidationError(
            f"Cannot {action} when procurement status is '{current}'",
            details={"status": current, "allowed": list(allowed)},
        )


def can_delete(status: str) -> bool:
    return status in DELETE_ALLOWED or status.startswith(ApprovalDecision.REJECTED.value)


def payment_status(po_status: str | None) -> str:
    """Payment column of the combined MMG view."""
    if po_status is None:
        return NO_PO
    if po_status == PAYMENT_PROCESSED:
        return PAYMENT_PROCESSED
    return PAYMENT_PENDING
