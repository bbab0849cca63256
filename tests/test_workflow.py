import pytest

from app.core.exceptions import PreconditionError, ValidationError
from app.core.workflow import (
    BOOKING_WORKFLOW, CARGO_WORKFLOW, DELIVERY_WORKFLOW, INVOICE_WORKFLOW, QUOTE_WORKFLOW,
    rejection_note
)


def test_quote_happy_path():
    status = QUOTE_WORKFLOW.next_state("pending", "assign")
    assert status == "processing"
    status = QUOTE_WORKFLOW.next_state(status, "approve")
    assert status == "quoted"
    assert QUOTE_WORKFLOW.next_state(status, "accept") == "approved"


def test_quote_can_be_reassigned_while_processing():
    assert QUOTE_WORKFLOW.next_state("processing", "assign") == "processing"


def test_undeclared_edge_is_rejected():
    with pytest.raises(PreconditionError) as exc:
        QUOTE_WORKFLOW.next_state("rejected", "approve")
    assert exc.value.status_code == 400
    assert exc.value.error == "INVALID_TRANSITION"


def test_unknown_action_is_a_programming_error():
    with pytest.raises(ValueError):
        QUOTE_WORKFLOW.next_state("pending", "teleport")


def test_booking_customer_approval_keeps_status():
    assert BOOKING_WORKFLOW.next_state("pending", "approve") == "pending"
    assert not BOOKING_WORKFLOW.can("confirmed", "approve")


def test_completed_booking_cannot_be_cancelled():
    with pytest.raises(PreconditionError):
        BOOKING_WORKFLOW.next_state("completed", "cancel")


def test_cargo_reject_returns_to_submitted():
    assert CARGO_WORKFLOW.next_state("approved", "reject") == "submitted"
    assert not CARGO_WORKFLOW.can("processing", "reject")


def test_delivery_must_be_scheduled_before_dispatch():
    with pytest.raises(PreconditionError):
        DELIVERY_WORKFLOW.next_state("requested", "dispatch")
    assert DELIVERY_WORKFLOW.next_state("scheduled", "schedule") == "scheduled"


def test_invoice_actions_from_sent():
    assert INVOICE_WORKFLOW.allowed_actions("sent") == ["cancel", "mark_overdue", "mark_paid", "pay"]
    assert INVOICE_WORKFLOW.allowed_actions("paid") == []


def test_validate_filter():
    assert INVOICE_WORKFLOW.validate_filter(None) is None
    assert INVOICE_WORKFLOW.validate_filter("all") == "all"
    assert INVOICE_WORKFLOW.validate_filter("overdue") == "overdue"
    with pytest.raises(ValidationError) as exc:
        INVOICE_WORKFLOW.validate_filter("archived")
    assert exc.value.error == "INVALID_STATUS"


def test_rejection_note():
    assert rejection_note(None) == "Rejected"
    assert rejection_note("   ") == "Rejected"
    assert rejection_note("Too expensive") == "Rejected: Too expensive"
