from types import SimpleNamespace

import pytest

from app.core.exceptions import AuthorizationError
from app.core.policy import (
    POLICY, EntityKind, Role, allowed_roles, authorize, ensure_can_view, scope_filter
)
from app.shared.database.models import CargoDispatchDetail, Quote


def test_every_operation_allows_at_least_one_role():
    valid = {r.value for r in Role}
    for operation, roles in POLICY.items():
        assert roles, operation
        assert roles <= valid, operation


def test_authorize():
    assert authorize("customer", "quote.create")
    assert not authorize("warehouse", "quote.create")
    assert authorize("purchase_support", "quote.assign")
    assert not authorize("admin", "quote.assign")
    assert not authorize("admin", "nonexistent.operation")


def test_allowed_roles_sorted():
    assert allowed_roles("quote.approve") == ["sales_support", "supervisor"]
    assert allowed_roles("nonexistent.operation") == []


def test_customer_scope_is_ownership():
    scope = scope_filter("customer", 7, EntityKind.QUOTE)
    assert scope.owner_id == 7
    # explicit status adds to ownership, never replaces it
    assert len(scope.criteria(Quote)) == 1
    assert len(scope.criteria(Quote, "pending")) == 2
    assert len(scope.criteria(Quote, "all")) == 1


def test_customer_cargo_scope_resolves_through_booking():
    scope = scope_filter("customer", 7, EntityKind.CARGO)
    assert len(scope.criteria(CargoDispatchDetail)) == 1


@pytest.mark.parametrize("role", ["supervisor", "admin"])
def test_oversight_roles_are_unrestricted(role):
    scope = scope_filter(role, 1, EntityKind.INVOICE)
    assert scope.unrestricted
    assert scope.criteria(Quote) == []


def test_warehouse_sees_assigned_quotes():
    scope = scope_filter("warehouse", 3, EntityKind.QUOTE)
    assert scope.assignee_id == 3
    assert scope.permits(SimpleNamespace(assigned_to=3))
    assert not scope.permits(SimpleNamespace(assigned_to=4))


def test_default_view_is_replaced_by_explicit_status():
    scope = scope_filter("purchase_support", 1, EntityKind.QUOTE)
    assert scope.default_statuses == ("pending",)
    assert len(scope.criteria(Quote)) == 1
    assert len(scope.criteria(Quote, "quoted")) == 1
    assert scope.criteria(Quote, "all") == []


def test_default_view_does_not_restrict_reads_by_id():
    scope = scope_filter("sales_support", 1, EntityKind.QUOTE)
    assert scope.permits(SimpleNamespace(status="approved"))


def test_ensure_can_view():
    owner = SimpleNamespace(id=1, role="customer")
    stranger = SimpleNamespace(id=2, role="customer")
    quote = SimpleNamespace(customer_id=1, status="pending")

    ensure_can_view(owner, quote, EntityKind.QUOTE)
    with pytest.raises(AuthorizationError):
        ensure_can_view(stranger, quote, EntityKind.QUOTE)


def test_cargo_ownership_via_booking():
    cargo = SimpleNamespace(booking=SimpleNamespace(customer_id=5), status="submitted")
    ensure_can_view(SimpleNamespace(id=5, role="customer"), cargo, EntityKind.CARGO)
    with pytest.raises(AuthorizationError):
        ensure_can_view(SimpleNamespace(id=6, role="customer"), cargo, EntityKind.CARGO)
