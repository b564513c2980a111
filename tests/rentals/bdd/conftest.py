"""Shared BDD fixtures and step definitions for the Rentals domain."""

import pytest
from pytest_bdd import given, parsers, then
from rentals.order.management import OrderManager


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@pytest.fixture()
def current(notifier, signature_provider, gateway, access_control):
    """Reload the order under test from the store."""
    state = {"order_id": None}

    def _load():
        return OrderManager().get_order(state["order_id"])

    _load.state = state
    return _load


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'an order for {quantity:d} "{name}" at {unit_price:d} cents with a delivery fee of {delivery_fee:d}'
    )
)
def order_with_delivery(current, quantity, name, unit_price, delivery_fee):
    order = OrderManager().create_order(
        items=[{"kind": "rental", "name": name, "quantity": quantity, "unit_price": unit_price}],
        payment_method="paypal",
        customer={"customer_name": "Jane Doe", "customer_email": "jane@example.com"},
        fees={"delivery_fee": delivery_fee},
    )
    current.state["order_id"] = order.id


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the balance due is {amount:d}"))
def balance_due_is(current, amount):
    assert current().balance_due == amount


@then(parsers.cfparse('the agreement status is "{status}"'))
def agreement_status_is(current, status):
    assert current().agreement_status == status


@then("delivery is blocked")
def delivery_blocked(current):
    assert current().delivery_blocked is True


@then("delivery is not blocked")
def delivery_not_blocked(current):
    assert current().delivery_blocked is False
