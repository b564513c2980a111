"""BDD tests for order pricing, payments and deletion."""

from pytest_bdd import parsers, scenarios, then, when
from rentals.exceptions import ConflictError, NotFoundError
from rentals.order.management import OrderManager
from rentals.payment.recorder import PaymentRecorder

scenarios("features/order_pricing_and_payment.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('a "{status}" payment of {amount:d} is recorded as "{transaction_id}"'))
def record_payment(current, status, amount, transaction_id):
    PaymentRecorder().record_payment(current.state["order_id"], transaction_id, amount, status)


@when("the order is deleted")
def delete_order(current, error):
    try:
        OrderManager().delete_order(current.state["order_id"])
    except ConflictError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the subtotal is {amount:d}"))
def subtotal_is(current, amount):
    assert current().subtotal == amount


@then(parsers.cfparse("the processing fee is {amount:d}"))
def processing_fee_is(current, amount):
    assert current().processing_fee == amount


@then(parsers.cfparse("the total is {amount:d}"))
def total_is(current, amount):
    assert current().total_amount == amount


@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(current, status):
    assert current().payment_status == status


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(current, status):
    assert current().status == status


@then(parsers.cfparse("the order has {count:d} payment transaction"))
def transaction_count(current, count):
    assert len(current().payment_transactions) == count


@then("the deletion is rejected with a conflict")
def deletion_rejected(current, error):
    assert isinstance(error["exc"], ConflictError)
    assert current().status == "Paid"


@then("the order no longer exists")
def order_gone(current):
    try:
        current()
    except NotFoundError:
        return
    raise AssertionError("Order still exists")
