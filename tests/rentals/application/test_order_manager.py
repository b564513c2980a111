"""Application tests for creating, updating and deleting orders."""

from dataclasses import replace
from datetime import UTC, datetime

import pytest
from protean.exceptions import ValidationError
from rentals.config import load_settings, set_settings
from rentals.exceptions import ConflictError, NotFoundError, StateTransitionError
from rentals.order.management import OrderManager
from rentals.order.order import OrderStatus


def _year():
    return datetime.now(UTC).year


class TestCreateOrder:
    def test_allocates_first_number_of_the_year(self, make_order):
        order = make_order()
        assert order.order_number == f"BB-{_year()}-0001"

    def test_numbers_are_sequential(self, make_order):
        first = make_order()
        second = make_order()
        assert first.order_number == f"BB-{_year()}-0001"
        assert second.order_number == f"BB-{_year()}-0002"

    def test_persisted_at_version_one(self, make_order):
        order = make_order()
        stored = OrderManager().get_order(order.id)
        assert stored.version == 1
        assert stored.total_amount == 17450

    def test_configured_defaults_apply(self, make_order):
        set_settings(replace(load_settings(), delivery_fee=2500, deposit_amount=5000))
        order = make_order(fees={})
        assert order.delivery_fee == 2500
        assert order.deposit_amount == 5000
        assert order.balance_due == order.total_amount - 5000

    def test_explicit_zero_delivery_fee_is_kept(self, make_order):
        order = make_order(fees={"delivery_fee": 0})
        assert order.delivery_fee == 0

    def test_invalid_order_does_not_consume_a_number(self, make_order):
        with pytest.raises(ValidationError):
            make_order(items=[{"name": "Slide", "quantity": 0, "unit_price": 100}])
        order = make_order()
        assert order.order_number == f"BB-{_year()}-0001"

    def test_unknown_customer_fields_are_dropped(self, make_order):
        order = make_order(customer={"customer_email": "jane@example.com", "status": "Paid"})
        assert order.status == OrderStatus.PENDING.value

    def test_lookup_by_order_number(self, make_order):
        order = make_order()
        found = OrderManager().get_by_order_number(order.order_number)
        assert found.id == order.id

    def test_lookup_unknown_order(self):
        with pytest.raises(NotFoundError):
            OrderManager().get_order("missing")
        with pytest.raises(NotFoundError):
            OrderManager().get_by_order_number("BB-1999-0001")


class TestUpdateOrder:
    def test_update_bumps_version(self, make_order):
        order = make_order()
        updated = OrderManager().update_order(order.id, {"notes": "Back gate"}, expected_version=1)

        assert updated.version == 2
        assert OrderManager().get_order(order.id).notes == "Back gate"

    def test_stale_version_rejected(self, make_order):
        order = make_order()
        manager = OrderManager()
        manager.update_order(order.id, {"notes": "First"}, expected_version=1)

        with pytest.raises(ConflictError):
            manager.update_order(order.id, {"notes": "Second"}, expected_version=1)
        assert manager.get_order(order.id).notes == "First"

    def test_update_without_version(self, make_order):
        order = make_order()
        updated = OrderManager().update_order(order.id, {"tax_amount": 1000})
        assert updated.total_amount == 18450

    def test_noop_update_keeps_version(self, make_order):
        order = make_order(notes="Same")
        updated = OrderManager().update_order(order.id, {"notes": "Same"}, expected_version=1)
        assert updated.version == 1

    def test_forbidden_field(self, make_order):
        order = make_order()
        with pytest.raises(ValidationError):
            OrderManager().update_order(order.id, {"order_number": "BB-2000-0001"})

    def test_illegal_status_transition(self, make_order):
        order = make_order()
        with pytest.raises(StateTransitionError):
            OrderManager().update_order(order.id, {"status": "Refunded"})

    def test_unknown_order(self):
        with pytest.raises(NotFoundError):
            OrderManager().update_order("missing", {"notes": "x"})


class TestDeleteOrder:
    def test_delete_pending_order(self, make_order):
        order = make_order()
        manager = OrderManager()
        manager.delete_order(order.id)
        with pytest.raises(NotFoundError):
            manager.get_order(order.id)

    @pytest.mark.parametrize("status", ["Paid", "Confirmed"])
    def test_orders_holding_money_cannot_be_deleted(self, make_order, status):
        order = make_order()
        manager = OrderManager()
        manager.update_order(order.id, {"status": status})

        with pytest.raises(ConflictError):
            manager.delete_order(order.id)
        assert manager.get_order(order.id).status == status

    def test_stale_version_rejected(self, make_order):
        order = make_order()
        manager = OrderManager()
        manager.update_order(order.id, {"notes": "changed"})
        with pytest.raises(ConflictError):
            manager.delete_order(order.id, expected_version=1)

    def test_unknown_order(self):
        with pytest.raises(NotFoundError):
            OrderManager().delete_order("missing")
