"""Tests for pure order pricing."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from rentals.order.pricing import (
    balance_of,
    default_processing_fee,
    is_successful,
    paid_amount_of,
    price_order,
    subtotal_of,
)


class TestSubtotal:
    def test_sum_of_line_totals(self):
        assert subtotal_of([(2, 7500), (1, 1500)]) == 16500

    def test_order_of_lines_does_not_matter(self):
        assert subtotal_of([(1, 1500), (2, 7500)]) == subtotal_of([(2, 7500), (1, 1500)])


class TestPriceOrder:
    def test_bounce_house_order(self):
        fee = default_processing_fee(15000, Decimal("0.03"))
        breakdown = price_order([(2, 7500)], delivery_fee=2000, processing_fee=fee)

        assert breakdown.subtotal == 15000
        assert breakdown.processing_fee == 450
        assert breakdown.total_amount == 17450
        assert breakdown.balance_due == 17450

    def test_total_includes_tax_and_discount(self):
        breakdown = price_order(
            [(1, 10000)],
            tax_amount=825,
            discount_amount=1000,
            delivery_fee=2000,
            processing_fee=300,
        )
        assert breakdown.total_amount == 10000 + 825 + 2000 + 300 - 1000

    def test_deposit_reduces_balance(self):
        breakdown = price_order([(1, 10000)], deposit_amount=2500)
        assert breakdown.balance_due == 7500

    def test_successful_payments_reduce_balance(self):
        breakdown = price_order(
            [(1, 10000)],
            transactions=[(4000, "COMPLETED"), (6000, "DECLINED")],
        )
        assert breakdown.paid_amount == 4000
        assert breakdown.balance_due == 6000

    def test_overpayment_clamps_balance_to_zero(self):
        breakdown = price_order([(1, 10000)], transactions=[(12000, "COMPLETED")])
        assert breakdown.balance_due == 0

    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError) as exc:
            price_order([(1, 10000)], delivery_fee=-100)
        assert "delivery_fee" in exc.value.messages

    def test_discount_larger_than_total_rejected(self):
        with pytest.raises(ValidationError) as exc:
            price_order([(1, 1000)], discount_amount=5000)
        assert "discount_amount" in exc.value.messages

    def test_deposit_larger_than_total_rejected(self):
        with pytest.raises(ValidationError) as exc:
            price_order([(1, 1000)], deposit_amount=5000)
        assert "deposit_amount" in exc.value.messages


class TestHelpers:
    @pytest.mark.parametrize("status", ["COMPLETED", "APPROVED", "completed"])
    def test_successful_statuses(self, status):
        assert is_successful(status)

    @pytest.mark.parametrize("status", ["DECLINED", "PENDING", "", None])
    def test_unsuccessful_statuses(self, status):
        assert not is_successful(status)

    def test_paid_amount_ignores_failed(self):
        assert paid_amount_of([(100, "COMPLETED"), (200, "FAILED")]) == 100

    def test_balance_never_negative(self):
        assert balance_of(1000, 0, 1500) == 0
