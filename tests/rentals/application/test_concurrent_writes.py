"""Concurrency tests: order numbers and payments under parallel writers."""

import json
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import UTC, datetime

import pytest
from rentals.agreement.coordinator import AgreementCoordinator
from rentals.agreement.webhook import WebhookProcessor, compute_signature
from rentals.config import load_settings, set_settings
from rentals.domain import rentals
from rentals.order.management import OrderManager
from rentals.order.numbering import next_order_number
from rentals.payment.recorder import PaymentRecorder


def _in_domain(fn, *args):
    with rentals.domain_context():
        return fn(*args)


@pytest.mark.slow
class TestConcurrentNumbering:
    def test_parallel_allocation_yields_distinct_consecutive_numbers(self):
        now = datetime(2026, 3, 1, tzinfo=UTC)

        with ThreadPoolExecutor(max_workers=16) as pool:
            numbers = list(pool.map(lambda _: _in_domain(next_order_number, now), range(100)))

        assert len(set(numbers)) == 100
        assert sorted(numbers) == [f"BB-2026-{n:04d}" for n in range(1, 101)]


@pytest.mark.slow
class TestConcurrentPayments:
    def test_parallel_payments_are_all_recorded(self, make_order, notifier):
        set_settings(replace(load_settings(), max_write_attempts=100))
        order = make_order(
            items=[{"name": "Castle Bounce House", "quantity": 1, "unit_price": 10000}],
            fees={"delivery_fee": 0, "processing_fee": 0},
        )

        def pay(n):
            return PaymentRecorder().record_payment(order.id, f"TXN-{n}", 1000, "COMPLETED")

        with ThreadPoolExecutor(max_workers=10) as pool:
            list(pool.map(lambda n: _in_domain(pay, n), range(10)))

        stored = PaymentRecorder().store.get(order.id)
        assert len(stored.payment_transactions) == 10
        assert stored.balance_due == 0
        assert stored.payment_status == "Paid"
        assert stored.version == 11

    def test_parallel_replays_record_once(self, make_order):
        order = make_order()

        def replay(_):
            return PaymentRecorder().record_payment(order.id, "TXN-SAME", 17450, "COMPLETED")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda n: _in_domain(replay, n), range(8)))

        stored = PaymentRecorder().store.get(order.id)
        assert len(stored.payment_transactions) == 1
        assert stored.version == 2


@pytest.mark.slow
class TestConcurrentOrderCreation:
    def test_parallel_creates_get_unique_numbers(self, notifier):
        def create(n):
            return OrderManager().create_order(
                items=[{"name": f"Bounce House {n}", "quantity": 1, "unit_price": 5000}],
                payment_method="paypal",
                customer={"customer_email": f"guest{n}@example.com"},
                fees={"delivery_fee": 2000},
            )

        with ThreadPoolExecutor(max_workers=16) as pool:
            orders = list(pool.map(lambda n: _in_domain(create, n), range(100)))

        numbers = [order.order_number for order in orders]
        assert len(set(numbers)) == 100
        assert all(re.fullmatch(r"BB-\d{4}-\d{4}", number) for number in numbers)

        sequences = sorted(int(number.rsplit("-", 1)[1]) for number in numbers)
        assert sequences == list(range(sequences[0], sequences[0] + 100))


@pytest.mark.slow
class TestWebhooksAndPaymentsOnOneOrder:
    def test_both_paths_retry_and_land(self, make_order, signature_provider, notifier):
        secret = "concurrent-secret"
        set_settings(replace(load_settings(), max_write_attempts=100, webhook_secret=secret))
        order = make_order(
            items=[{"name": "Castle Bounce House", "quantity": 1, "unit_price": 10000}],
            fees={"delivery_fee": 0, "processing_fee": 0},
        )
        sent = AgreementCoordinator().send_agreement(order.id)
        raw = json.dumps({"event": "submission.completed", "submission_id": sent.agreement_submission_id}).encode()
        signature = compute_signature(raw, secret)

        def work(n):
            if n % 4 == 0:
                return WebhookProcessor().handle_event(raw, signature)
            return PaymentRecorder().record_payment(order.id, f"TXN-{n}", 1000, "COMPLETED")

        # 3 webhook deliveries and 10 payments, interleaved
        with ThreadPoolExecutor(max_workers=13) as pool:
            results = list(pool.map(lambda n: _in_domain(work, n), range(13)))

        outcomes = [result for n, result in enumerate(results) if n % 4 == 0]
        assert sum(1 for outcome in outcomes if outcome.applied) == 1

        stored = PaymentRecorder().store.get(order.id)
        assert stored.agreement_status == "Signed"
        assert stored.delivery_blocked is False
        assert len(stored.payment_transactions) == 10
        assert stored.payment_status == "Paid"
        assert stored.balance_due == 0
        # created, sent, 10 payments, 1 signature
        assert stored.version == 13


class TestFailedCallbackAfterFullPayment:
    def test_order_stays_paid(self, make_order):
        order = make_order()
        recorder = PaymentRecorder()
        recorder.record_payment(order.id, "TXN-1", 17450, "COMPLETED")
        recorder.record_payment(order.id, "TXN-2", 100, "FAILED")

        stored = recorder.store.get(order.id)
        assert stored.payment_status == "Paid"
        assert stored.status == "Paid"
        assert stored.balance_due == 0
        assert len(stored.payment_transactions) == 2
