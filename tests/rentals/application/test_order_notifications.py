"""Application tests for notifications sent from order events."""

import pytest
from rentals.agreement.coordinator import AgreementCoordinator
from rentals.notifier import notify_customer, notify_operations, set_notifier
from rentals.notifier.fake_adapter import FakeNotifier
from rentals.notifier.templates import TEMPLATE_REGISTRY, get_template
from rentals.order.management import OrderManager
from rentals.payment.recorder import PaymentRecorder


class TestOrderEventNotifications:
    def test_order_created_sends_confirmation(self, make_order, notifier):
        order = make_order()

        messages = notifier.messages_for("order_created")
        assert len(messages) == 1
        assert messages[0]["recipient"] == "jane@example.com"
        assert messages[0]["payload"]["order_number"] == order.order_number
        assert "174.50 USD" in messages[0]["body"]

    def test_order_update_notifies_customer(self, make_order, notifier):
        order = make_order()
        OrderManager().update_order(order.id, {"status": "Processing"})

        messages = notifier.messages_for("order_updated")
        assert len(messages) == 1
        assert messages[0]["payload"]["status"] == "Processing"

    def test_noop_update_sends_nothing(self, make_order, notifier):
        order = make_order(notes="Same")
        OrderManager().update_order(order.id, {"notes": "Same"})
        assert notifier.messages_for("order_updated") == []

    def test_customer_without_email_is_skipped(self, make_order, notifier):
        make_order(customer={"contact_id": "contact-1"})
        assert notifier.messages_for("order_created") == []

    def test_delivery_failure_does_not_fail_the_write(self, make_order, notifier):
        notifier.configure(should_succeed=False)
        order = make_order()
        assert OrderManager().get_order(order.id).version == 1
        assert notifier.sent == []


class TestDispatchHelpers:
    def test_operations_mailbox(self, notifier):
        result = notify_operations("payment_received", {"order_number": "BB-2026-0001", "amount": 100})
        assert result["status"] == "sent"
        assert notifier.sent[0]["recipient"] == "operations@example.com"

    def test_customer_without_recipient(self, notifier):
        assert notify_customer("order_created", None, {"order_number": "BB-2026-0001"}) is None
        assert notifier.sent == []

    def test_every_template_renders_with_minimal_payload(self):
        for name in TEMPLATE_REGISTRY:
            rendered = get_template(name).render({"order_number": "BB-2026-0001"})
            assert rendered["body"]


class _UnreachableNotifier(FakeNotifier):
    def send(self, template, recipient, payload, channel="email"):
        raise ConnectionError("SMTP server unreachable")


class TestNotifierOutage:
    @pytest.fixture()
    def unreachable(self, notifier):
        notifier = _UnreachableNotifier()
        set_notifier(notifier)
        return notifier

    def test_dispatch_reports_failure(self, unreachable):
        result = notify_operations("payment_received", {"order_number": "BB-2026-0001", "amount": 100})
        assert result["status"] == "failed"
        assert "unreachable" in result["error"]

    def test_order_creation_still_succeeds(self, unreachable, make_order):
        order = make_order()
        assert OrderManager().get_order(order.id).version == 1

    def test_payment_is_recorded(self, make_order, unreachable):
        order = make_order()
        paid = PaymentRecorder().record_payment(order.id, "TXN-1", 17450, "COMPLETED")

        assert paid.payment_status == "Paid"
        stored = OrderManager().get_order(order.id)
        assert stored.version == 2
        assert len(stored.payment_transactions) == 1

    def test_agreement_is_sent_once(self, make_order, signature_provider, unreachable):
        order = make_order()
        sent = AgreementCoordinator().send_agreement(order.id)

        assert sent.agreement_status == "Pending"
        assert OrderManager().get_order(order.id).agreement_status == "Pending"
        assert len(signature_provider.calls) == 1
