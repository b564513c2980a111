"""Application tests for signature provider webhooks."""

import json

import pytest
from protean.exceptions import ValidationError
from rentals.agreement.coordinator import AgreementCoordinator
from rentals.agreement.webhook import WebhookProcessor, compute_signature
from rentals.exceptions import NotFoundError, SignatureVerificationError
from rentals.order.management import OrderManager
from rentals.order.order import AgreementStatus


def _payload(event, submission_id, **extra):
    body = {"event": f"submission.{event}", "submission_id": submission_id}
    body.update(extra)
    return json.dumps(body).encode()


@pytest.fixture()
def sent_order(make_order, signature_provider):
    order = make_order()
    return AgreementCoordinator().send_agreement(order.id)


@pytest.fixture()
def deliver(webhook_secret):
    processor = WebhookProcessor()

    def _deliver(event, submission_id, **extra):
        raw = _payload(event, submission_id, **extra)
        return processor.handle_event(raw, compute_signature(raw, webhook_secret))

    return _deliver


class TestWebhookVerification:
    def test_bad_signature_rejected(self, sent_order, webhook_secret):
        raw = _payload("completed", sent_order.agreement_submission_id)
        with pytest.raises(SignatureVerificationError):
            WebhookProcessor().handle_event(raw, "deadbeef")

        stored = OrderManager().get_order(sent_order.id)
        assert stored.agreement_status == AgreementStatus.PENDING.value

    def test_no_secret_configured_rejects_everything(self, sent_order):
        raw = _payload("completed", sent_order.agreement_submission_id)
        processor = WebhookProcessor(secret="")
        with pytest.raises(SignatureVerificationError):
            processor.handle_event(raw, compute_signature(raw, ""))

    def test_malformed_payload(self, webhook_secret):
        raw = b"{not json"
        with pytest.raises(ValidationError):
            WebhookProcessor().handle_event(raw, compute_signature(raw, webhook_secret))

    def test_unknown_submission(self, deliver):
        with pytest.raises(NotFoundError):
            deliver("completed", "sub_unknown")


class TestWebhookTransitions:
    def test_viewed_then_completed(self, sent_order, deliver):
        submission_id = sent_order.agreement_submission_id

        viewed = deliver("viewed", submission_id)
        completed = deliver("completed", submission_id, document_url="https://docs.example.com/s.pdf")

        assert viewed.status == AgreementStatus.VIEWED.value
        assert completed.applied is True
        assert completed.previous_status == AgreementStatus.VIEWED.value
        stored = OrderManager().get_order(sent_order.id)
        assert stored.agreement_status == AgreementStatus.SIGNED.value
        assert stored.delivery_blocked is False
        assert stored.signed_document_url == "https://docs.example.com/s.pdf"

    def test_duplicate_delivery_is_idempotent(self, sent_order, deliver):
        submission_id = sent_order.agreement_submission_id
        deliver("completed", submission_id)
        version = OrderManager().get_order(sent_order.id).version

        again = deliver("completed", submission_id)

        assert again.applied is False
        assert OrderManager().get_order(sent_order.id).version == version

    def test_late_decline_keeps_signature_and_alerts_operations(self, sent_order, deliver, notifier):
        submission_id = sent_order.agreement_submission_id
        deliver("completed", submission_id)

        outcome = deliver("declined", submission_id)

        assert outcome.applied is False
        assert outcome.anomaly is True
        stored = OrderManager().get_order(sent_order.id)
        assert stored.agreement_status == AgreementStatus.SIGNED.value
        assert stored.delivery_blocked is False
        alerts = notifier.messages_for("agreement_anomaly_alert")
        assert len(alerts) == 1
        assert alerts[0]["payload"]["order_number"] == stored.order_number

    def test_decline_alerts_operations(self, sent_order, deliver, notifier):
        deliver("declined", sent_order.agreement_submission_id)

        stored = OrderManager().get_order(sent_order.id)
        assert stored.agreement_status == AgreementStatus.DECLINED.value
        assert len(notifier.messages_for("agreement_declined_alert")) == 1

    def test_signed_customer_is_notified(self, sent_order, deliver, notifier):
        deliver("completed", sent_order.agreement_submission_id)
        messages = notifier.messages_for("agreement_signed")
        assert [m["recipient"] for m in messages] == ["jane@example.com"]

    def test_nested_payload_shape(self, sent_order, webhook_secret):
        raw = json.dumps(
            {
                "event_type": "submission.completed",
                "timestamp": "2026-06-01T10:00:00Z",
                "data": {"submission": {"id": sent_order.agreement_submission_id}},
            }
        ).encode()
        outcome = WebhookProcessor().handle_event(raw, "sha256=" + compute_signature(raw, webhook_secret))
        assert outcome.status == AgreementStatus.SIGNED.value
