"""AgreementCoordinator: send rental agreements and keep their status in sync.

The provider is always called before the order is touched, so an
unreachable provider leaves the order exactly as it was.
"""

import threading
from dataclasses import dataclass
from datetime import datetime

import structlog

from rentals.agreement.transitions import apply_agreement_event, event_for_provider_status
from rentals.order.order import Order
from rentals.order.store import OrderStore
from rentals.shared.money import format_cents
from rentals.signature import get_signature_provider
from rentals.signature.port import SubmissionRequest

logger = structlog.get_logger(__name__)

COMPANY_NAME = "Bounce House Rentals"


@dataclass(frozen=True)
class AgreementSummary:
    order_id: str
    order_number: str
    agreement_status: str
    submission_id: str | None
    sent_at: datetime | None
    viewed_at: datetime | None
    signed_at: datetime | None
    signed_document_url: str | None
    delivery_blocked: bool


@dataclass(frozen=True)
class SyncReport:
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    stopped: bool = False


def agreement_fields(order: Order) -> dict:
    """Values merged into the provider's agreement template."""
    currency = "USD"
    items = "\n".join(
        f"{item.name} (Qty: {item.quantity}) - {format_cents(item.line_total, currency)}"
        for item in order.sorted_items()
    )
    address = ", ".join(part for part in (order.street, order.city, order.state, order.postal_code) if part)
    return {
        "customer_name": order.customer_name or "",
        "customer_email": order.customer_email or "",
        "customer_phone": order.customer_phone or "",
        "customer_address": address,
        "order_number": order.order_number,
        "event_date": order.event_date.isoformat() if order.event_date else "",
        "delivery_date": order.delivery_date.isoformat() if order.delivery_date else "",
        "rental_items": items,
        "subtotal": format_cents(order.subtotal, currency),
        "tax_amount": format_cents(order.tax_amount, currency),
        "delivery_fee": format_cents(order.delivery_fee, currency),
        "processing_fee": format_cents(order.processing_fee, currency),
        "discount_amount": format_cents(order.discount_amount, currency),
        "total_amount": format_cents(order.total_amount, currency),
        "deposit_amount": format_cents(order.deposit_amount, currency),
        "balance_due": format_cents(order.balance_due, currency),
        "payment_method": order.payment_method,
        "notes": order.notes or "",
        "company_name": COMPANY_NAME,
    }


class AgreementCoordinator:
    def __init__(self, store: OrderStore | None = None, provider=None) -> None:
        self.store = store or OrderStore()
        self._provider = provider
        self._stop_requested = threading.Event()

    @property
    def provider(self):
        return self._provider or get_signature_provider()

    def send_agreement(self, order_id: str) -> Order:
        """Create a signature request and mark the agreement Pending.

        Allowed from NotSent or Declined only; Cancelled and Refunded orders
        and orders without a customer email are rejected.
        """
        order = self.store.get(order_id)
        order.assert_can_send_agreement()

        submission = self.provider.create_submission(
            SubmissionRequest(
                order_id=str(order.id),
                order_number=order.order_number,
                signer_name=order.customer_name or "Customer",
                signer_email=order.customer_email,
                fields=agreement_fields(order),
            )
        )

        mutation = self.store.mutate(
            order_id,
            lambda current: current.mark_agreement_sent(submission.submission_id, submission.signing_url),
        )
        logger.info(
            "Agreement sent",
            order_id=order_id,
            order_number=mutation.order.order_number,
            submission_id=mutation.order.agreement_submission_id,
        )
        return mutation.order

    def agreement_status(self, order_id: str) -> AgreementSummary:
        order = self.store.get(order_id)
        return AgreementSummary(
            order_id=str(order.id),
            order_number=order.order_number,
            agreement_status=order.agreement_status,
            submission_id=order.agreement_submission_id,
            sent_at=order.agreement_sent_at,
            viewed_at=order.agreement_viewed_at,
            signed_at=order.agreement_signed_at,
            signed_document_url=order.signed_document_url,
            delivery_blocked=order.delivery_blocked,
        )

    def sync_status(self, order_id: str) -> bool:
        """Poll the provider and apply what it reports. Returns True if the order changed."""
        order = self.store.get(order_id)
        if not order.agreement_submission_id:
            return False

        submission = self.provider.get_submission(order.agreement_submission_id)
        kind = event_for_provider_status(submission.status)
        if kind is None:
            return False

        _, change = apply_agreement_event(
            self.store,
            order_id,
            kind,
            document_url=submission.document_url,
        )
        return change.applied

    def sync_all(self) -> SyncReport:
        """Poll every order with an open submission.

        A failure on one order is counted and logged; the run carries on.
        After ``stop()`` no further orders are polled in this run.
        """
        self._stop_requested.clear()
        updated = unchanged = failed = 0
        stopped = False

        for order in self.store.awaiting_signature():
            if self._stop_requested.is_set():
                stopped = True
                break
            try:
                if self.sync_status(str(order.id)):
                    updated += 1
                else:
                    unchanged += 1
            except Exception:
                failed += 1
                logger.exception("Agreement sync failed", order_id=str(order.id), order_number=order.order_number)

        report = SyncReport(updated=updated, unchanged=unchanged, failed=failed, stopped=stopped)
        logger.info(
            "Agreement sync finished",
            updated=report.updated,
            unchanged=report.unchanged,
            failed=report.failed,
            stopped=report.stopped,
        )
        return report

    def stop(self) -> None:
        """Ask a running ``sync_all`` to stop before its next poll."""
        self._stop_requested.set()
