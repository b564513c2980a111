"""Agreement transition rules shared by webhooks and status polling.

Both paths turn a provider fact into one of three event kinds and apply it
through the OrderStore, so a webhook and a poll racing on the same order
end in the same state.
"""

import structlog

from rentals.notifier import notify_operations
from rentals.order.order import AgreementEventKind

logger = structlog.get_logger(__name__)

# Provider submission statuses; None means "nothing to apply"
PROVIDER_STATUS_EVENTS = {
    "pending": None,
    "sent": None,
    "opened": AgreementEventKind.VIEWED,
    "viewed": AgreementEventKind.VIEWED,
    "completed": AgreementEventKind.COMPLETED,
    "declined": AgreementEventKind.DECLINED,
    "expired": None,
}


def event_for_provider_status(status: str | None):
    """Map a provider status to an event kind. Unknown statuses map to None."""
    normalized = (status or "").strip().lower()
    if normalized not in PROVIDER_STATUS_EVENTS:
        logger.warning("Unknown signature provider status", provider_status=status)
        return None
    if normalized == "expired":
        logger.info("Signature request expired at the provider", provider_status=status)
    return PROVIDER_STATUS_EVENTS[normalized]


def apply_agreement_event(store, order_id: str, kind, occurred_at=None, document_url=None):
    """Apply one agreement event with version-checked retries.

    Returns ``(order, change)``. A decline arriving after the agreement was
    signed is not applied; it is logged and raised to operations instead.
    """
    mutation = store.mutate(
        order_id,
        lambda order: order.apply_agreement_event(kind, occurred_at=occurred_at, document_url=document_url),
        write_if=lambda change: change.applied,
    )
    order, change = mutation.order, mutation.result

    if change.anomaly:
        logger.error(
            "Agreement event after signature ignored",
            order_id=str(order.id),
            order_number=order.order_number,
            agreement_event=getattr(kind, "value", kind),
            status=change.status,
        )
        notify_operations(
            "agreement_anomaly_alert",
            {
                "order_id": str(order.id),
                "order_number": order.order_number,
                "event": getattr(kind, "value", kind),
                "status": change.status,
            },
        )
    elif change.applied:
        logger.info(
            "Agreement event applied",
            order_id=str(order.id),
            agreement_event=getattr(kind, "value", kind),
            previous_status=change.previous_status,
            status=change.status,
            attempts=mutation.attempts,
        )
    return order, change
