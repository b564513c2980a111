"""Order event handler: forwards order, agreement and payment facts to the Notifier.

Runs when the OrderStore commits an Order, so messages only go out for
writes that actually persisted.
"""

import structlog
from protean.utils.mixins import handle

from rentals.domain import rentals
from rentals.notifier import notify_customer, notify_operations
from rentals.order.events import (
    AgreementDeclined,
    AgreementSent,
    AgreementSigned,
    OrderCreated,
    OrderUpdated,
    PaymentRecorded,
)
from rentals.order.order import Order

logger = structlog.get_logger(__name__)


@rentals.event_handler(part_of=Order)
class OrderNotificationsHandler:
    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        notify_customer(
            "order_created",
            event.customer_email,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "customer_name": event.customer_name,
                "total_amount": event.total_amount,
                "balance_due": event.balance_due,
            },
        )

    @handle(OrderUpdated)
    def on_order_updated(self, event: OrderUpdated) -> None:
        notify_customer(
            "order_updated",
            event.customer_email,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "status": event.status,
                "previous_status": event.previous_status,
                "total_amount": event.total_amount,
                "balance_due": event.balance_due,
            },
        )

    @handle(AgreementSent)
    def on_agreement_sent(self, event: AgreementSent) -> None:
        notify_customer(
            "agreement_signing_link",
            event.customer_email,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "customer_name": event.customer_name,
                "submission_id": event.submission_id,
                "signing_url": event.signing_url,
            },
        )

    @handle(AgreementSigned)
    def on_agreement_signed(self, event: AgreementSigned) -> None:
        notify_customer(
            "agreement_signed",
            event.customer_email,
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "customer_name": event.customer_name,
                "signed_document_url": event.signed_document_url,
            },
        )

    @handle(AgreementDeclined)
    def on_agreement_declined(self, event: AgreementDeclined) -> None:
        # Operations follow up with the customer directly
        notify_operations(
            "agreement_declined_alert",
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "customer_name": event.customer_name,
                "submission_id": event.submission_id,
            },
        )

    @handle(PaymentRecorded)
    def on_payment_recorded(self, event: PaymentRecorded) -> None:
        payload = {
            "order_id": str(event.order_id),
            "order_number": event.order_number,
            "customer_name": event.customer_name,
            "transaction_id": event.transaction_id,
            "amount": event.amount,
            "currency": event.currency,
            "gateway_status": event.gateway_status,
            "payment_status": event.payment_status,
            "balance_due": event.balance_due,
        }
        if event.successful:
            notify_customer("payment_confirmation", event.customer_email, payload)
        else:
            logger.info(
                "Unsuccessful payment recorded, no customer confirmation",
                order_id=str(event.order_id),
                gateway_status=event.gateway_status,
            )
        notify_operations("payment_received", payload)
