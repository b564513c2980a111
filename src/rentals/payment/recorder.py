"""PaymentRecorder: start payments with the gateway and record their results.

Recording is idempotent on the gateway transaction id: replaying a
transaction returns the order unchanged and writes nothing.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from rentals.exceptions import ExternalServiceError
from rentals.gateway import get_gateway
from rentals.order.order import Order
from rentals.order.store import OrderStore
from rentals.shared.money import validate_amount, validate_currency

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    reference: str
    amount: int
    currency: str
    order_number: str
    approval_url: str | None = None


class PaymentRecorder:
    def __init__(self, store: OrderStore | None = None, gateway=None) -> None:
        self.store = store or OrderStore()
        self._gateway = gateway

    @property
    def gateway(self):
        return self._gateway or get_gateway()

    def initiate_payment(self, order_id: str, amount: int, currency: str = "USD") -> PaymentIntent:
        """Ask the gateway to prepare a payment; the order itself is not modified.

        ``amount`` must be positive and equal the order total, the deposit
        or the current balance due.
        """
        validate_amount(amount)
        currency = validate_currency(currency)
        order = self.store.get(order_id)
        if order.balance_due == 0:
            raise ValidationError({"amount": ["Order has no balance due"]})

        allowed = {order.total_amount, order.deposit_amount, order.balance_due} - {0}
        if amount <= 0 or amount not in allowed:
            raise ValidationError(
                {"amount": ["Amount must match the order total, deposit or balance due"]},
            )

        result = self.gateway.create_payment_intent(
            order_id=str(order.id),
            order_number=order.order_number,
            amount=amount,
            currency=currency,
        )
        if not result.success:
            logger.error(
                "Payment gateway rejected payment intent",
                order_id=order_id,
                amount=amount,
                reason=result.failure_reason,
            )
            raise ExternalServiceError(
                result.failure_reason or "Payment gateway rejected the request",
                order_id=order_id,
            )

        logger.info("Payment initiated", order_id=order_id, reference=result.reference, amount=amount)
        return PaymentIntent(
            reference=result.reference,
            amount=amount,
            currency=currency,
            order_number=order.order_number,
            approval_url=result.approval_url,
        )

    def record_payment(
        self,
        order_id: str,
        transaction_id: str,
        amount: int,
        gateway_status: str,
        expected_version: int | None = None,
        currency: str = "USD",
    ) -> Order:
        """Append a gateway transaction and advance the payment status.

        A replayed transaction id returns the current order before any
        version check. Otherwise a stale ``expected_version`` is rejected up
        front and later conflicting writers are retried like any internal
        write.
        """
        if not transaction_id or not str(transaction_id).strip():
            raise ValidationError({"transaction_id": ["Transaction id is required"]})
        if not gateway_status or not str(gateway_status).strip():
            raise ValidationError({"status": ["Gateway status is required"]})
        validate_amount(amount)
        currency = validate_currency(currency)
        transaction_id = str(transaction_id).strip()

        current = self.store.get(order_id)
        if current.find_transaction(transaction_id) is not None:
            logger.info("Duplicate payment transaction ignored", order_id=order_id, transaction_id=transaction_id)
            return current

        mutation = self.store.mutate(
            order_id,
            lambda order: order.record_payment(transaction_id, amount, gateway_status.strip(), currency=currency),
            expected_version=expected_version,
            strict=False,
            write_if=bool,
        )
        order = mutation.order
        if mutation.written:
            logger.info(
                "Payment recorded",
                order_id=order_id,
                transaction_id=transaction_id,
                amount=amount,
                payment_status=order.payment_status,
                balance_due=order.balance_due,
            )
        else:
            logger.info("Duplicate payment transaction ignored", order_id=order_id, transaction_id=transaction_id)
        return order
