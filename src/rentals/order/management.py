"""OrderManager: create, update and delete rental orders.

Calls are synchronous service methods rather than Protean commands: each
write goes through the OrderStore's version-checked save, which must not be
deferred by an enclosing unit of work.
"""

import structlog

from rentals.config import get_settings
from rentals.exceptions import ConflictError
from rentals.order.numbering import next_order_number
from rentals.order.order import Order
from rentals.order.store import OrderStore

logger = structlog.get_logger(__name__)

CUSTOMER_FIELDS = (
    "contact_id",
    "customer_name",
    "customer_email",
    "customer_phone",
    "street",
    "city",
    "state",
    "postal_code",
)


class OrderManager:
    def __init__(self, store: OrderStore | None = None, settings=None) -> None:
        self.store = store or OrderStore()
        self.settings = settings or get_settings()

    def create_order(
        self,
        items,
        payment_method=None,
        customer=None,
        fees=None,
        notes=None,
        event_date=None,
        delivery_date=None,
    ) -> Order:
        """Create a Pending order and allocate its order number.

        ``fees`` may carry tax_amount, discount_amount, delivery_fee,
        processing_fee and deposit_amount in cents. Missing delivery and
        deposit amounts fall back to configuration; a missing processing
        fee is the configured percentage of the subtotal.
        """
        fees = dict(fees or {})
        customer = {key: value for key, value in (customer or {}).items() if key in CUSTOMER_FIELDS}

        order = Order.create(
            order_number=next_order_number,
            items=items,
            payment_method=payment_method,
            customer=customer,
            notes=notes,
            event_date=event_date,
            delivery_date=delivery_date,
            **self._fee_arguments(fees),
        )
        self.store.add(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.total_amount,
        )
        return order

    def update_order(self, order_id: str, patch: dict, expected_version: int | None = None) -> Order:
        """Apply ``patch`` if ``expected_version`` is current.

        Without an ``expected_version`` the update is retried on conflicts
        like any other internal write.
        """
        mutation = self.store.mutate(
            order_id,
            lambda order: order.revise(patch, processing_fee_rate=self.settings.processing_fee_rate),
            expected_version=expected_version,
            strict=True,
            write_if=bool,
        )
        if mutation.written:
            logger.info(
                "Order updated",
                order_id=order_id,
                changed_fields=mutation.result,
                version=mutation.order.version,
            )
        return mutation.order

    def delete_order(self, order_id: str, expected_version: int | None = None) -> None:
        order = self.store.get(order_id)
        if expected_version is not None and order.version != expected_version:
            raise ConflictError(
                f"Order {order_id} is at version {order.version}, expected {expected_version}",
                order_id=order_id,
            )
        order.assert_deletable()
        self.store.delete(order, order.version)
        logger.info("Order deleted", order_id=order_id, order_number=order.order_number, status=order.status)

    def get_order(self, order_id: str) -> Order:
        return self.store.get(order_id)

    def get_by_order_number(self, order_number: str) -> Order:
        return self.store.get_by_order_number(order_number)

    def _fee_arguments(self, fees: dict) -> dict:
        delivery_fee = fees.get("delivery_fee")
        deposit_amount = fees.get("deposit_amount")
        return {
            "tax_amount": fees.get("tax_amount") or 0,
            "discount_amount": fees.get("discount_amount") or 0,
            "delivery_fee": self.settings.delivery_fee if delivery_fee is None else delivery_fee,
            "processing_fee": fees.get("processing_fee"),
            "deposit_amount": self.settings.deposit_amount if deposit_amount is None else deposit_amount,
            "processing_fee_rate": self.settings.processing_fee_rate,
        }
