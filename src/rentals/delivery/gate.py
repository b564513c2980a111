"""Delivery gate: an order ships only with a signed agreement or an audited override."""

import structlog

from rentals.access import get_access_control
from rentals.access.port import Action
from rentals.exceptions import PermissionDeniedError
from rentals.order.order import AgreementStatus
from rentals.order.store import OrderStore

logger = structlog.get_logger(__name__)


def compute_blocked(agreement_status, override) -> bool:
    """Delivery is blocked unless the agreement is Signed or an override exists."""
    status = getattr(agreement_status, "value", agreement_status)
    return not (status == AgreementStatus.SIGNED.value or override is not None)


class DeliveryGate:
    def __init__(self, store=None, access_control=None) -> None:
        self.store = store or OrderStore()
        self.access_control = access_control or get_access_control()

    def override_delivery_block(self, order_id: str, reason: str, actor_id: str):
        """Release the delivery block for an order.

        Only actors allowed to ``override_delivery_block`` may do this. The
        override is permanent and is recorded with reason, actor and time;
        the agreement status is left as it is.
        """
        if not self.access_control.authorize(actor_id, Action.OVERRIDE_DELIVERY_BLOCK.value, str(order_id)):
            logger.warning("Delivery override denied", order_id=order_id, actor_id=actor_id)
            raise PermissionDeniedError(
                "Not allowed to override the delivery block",
                order_id=order_id,
                actor_id=actor_id,
            )

        mutation = self.store.mutate(
            order_id,
            lambda order: order.override_delivery(reason, actor_id),
        )
        order = mutation.order
        logger.info(
            "Delivery block overridden",
            order_id=order_id,
            order_number=order.order_number,
            actor_id=actor_id,
            agreement_status=order.agreement_status,
        )
        return order
