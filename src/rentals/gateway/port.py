"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement,
so FakeGateway (dev/test) and PayPalGateway (production) are
interchangeable without changing any domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentIntentResult:
    """Result of asking the gateway to prepare a payment."""

    success: bool
    reference: str | None = None
    gateway_status: str | None = None
    approval_url: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(
        self,
        order_id: str,
        order_number: str,
        amount: int,
        currency: str,
    ) -> PaymentIntentResult:
        """Prepare a payment of ``amount`` cents for an order."""
        ...
