"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. References look like the
real gateway's (``PAY-...``) so API clients can be exercised end to end.
"""

from uuid import uuid4

from rentals.gateway.port import PaymentGateway, PaymentIntentResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment_intent(
        self,
        order_id: str,
        order_number: str,
        amount: int,
        currency: str,
    ) -> PaymentIntentResult:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "order_id": order_id,
                "order_number": order_number,
                "amount": amount,
                "currency": currency,
            }
        )

        if self.should_succeed:
            reference = f"PAY-{uuid4().hex[:16].upper()}"
            return PaymentIntentResult(
                success=True,
                reference=reference,
                gateway_status="CREATED",
                approval_url=f"https://gateway.example.com/checkout/{reference}",
            )
        return PaymentIntentResult(
            success=False,
            gateway_status="FAILED",
            failure_reason=self.failure_reason,
        )
