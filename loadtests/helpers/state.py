"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state and shares nothing
with other users. State tracks ids and versions returned by the API so
follow-up operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Tracks state for a single rental order lifecycle."""

    order_id: str | None = None
    order_number: str | None = None
    version: str | None = None
    stale_version: str | None = None
    balance_due: int = 0
    submission_id: str | None = None
    agreement_status: str = "NotSent"
    transaction_ids: list[str] = field(default_factory=list)

    def absorb(self, response) -> None:
        """Refresh ids, the ETag and derived amounts from an order response."""
        body = response.json()
        self.order_id = body["id"]
        self.order_number = body["order_number"]
        self.balance_due = body["balance_due"]
        self.submission_id = body.get("agreement_submission_id")
        self.agreement_status = body["agreement_status"]
        self.version = response.headers.get("ETag", self.version)
