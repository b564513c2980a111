"""Fake notifier: renders and records messages for testing."""

from uuid import uuid4

from rentals.notifier.port import Notifier
from rentals.notifier.templates import get_template


class FakeNotifier(Notifier):
    """Notifier that keeps rendered messages in memory for test assertions."""

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Delivery failed"):
        """Configure the fake notifier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, template: str, recipient: str, payload: dict, channel: str = "email") -> dict:
        rendered = get_template(template).render(payload)
        if not self.should_succeed:
            return {
                "message_id": None,
                "status": "failed",
                "error": self.failure_reason,
            }

        message_id = f"msg-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "message_id": message_id,
                "template": template,
                "recipient": recipient,
                "channel": channel,
                "payload": dict(payload),
                "subject": rendered.get("subject"),
                "body": rendered["body"],
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def messages_for(self, template: str) -> list[dict]:
        return [message for message in self.sent if message["template"] == template]

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Delivery failed"
