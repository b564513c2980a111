"""Notifier adapter registry and dispatch helpers.

Uses FakeNotifier by default. Configure via the NOTIFIER_ADAPTER
environment variable.
"""

import os

import structlog

from rentals.config import get_settings

logger = structlog.get_logger(__name__)

_notifier_instance = None


def get_notifier():
    """Return the configured notifier adapter (singleton)."""
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from rentals.notifier.fake_adapter import FakeNotifier

            _notifier_instance = FakeNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def set_notifier(notifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _notifier_instance
    _notifier_instance = notifier


def reset_notifier() -> None:
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None


def notify_customer(template: str, recipient: str | None, payload: dict, channel: str = "email") -> dict | None:
    """Send a customer-facing message. Orders without an address are skipped."""
    if not recipient:
        logger.info("No customer address for notification, skipping", template=template, **_ids(payload))
        return None
    return _dispatch(template, recipient, payload, channel)


def notify_operations(template: str, payload: dict) -> dict:
    """Send an internal alert to the operations mailbox."""
    return _dispatch(template, get_settings().operations_email, payload, "email")


def _dispatch(template: str, recipient: str, payload: dict, channel: str) -> dict:
    try:
        result = get_notifier().send(template, recipient, payload, channel=channel)
    except Exception as e:
        # Runs inside the commit of an already persisted write; never propagate
        logger.error(
            "Notification dispatch failed",
            template=template,
            channel=channel,
            error=str(e),
            exc_info=True,
            **_ids(payload),
        )
        return {"message_id": None, "status": "failed", "error": str(e)}

    if result.get("status") == "sent":
        logger.info("Notification sent", template=template, channel=channel, message_id=result.get("message_id"))
    else:
        logger.warning(
            "Notification delivery failed",
            template=template,
            channel=channel,
            error=result.get("error"),
            **_ids(payload),
        )
    return result


def _ids(payload: dict) -> dict:
    return {key: payload[key] for key in ("order_id", "order_number") if key in payload}
