"""Signature provider webhooks: verify, parse and apply idempotently.

Payloads are authenticated with an HMAC-SHA256 hex digest of the raw body.
Two shapes are accepted:

    {"event": "submission.completed", "submission_id": "...", "timestamp": "..."}

    {"event_type": "submission.completed", "timestamp": "...",
     "data": {"submission": {"id": "...", "documents": [{"url": "..."}]}}}
"""

import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

from rentals.agreement.transitions import apply_agreement_event
from rentals.config import get_settings
from rentals.exceptions import NotFoundError, SignatureVerificationError
from rentals.order.order import AgreementEventKind
from rentals.order.store import OrderStore

logger = structlog.get_logger(__name__)

_EVENT_PREFIX = "submission."


@dataclass(frozen=True)
class WebhookEvent:
    kind: AgreementEventKind
    submission_id: str
    occurred_at: datetime
    document_url: str | None = None


@dataclass(frozen=True)
class WebhookOutcome:
    order_id: str
    applied: bool
    previous_status: str
    status: str
    anomaly: bool = False


def compute_signature(raw_payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_payload, hashlib.sha256).hexdigest()


def verify_signature(raw_payload: bytes, signature_header: str | None, secret: str | None) -> bool:
    """Constant-time check of the hex digest. Without a secret nothing verifies."""
    if not secret or not signature_header:
        return False
    provided = signature_header.strip().lower()
    if provided.startswith("sha256="):
        provided = provided[len("sha256=") :]
    return hmac.compare_digest(compute_signature(raw_payload, secret), provided)


def parse_event(raw_payload: bytes) -> WebhookEvent:
    """Turn a raw webhook body into a WebhookEvent or raise ValidationError."""
    try:
        data = json.loads(raw_payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError({"payload": ["Malformed JSON"]}) from exc
    if not isinstance(data, dict):
        raise ValidationError({"payload": ["Expected a JSON object"]})

    document_url = None
    if "event_type" in data:
        event_name = data.get("event_type")
        submission = (data.get("data") or {}).get("submission") or {}
        submission_id = submission.get("id")
        documents = submission.get("documents") or []
        if documents and isinstance(documents[0], dict):
            document_url = documents[0].get("url")
        timestamp = data.get("timestamp") or submission.get("completed_at") or submission.get("updated_at")
    else:
        event_name = data.get("event")
        submission_id = data.get("submission_id")
        document_url = data.get("document_url")
        timestamp = data.get("timestamp")

    if not isinstance(event_name, str):
        raise ValidationError({"event": ["Event kind is required"]})
    name = event_name[len(_EVENT_PREFIX) :] if event_name.startswith(_EVENT_PREFIX) else event_name
    try:
        kind = AgreementEventKind(name)
    except ValueError:
        raise ValidationError({"event": [f"Unknown event kind: {event_name}"]}) from None

    if submission_id is None or str(submission_id).strip() == "":
        raise ValidationError({"submission_id": ["Submission id is required"]})

    return WebhookEvent(
        kind=kind,
        submission_id=str(submission_id),
        occurred_at=_parse_timestamp(timestamp),
        document_url=document_url,
    )


def _parse_timestamp(value) -> datetime:
    if value is None:
        return datetime.now(UTC)
    if isinstance(value, bool):
        raise ValidationError({"timestamp": ["Invalid timestamp"]})
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError({"timestamp": [f"Invalid timestamp: {value}"]}) from None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise ValidationError({"timestamp": ["Invalid timestamp"]})


class WebhookProcessor:
    def __init__(self, store: OrderStore | None = None, secret: str | None = None) -> None:
        self.store = store or OrderStore()
        self._secret = secret

    @property
    def secret(self) -> str:
        return self._secret if self._secret is not None else get_settings().webhook_secret

    def handle_event(self, raw_payload: bytes, signature_header: str | None) -> WebhookOutcome:
        """Verify and apply one provider event.

        Raises SignatureVerificationError, ValidationError for malformed
        payloads, NotFoundError for unknown submissions and ConflictError
        when the order keeps changing underneath the write.
        """
        if not verify_signature(raw_payload, signature_header, self.secret):
            logger.error("Webhook signature verification failed", payload_size=len(raw_payload))
            raise SignatureVerificationError("Invalid webhook signature")

        event = parse_event(raw_payload)
        order = self.store.find_by_submission_id(event.submission_id)
        if order is None:
            logger.warning(
                "Webhook for unknown submission",
                submission_id=event.submission_id,
                agreement_event=event.kind.value,
            )
            raise NotFoundError(
                f"No order for submission {event.submission_id}",
                submission_id=event.submission_id,
            )

        order, change = apply_agreement_event(
            self.store,
            str(order.id),
            event.kind,
            occurred_at=event.occurred_at,
            document_url=event.document_url,
        )
        return WebhookOutcome(
            order_id=str(order.id),
            applied=change.applied,
            previous_status=change.previous_status,
            status=change.status,
            anomaly=change.anomaly,
        )
