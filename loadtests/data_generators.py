"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the rentals API's Pydantic
request schemas. Amounts are integer cents.
"""

import hashlib
import hmac
import json
import os
import random
import uuid
from datetime import UTC, date, datetime, timedelta

from faker import Faker

fake = Faker()

RENTAL_ITEMS = [
    ("Castle Bounce House", 7500),
    ("Water Slide", 12500),
    ("Cotton Candy Machine", 4500),
    ("Folding Table", 1200),
    ("Party Tent 20x20", 22000),
    ("Obstacle Course", 18000),
]

PAYMENT_METHODS = ["paypal", "paypal", "cash", "check"]


# ---------- Orders ----------


def event_date() -> date:
    """Pick an event date one to eight weeks out."""
    return date.today() + timedelta(days=random.randint(7, 56))


def line_items() -> list[dict]:
    """Generate one to three rental line items."""
    picks = random.sample(RENTAL_ITEMS, k=random.randint(1, 3))
    return [
        {"kind": "rental", "name": name, "quantity": random.randint(1, 3), "unit_price": price}
        for name, price in picks
    ]


def customer_data() -> dict:
    """Generate a CustomerSchema payload."""
    return {
        "contact_id": f"contact-{uuid.uuid4().hex[:8]}",
        "customer_name": fake.name()[:100],
        "customer_email": f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}",
        "customer_phone": fake.numerify("512-###-####"),
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state_abbr(),
        "postal_code": fake.zipcode(),
    }


def order_data(payment_method: str | None = None) -> dict:
    """Generate a CreateOrderRequest payload."""
    when = event_date()
    return {
        "items": line_items(),
        "payment_method": payment_method or random.choice(PAYMENT_METHODS),
        "customer": customer_data(),
        "fees": {
            "delivery_fee": random.choice([0, 1500, 2000, 3500]),
            "tax_amount": random.choice([0, 0, 825]),
        },
        "notes": fake.sentence(nb_words=8) if random.random() < 0.3 else None,
        "event_date": when.isoformat(),
        "delivery_date": when.isoformat(),
    }


def order_patch() -> dict:
    """Generate an UpdateOrderRequest payload touching notes and fees."""
    return {
        "notes": fake.sentence(nb_words=6),
        "delivery_fee": random.choice([1500, 2000, 2500]),
    }


# ---------- Payments ----------


def transaction_id() -> str:
    """Generate gateway-style capture ids like 'LT-5F3A9C2B1D'."""
    return f"LT-{uuid.uuid4().hex[:10].upper()}"


def payment_record(amount: int, status: str = "COMPLETED") -> dict:
    """Generate a RecordPaymentRequest payload in the gateway's field names."""
    return {"transactionId": transaction_id(), "amount": amount, "status": status, "currency": "USD"}


# ---------- Signature webhooks ----------


def webhook_secret() -> str:
    return os.environ.get("SIGNATURE_WEBHOOK_SECRET", "loadtest-webhook-secret")


def signed_webhook(submission_id: str, event: str = "completed", secret: str | None = None) -> tuple[bytes, dict]:
    """Build a signed signature-provider webhook body and its headers.

    Returns the raw body so the request sends exactly the bytes that
    were signed.
    """
    payload = {
        "event_type": f"submission.{event}",
        "timestamp": datetime.now(UTC).isoformat(),
        "data": {"submission": {"id": submission_id}},
    }
    if event == "completed":
        payload["data"]["submission"]["documents"] = [{"url": f"https://docs.example.com/{submission_id}.pdf"}]
    body = json.dumps(payload).encode("utf-8")
    digest = hmac.new((secret or webhook_secret()).encode("utf-8"), body, hashlib.sha256).hexdigest()
    return body, {"Content-Type": "application/json", "X-Signature": digest}
