"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate and dispatched when the
OrderStore persists it. The Notifier handler consumes them.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from rentals.domain import rentals


@rentals.event(part_of="Order")
class OrderCreated:
    """A rental order was created and given its order number."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    subtotal = Integer(required=True)
    total_amount = Integer(required=True)
    balance_due = Integer(required=True)
    payment_method = String()
    customer_name = String()
    customer_email = String()
    created_at = DateTime(required=True)


@rentals.event(part_of="Order")
class OrderUpdated:
    """Patchable fields of an order changed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    changed_fields = Text(required=True)  # JSON: list of field names
    status = String(required=True)
    previous_status = String()
    total_amount = Integer(required=True)
    balance_due = Integer(required=True)
    customer_email = String()
    updated_at = DateTime(required=True)


@rentals.event(part_of="Order")
class PaymentRecorded:
    """A gateway transaction was appended to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    transaction_id = String(required=True)
    amount = Integer(required=True)
    currency = String(default="USD")
    gateway_status = String(required=True)
    successful = Boolean(default=False)
    payment_status = String(required=True)
    balance_due = Integer(required=True)
    customer_name = String()
    customer_email = String()
    recorded_at = DateTime(required=True)


@rentals.event(part_of="Order")
class AgreementSent:
    """A signature request was created with the provider."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    submission_id = String(required=True)
    signing_url = String()
    customer_name = String()
    customer_email = String()
    sent_at = DateTime(required=True)


@rentals.event(part_of="Order")
class AgreementViewed:
    __version__ = 1

    order_id = Identifier(required=True)
    submission_id = String(required=True)
    viewed_at = DateTime(required=True)


@rentals.event(part_of="Order")
class AgreementSigned:
    """The customer completed the rental agreement."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    submission_id = String(required=True)
    signed_document_url = String()
    customer_name = String()
    customer_email = String()
    signed_at = DateTime(required=True)


@rentals.event(part_of="Order")
class AgreementDeclined:
    """The customer declined the rental agreement."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    submission_id = String(required=True)
    customer_name = String()
    declined_at = DateTime(required=True)


@rentals.event(part_of="Order")
class DeliveryBlockOverridden:
    """Delivery was released without a signed agreement."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = Text(required=True)
    overridden_by = Identifier(required=True)
    agreement_status = String(required=True)
    overridden_at = DateTime(required=True)
