"""Order aggregate: a rental order from creation through payment, agreement and delivery.

The Order is a standard (non event-sourced) aggregate persisted through the
OrderStore, which owns the optimistic ``version`` token. Business rules live
on the aggregate; the services in ``rentals.order``, ``rentals.agreement``,
``rentals.delivery`` and ``rentals.payment`` load it, call one of the methods
below and hand it back to the store.

Business status machine:
    Pending → Processing → Paid → Confirmed
    Pending/Processing → Paid | Confirmed
    any non-terminal → Cancelled → Refunded
    Paid/Confirmed → Refunded

Agreement status machine:
    NotSent → Pending → Viewed → Signed
    Pending/Viewed → Declined → Pending (re-send)
    Signed is terminal
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from rentals.domain import rentals
from rentals.exceptions import ConflictError, StateTransitionError
from rentals.order.events import (
    AgreementDeclined,
    AgreementSent,
    AgreementSigned,
    AgreementViewed,
    DeliveryBlockOverridden,
    OrderCreated,
    OrderUpdated,
    PaymentRecorded,
)
from rentals.order.pricing import default_processing_fee, is_successful, line_total, price_order


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    PAID = "Paid"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class PaymentStatus(Enum):
    PENDING = "Pending"
    AUTHORIZED = "Authorized"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"
    PARTIALLY_REFUNDED = "PartiallyRefunded"


class PaymentMethod(Enum):
    PAYPAL = "paypal"
    CASH = "cash"
    QUICKBOOKS = "quickbooks"
    FREE = "free"


class AgreementStatus(Enum):
    NOT_SENT = "NotSent"
    PENDING = "Pending"
    VIEWED = "Viewed"
    SIGNED = "Signed"
    DECLINED = "Declined"


class ItemKind(Enum):
    RENTAL = "rental"
    EXTRA = "extra"
    ADD_ON = "add-on"


class AgreementEventKind(Enum):
    VIEWED = "viewed"
    COMPLETED = "completed"
    DECLINED = "declined"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.PAID,
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {OrderStatus.PAID, OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.CONFIRMED, OrderStatus.REFUNDED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.REFUNDED, OrderStatus.CANCELLED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),  # Terminal
}

# Orders in these states hold money and must not disappear
_UNDELETABLE_STATES = {OrderStatus.PAID, OrderStatus.CONFIRMED}

_NO_AGREEMENT_STATES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

_SENDABLE_AGREEMENT_STATES = {AgreementStatus.NOT_SENT, AgreementStatus.DECLINED}

# Fields a client may change through update_order
PATCHABLE_FIELDS = frozenset(
    {
        "items",
        "tax_amount",
        "discount_amount",
        "delivery_fee",
        "processing_fee",
        "deposit_amount",
        "status",
        "notes",
        "contact_id",
        "customer_name",
        "customer_email",
        "customer_phone",
        "street",
        "city",
        "state",
        "postal_code",
        "event_date",
        "delivery_date",
        "payment_method",
    }
)

FINANCIAL_FIELDS = frozenset(
    {"items", "tax_amount", "discount_amount", "delivery_fee", "processing_fee", "deposit_amount"}
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _not_before(value: datetime, *floors: datetime | None) -> datetime:
    """Clamp ``value`` so it is never earlier than any of ``floors``."""
    result = _as_utc(value)
    for floor in floors:
        floor = _as_utc(floor)
        if floor is not None and floor > result:
            result = floor
    return result


@dataclass(frozen=True)
class AgreementChange:
    """What applying a provider event did to an order."""

    previous_status: str
    status: str
    applied: bool
    anomaly: bool = False

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.status


# ---------------------------------------------------------------------------
# Entities and value objects
# ---------------------------------------------------------------------------
@rentals.entity(part_of="Order")
class LineItem:
    kind = String(required=True, choices=ItemKind, default=ItemKind.RENTAL.value)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)  # cents
    line_total = Integer(required=True, min_value=0)  # cents
    position = Integer(required=True, min_value=0)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
        }


@rentals.entity(part_of="Order")
class PaymentTransaction:
    transaction_id = String(required=True, max_length=255)
    amount = Integer(required=True, min_value=0)  # cents
    currency = String(max_length=3, default="USD")
    gateway_status = String(required=True, max_length=50)
    recorded_at = DateTime(required=True)

    @property
    def successful(self) -> bool:
        return is_successful(self.gateway_status)


@rentals.value_object(part_of="Order")
class DeliveryOverride:
    """Audit record of a manual release of the delivery block."""

    reason = Text(required=True)
    by_user_id = Identifier(required=True)
    at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@rentals.aggregate
class Order:
    order_number = String(required=True, unique=True, max_length=20)
    version = Integer(default=1, min_value=1)

    items = HasMany(LineItem)

    # Money (integer cents)
    subtotal = Integer(default=0, min_value=0)
    tax_amount = Integer(default=0, min_value=0)
    discount_amount = Integer(default=0, min_value=0)
    delivery_fee = Integer(default=0, min_value=0)
    processing_fee = Integer(default=0, min_value=0)
    processing_fee_overridden = Boolean(default=False)
    total_amount = Integer(default=0, min_value=0)
    deposit_amount = Integer(default=0, min_value=0)
    balance_due = Integer(default=0, min_value=0)

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.PAYPAL.value)
    payment_transactions = HasMany(PaymentTransaction)

    # Rental agreement
    agreement_status = String(choices=AgreementStatus, default=AgreementStatus.NOT_SENT.value)
    agreement_submission_id = String(max_length=255)
    agreement_sent_at = DateTime()
    agreement_viewed_at = DateTime()
    agreement_signed_at = DateTime()
    signed_document_url = String(max_length=2048)

    # Delivery gate
    delivery_blocked = Boolean(default=True)
    delivery_override = ValueObject(DeliveryOverride)

    # Customer
    contact_id = Identifier()
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    customer_phone = String(max_length=50)
    street = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    event_date = Date()
    delivery_date = Date()
    notes = Text()

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

    @invariant.post
    def order_must_reference_a_customer(self):
        if not self.contact_id and not self.customer_email:
            raise ValidationError({"customer": ["Either contact_id or customer_email is required"]})

    @invariant.post
    def total_must_match_components(self):
        expected = (
            self.subtotal + self.tax_amount + self.delivery_fee + self.processing_fee - self.discount_amount
        )
        if self.total_amount != expected:
            raise ValidationError({"total_amount": [f"Total {self.total_amount} does not match components {expected}"]})

    @invariant.post
    def delivery_block_must_follow_agreement(self):
        from rentals.delivery.gate import compute_blocked

        if self.delivery_blocked != compute_blocked(self.agreement_status, self.delivery_override):
            raise ValidationError({"delivery_blocked": ["Delivery block is inconsistent with agreement state"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        items,
        payment_method=PaymentMethod.PAYPAL.value,
        customer=None,
        tax_amount=0,
        discount_amount=0,
        delivery_fee=0,
        processing_fee=None,
        deposit_amount=0,
        processing_fee_rate=Decimal("0.03"),
        notes=None,
        event_date=None,
        delivery_date=None,
    ):
        """Build a new Pending order with derived totals.

        Args:
            order_number: Allocated ``BB-YYYY-NNNN`` number, or a callable that
                allocates one once the input has been validated.
            items: List of dicts with kind, name, quantity and unit_price (cents).
            customer: Dict of customer reference fields (contact_id,
                customer_name, customer_email, customer_phone, address).
            processing_fee: Explicit fee in cents, or None for the default
                percentage of the subtotal.
        """
        customer = customer or {}
        line_items = _build_line_items(items)
        lines = [(item.quantity, item.unit_price) for item in line_items]
        subtotal = sum(item.line_total for item in line_items)

        overridden = processing_fee is not None
        if not overridden:
            processing_fee = default_processing_fee(subtotal, processing_fee_rate)

        breakdown = price_order(
            lines,
            tax_amount=tax_amount,
            discount_amount=discount_amount,
            delivery_fee=delivery_fee,
            processing_fee=processing_fee,
            deposit_amount=deposit_amount,
        )

        if not customer.get("contact_id") and not customer.get("customer_email"):
            raise ValidationError({"customer": ["Either contact_id or customer_email is required"]})
        if callable(order_number):
            order_number = order_number()

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            version=1,
            items=line_items,
            subtotal=breakdown.subtotal,
            tax_amount=breakdown.tax_amount,
            discount_amount=breakdown.discount_amount,
            delivery_fee=breakdown.delivery_fee,
            processing_fee=breakdown.processing_fee,
            processing_fee_overridden=overridden,
            total_amount=breakdown.total_amount,
            deposit_amount=breakdown.deposit_amount,
            balance_due=breakdown.balance_due,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method or PaymentMethod.PAYPAL.value,
            agreement_status=AgreementStatus.NOT_SENT.value,
            delivery_blocked=True,
            contact_id=customer.get("contact_id"),
            customer_name=customer.get("customer_name"),
            customer_email=customer.get("customer_email"),
            customer_phone=customer.get("customer_phone"),
            street=customer.get("street"),
            city=customer.get("city"),
            state=customer.get("state"),
            postal_code=customer.get("postal_code"),
            event_date=event_date,
            delivery_date=delivery_date,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                items=json.dumps([item.to_dict() for item in order.sorted_items()]),
                subtotal=order.subtotal,
                total_amount=order.total_amount,
                balance_due=order.balance_due,
                payment_method=order.payment_method,
                customer_name=order.customer_name,
                customer_email=order.customer_email,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def sorted_items(self) -> list:
        return sorted(self.items, key=lambda item: item.position)

    def find_transaction(self, transaction_id: str):
        return next(
            (t for t in self.payment_transactions if t.transaction_id == transaction_id),
            None,
        )

    @property
    def paid_amount(self) -> int:
        return sum(t.amount for t in self.payment_transactions if t.successful)

    # -------------------------------------------------------------------
    # Revision (update_order)
    # -------------------------------------------------------------------
    def revise(self, patch: dict, processing_fee_rate=Decimal("0.03")) -> list[str]:
        """Apply a client patch and return the names of fields that changed.

        Derived money fields are recomputed when any financial field or the
        item list changes. Raises ValidationError for fields that may not be
        patched and StateTransitionError for an illegal status move.
        """
        forbidden = sorted(set(patch) - PATCHABLE_FIELDS)
        if forbidden:
            raise ValidationError({name: ["Field cannot be updated"] for name in forbidden})

        previous_status = self.status
        target_status = patch.get("status")
        if target_status is not None and target_status != self.status:
            self._assert_can_transition(_parse_enum(OrderStatus, target_status, "status"))

        changed = []
        with atomic_change(self):
            for name, value in patch.items():
                if name == "items":
                    if self._replace_items(value):
                        changed.append(name)
                elif name == "processing_fee":
                    if self._set_processing_fee(value, processing_fee_rate):
                        changed.append(name)
                elif name == "payment_method":
                    value = _parse_enum(PaymentMethod, value, "payment_method").value
                    if value != self.payment_method:
                        self.payment_method = value
                        changed.append(name)
                elif getattr(self, name) != value:
                    setattr(self, name, value)
                    changed.append(name)

            if FINANCIAL_FIELDS.intersection(changed):
                self._reprice(processing_fee_rate)

            if changed:
                self.updated_at = datetime.now(UTC)

        if changed:
            self.raise_(
                OrderUpdated(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    changed_fields=json.dumps(changed),
                    status=self.status,
                    previous_status=previous_status,
                    total_amount=self.total_amount,
                    balance_due=self.balance_due,
                    customer_email=self.customer_email,
                    updated_at=self.updated_at,
                )
            )
        return changed

    def _replace_items(self, items) -> bool:
        new_items = _build_line_items(items)
        current = [item.to_dict() for item in self.sorted_items()]
        if current == [item.to_dict() for item in new_items]:
            return False
        for item in list(self.items):
            self.remove_items(item)
        self.add_items(new_items)
        return True

    def _set_processing_fee(self, value, processing_fee_rate) -> bool:
        """An explicit fee sticks; ``None`` restores the percentage default."""
        if value is None:
            overridden = False
            value = default_processing_fee(self._items_subtotal(), processing_fee_rate)
        else:
            overridden = True
        changed = value != self.processing_fee or overridden != self.processing_fee_overridden
        self.processing_fee = value
        self.processing_fee_overridden = overridden
        return changed

    def _items_subtotal(self) -> int:
        return sum(item.line_total for item in self.items)

    def _reprice(self, processing_fee_rate=None) -> None:
        if processing_fee_rate is not None and not self.processing_fee_overridden:
            self.processing_fee = default_processing_fee(self._items_subtotal(), processing_fee_rate)

        breakdown = price_order(
            [(item.quantity, item.unit_price) for item in self.items],
            tax_amount=self.tax_amount,
            discount_amount=self.discount_amount,
            delivery_fee=self.delivery_fee,
            processing_fee=self.processing_fee,
            deposit_amount=self.deposit_amount,
            transactions=[(t.amount, t.gateway_status) for t in self.payment_transactions],
        )
        self.subtotal = breakdown.subtotal
        self.total_amount = breakdown.total_amount
        self.balance_due = breakdown.balance_due

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise StateTransitionError(
                f"Cannot transition order from {current.value} to {target_status.value}",
                order_id=str(self.id),
            )

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def assert_deletable(self) -> None:
        if OrderStatus(self.status) in _UNDELETABLE_STATES:
            raise ConflictError(
                f"Order {self.order_number} is {self.status} and cannot be deleted",
                order_id=str(self.id),
            )

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    def record_payment(self, transaction_id, amount, gateway_status, currency="USD") -> bool:
        """Append a gateway transaction. Returns False for a known transaction id."""
        if self.find_transaction(transaction_id) is not None:
            return False

        now = datetime.now(UTC)
        successful = is_successful(gateway_status)
        with atomic_change(self):
            self.add_payment_transactions(
                PaymentTransaction(
                    transaction_id=transaction_id,
                    amount=amount,
                    currency=currency,
                    gateway_status=gateway_status,
                    recorded_at=now,
                )
            )
            self._reprice()

            paid = self.paid_amount
            if paid >= self.total_amount and (paid > 0 or successful):
                self.payment_status = PaymentStatus.PAID.value
                if OrderStatus(self.status) in (OrderStatus.PENDING, OrderStatus.PROCESSING):
                    self.status = OrderStatus.PAID.value
            elif paid > 0:
                self.payment_status = PaymentStatus.AUTHORIZED.value
            elif not successful:
                self.payment_status = PaymentStatus.FAILED.value
            self.updated_at = now

        self.raise_(
            PaymentRecorded(
                order_id=str(self.id),
                order_number=self.order_number,
                transaction_id=transaction_id,
                amount=amount,
                currency=currency,
                gateway_status=gateway_status,
                successful=successful,
                payment_status=self.payment_status,
                balance_due=self.balance_due,
                customer_name=self.customer_name,
                customer_email=self.customer_email,
                recorded_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Rental agreement
    # -------------------------------------------------------------------
    def assert_can_send_agreement(self) -> None:
        """Raise unless a signature request may be created for this order."""
        if OrderStatus(self.status) in _NO_AGREEMENT_STATES:
            raise ValidationError({"status": [f"Cannot send an agreement for a {self.status} order"]})
        if not self.customer_email:
            raise ValidationError({"customer_email": ["Customer email is required to send an agreement"]})
        if AgreementStatus(self.agreement_status) not in _SENDABLE_AGREEMENT_STATES:
            raise StateTransitionError(
                f"Agreement is already {self.agreement_status}",
                order_id=str(self.id),
            )

    def mark_agreement_sent(self, submission_id: str, signing_url: str | None = None) -> None:
        self.assert_can_send_agreement()

        now = datetime.now(UTC)
        resend = self.agreement_status == AgreementStatus.DECLINED.value
        with atomic_change(self):
            if resend or not self.agreement_submission_id:
                self.agreement_submission_id = submission_id
                self.agreement_viewed_at = None
                self.agreement_signed_at = None
                self.signed_document_url = None
            self.agreement_status = AgreementStatus.PENDING.value
            self.agreement_sent_at = _not_before(now, self.agreement_sent_at)
            self._refresh_delivery_gate()
            self.updated_at = now

        self.raise_(
            AgreementSent(
                order_id=str(self.id),
                order_number=self.order_number,
                submission_id=self.agreement_submission_id,
                signing_url=signing_url,
                customer_name=self.customer_name,
                customer_email=self.customer_email,
                sent_at=self.agreement_sent_at,
            )
        )

    def apply_agreement_event(self, kind, occurred_at=None, document_url=None) -> AgreementChange:
        """Apply a provider event idempotently.

        ``viewed`` only moves Pending to Viewed. ``completed`` always ends in
        Signed and keeps the first signing time. ``declined`` is ignored once
        Signed and reported as an anomaly.
        """
        kind = _parse_enum(AgreementEventKind, kind, "event")
        occurred_at = _as_utc(occurred_at) or datetime.now(UTC)
        previous = self.agreement_status
        current = AgreementStatus(previous)

        if kind == AgreementEventKind.VIEWED:
            if current != AgreementStatus.PENDING:
                return AgreementChange(previous, previous, applied=False)
            with atomic_change(self):
                self.agreement_status = AgreementStatus.VIEWED.value
                if self.agreement_viewed_at is None:
                    self.agreement_viewed_at = _not_before(occurred_at, self.agreement_sent_at)
                self._refresh_delivery_gate()
                self.updated_at = datetime.now(UTC)
            self.raise_(
                AgreementViewed(
                    order_id=str(self.id),
                    submission_id=self.agreement_submission_id,
                    viewed_at=self.agreement_viewed_at,
                )
            )
            return AgreementChange(previous, self.agreement_status, applied=True)

        if kind == AgreementEventKind.COMPLETED:
            if current == AgreementStatus.SIGNED:
                if document_url and not self.signed_document_url:
                    self.signed_document_url = document_url
                    return AgreementChange(previous, previous, applied=True)
                return AgreementChange(previous, previous, applied=False)
            with atomic_change(self):
                self.agreement_status = AgreementStatus.SIGNED.value
                if self.agreement_signed_at is None:
                    self.agreement_signed_at = _not_before(
                        occurred_at, self.agreement_sent_at, self.agreement_viewed_at
                    )
                if document_url:
                    self.signed_document_url = document_url
                self._refresh_delivery_gate()
                self.updated_at = datetime.now(UTC)
            self.raise_(
                AgreementSigned(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    submission_id=self.agreement_submission_id,
                    signed_document_url=self.signed_document_url,
                    customer_name=self.customer_name,
                    customer_email=self.customer_email,
                    signed_at=self.agreement_signed_at,
                )
            )
            return AgreementChange(previous, self.agreement_status, applied=True)

        # Declined
        if current == AgreementStatus.SIGNED:
            return AgreementChange(previous, previous, applied=False, anomaly=True)
        if current not in (AgreementStatus.PENDING, AgreementStatus.VIEWED):
            return AgreementChange(previous, previous, applied=False)
        with atomic_change(self):
            self.agreement_status = AgreementStatus.DECLINED.value
            self._refresh_delivery_gate()
            self.updated_at = datetime.now(UTC)
        self.raise_(
            AgreementDeclined(
                order_id=str(self.id),
                order_number=self.order_number,
                submission_id=self.agreement_submission_id,
                customer_name=self.customer_name,
                declined_at=occurred_at,
            )
        )
        return AgreementChange(previous, self.agreement_status, applied=True)

    # -------------------------------------------------------------------
    # Delivery gate
    # -------------------------------------------------------------------
    def override_delivery(self, reason: str, actor_id: str) -> None:
        """Release the delivery block without touching the agreement."""
        if self.delivery_override is not None:
            raise ConflictError(
                f"Delivery block for order {self.order_number} was already overridden",
                order_id=str(self.id),
            )
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError({"reason": ["Override reason is required"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.delivery_override = DeliveryOverride(reason=reason, by_user_id=actor_id, at=now)
            self._refresh_delivery_gate()
            self.updated_at = now

        self.raise_(
            DeliveryBlockOverridden(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                overridden_by=actor_id,
                agreement_status=self.agreement_status,
                overridden_at=now,
            )
        )

    def _refresh_delivery_gate(self) -> None:
        from rentals.delivery.gate import compute_blocked

        self.delivery_blocked = compute_blocked(self.agreement_status, self.delivery_override)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _parse_enum(enum_cls, value, field):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field: [f"Invalid value {value!r}; expected one of: {allowed}"]}) from None


def _build_line_items(items) -> list:
    """Validate raw item dicts and turn them into positioned LineItems."""
    if not items:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    errors = {}
    line_items = []
    for position, raw in enumerate(items):
        quantity = raw.get("quantity")
        unit_price = raw.get("unit_price")
        name = (raw.get("name") or "").strip()
        if not name:
            errors.setdefault("items", []).append(f"Item {position}: name is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            errors.setdefault("items", []).append(f"Item {position}: quantity must be a positive integer")
        if isinstance(unit_price, bool) or not isinstance(unit_price, int) or unit_price < 0:
            errors.setdefault("items", []).append(f"Item {position}: unit_price must be non-negative cents")
        if errors:
            continue
        kind = _parse_enum(ItemKind, raw.get("kind") or ItemKind.RENTAL.value, "items").value
        line_items.append(
            LineItem(
                kind=kind,
                name=name,
                quantity=quantity,
                unit_price=unit_price,
                line_total=line_total(quantity, unit_price),
                position=position,
            )
        )
    if errors:
        raise ValidationError(errors)
    return line_items
