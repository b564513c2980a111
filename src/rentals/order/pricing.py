"""Order pricing: pure derivation of totals and balance.

All amounts are integer cents. Nothing here touches persistence; the
aggregate calls ``price_order`` whenever items, fees or payments change so
the derived fields can never drift from their inputs.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError

from rentals.shared.money import percent_of, validate_amount

SUCCESSFUL_GATEWAY_STATUSES = frozenset({"COMPLETED", "APPROVED"})


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: int
    tax_amount: int
    discount_amount: int
    delivery_fee: int
    processing_fee: int
    total_amount: int
    deposit_amount: int
    paid_amount: int
    balance_due: int


def is_successful(gateway_status: str | None) -> bool:
    return (gateway_status or "").upper() in SUCCESSFUL_GATEWAY_STATUSES


def line_total(quantity: int, unit_price: int) -> int:
    return quantity * unit_price


def subtotal_of(lines: Iterable[tuple[int, int]]) -> int:
    """Sum ``quantity * unit_price`` over ``(quantity, unit_price)`` pairs."""
    return sum(line_total(quantity, unit_price) for quantity, unit_price in lines)


def default_processing_fee(subtotal: int, rate: Decimal) -> int:
    return percent_of(subtotal, rate)


def paid_amount_of(transactions: Iterable[tuple[int, str]]) -> int:
    """Sum amounts of successful ``(amount, gateway_status)`` transactions."""
    return sum(amount for amount, status in transactions if is_successful(status))


def total_of(subtotal: int, tax_amount: int, delivery_fee: int, processing_fee: int, discount_amount: int) -> int:
    total = subtotal + tax_amount + delivery_fee + processing_fee - discount_amount
    if total < 0:
        raise ValidationError({"discount_amount": ["Discount cannot exceed the order total"]})
    return total


def balance_of(total_amount: int, deposit_amount: int, paid_amount: int) -> int:
    return max(0, total_amount - deposit_amount - paid_amount)


def price_order(
    lines: Iterable[tuple[int, int]],
    *,
    tax_amount: int = 0,
    discount_amount: int = 0,
    delivery_fee: int = 0,
    processing_fee: int = 0,
    deposit_amount: int = 0,
    transactions: Iterable[tuple[int, str]] = (),
) -> PriceBreakdown:
    """Compute every derived money field for an order.

    The result does not depend on the order of ``lines`` or
    ``transactions``. Deposits larger than the total are rejected.
    """
    for field, amount in (
        ("tax_amount", tax_amount),
        ("discount_amount", discount_amount),
        ("delivery_fee", delivery_fee),
        ("processing_fee", processing_fee),
        ("deposit_amount", deposit_amount),
    ):
        validate_amount(amount, field)

    subtotal = subtotal_of(lines)
    total_amount = total_of(subtotal, tax_amount, delivery_fee, processing_fee, discount_amount)
    if deposit_amount > total_amount:
        raise ValidationError({"deposit_amount": ["Deposit cannot exceed the order total"]})

    paid = paid_amount_of(transactions)
    return PriceBreakdown(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        delivery_fee=delivery_fee,
        processing_fee=processing_fee,
        total_amount=total_amount,
        deposit_amount=deposit_amount,
        paid_amount=paid,
        balance_due=balance_of(total_amount, deposit_amount, paid),
    )
