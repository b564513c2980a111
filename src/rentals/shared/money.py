"""Money helpers: amounts are integer cents.

Every monetary field on an Order is stored as a non-negative number of
cents. Fractional results (percentage fees) are rounded half-up to the
nearest cent, never banker's rounding.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError

VALID_CURRENCIES = frozenset(
    {
        "USD",
        "EUR",
        "GBP",
        "CAD",
        "AUD",
        "MXN",
    }
)


def round_half_up(value: Decimal) -> int:
    """Round a Decimal amount of cents to a whole cent, ties away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount: int, rate) -> int:
    """Return ``amount * rate`` in cents, rounded half-up.

    ``rate`` is a fraction (``Decimal("0.03")`` for three percent). Strings
    are accepted so configuration values can be passed straight through.
    """
    try:
        decimal_rate = Decimal(str(rate))
    except InvalidOperation as exc:
        raise ValidationError({"rate": [f"Invalid rate: {rate!r}"]}) from exc
    return round_half_up(Decimal(amount) * decimal_rate)


def to_cents(value) -> int:
    """Convert a decimal major-unit amount (e.g. ``"74.99"``) to cents."""
    try:
        return round_half_up(Decimal(str(value)) * 100)
    except InvalidOperation as exc:
        raise ValidationError({"amount": [f"Invalid amount: {value!r}"]}) from exc


def format_cents(cents: int, currency: str = "USD") -> str:
    """Render cents for humans, e.g. ``17450`` -> ``"174.50 USD"``."""
    sign = "-" if cents < 0 else ""
    major, minor = divmod(abs(cents), 100)
    return f"{sign}{major}.{minor:02d} {currency}"


def validate_amount(value, field: str = "amount") -> int:
    """Reject anything that is not a non-negative whole number of cents."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError({field: ["Amount must be an integer number of cents"]})
    if value < 0:
        raise ValidationError({field: ["Amount cannot be negative"]})
    return value


def validate_currency(currency: str) -> str:
    code = (currency or "").upper()
    if code not in VALID_CURRENCIES:
        raise ValidationError({"currency": [f"Unsupported currency: {currency}"]})
    return code
