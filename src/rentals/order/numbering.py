"""Order numbers: ``BB-YYYY-NNNN`` from an atomic per-year counter.

Each year has exactly one OrderSequence record. Allocation reads and bumps
that record inside a critical section keyed by the counter name, so
concurrent creations never observe the same value. Numbers are never derived
from the highest existing order number.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from rentals.domain import rentals
from rentals.shared.locks import KeyedLocks

logger = structlog.get_logger(__name__)

ORDER_NUMBER_PREFIX = "BB"

_counter_locks = KeyedLocks()


@rentals.aggregate
class OrderSequence:
    """Monotonic counter keyed by name (``order-number-2026``)."""

    name = Identifier(identifier=True, required=True)
    value = Integer(default=0, min_value=0)

    def advance(self) -> int:
        self.value += 1
        return self.value


def counter_name(year: int) -> str:
    return f"order-number-{year}"


def format_order_number(year: int, sequence: int) -> str:
    """``BB-2026-0001``; sequences past 9999 simply widen."""
    return f"{ORDER_NUMBER_PREFIX}-{year}-{sequence:04d}"


def next_order_number(now: datetime | None = None) -> str:
    """Allocate the next order number for the year of ``now``."""
    year = (now or datetime.now(UTC)).year
    name = counter_name(year)
    repo = current_domain.repository_for(OrderSequence)

    with _counter_locks.hold(name):
        try:
            sequence = repo.get(name)
        except ObjectNotFoundError:
            sequence = OrderSequence(name=name, value=0)
        value = sequence.advance()
        repo.add(sequence)

    number = format_order_number(year, value)
    logger.debug("Allocated order number", order_number=number, counter=name)
    return number
