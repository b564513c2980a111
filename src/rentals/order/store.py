"""OrderStore: persistence of Order aggregates with optimistic versioning.

Every persisted mutation bumps ``Order.version``. A write only succeeds when
the stored version still equals the version the writer read; the
compare-and-swap runs inside a critical section keyed by order id, so
writers to different orders never contend.

``mutate`` wraps the usual read → apply → conditional write cycle and
retries on version conflicts a bounded number of times.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from rentals.config import get_settings
from rentals.domain import rentals
from rentals.exceptions import ConflictError, NotFoundError
from rentals.order.order import AgreementStatus, Order
from rentals.shared.locks import KeyedLocks

logger = structlog.get_logger(__name__)

_PAGE_SIZE = 100


class VersionConflict(ConflictError):
    """The stored version moved on since the writer read the order."""


@dataclass(frozen=True)
class Mutation:
    order: Order
    result: Any
    written: bool
    attempts: int


@rentals.repository(part_of=Order)
class OrderRepository:
    def find_by_order_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def find_by_submission_id(self, submission_id: str) -> Order | None:
        return self._dao.query.filter(agreement_submission_id=submission_id).all().first

    def awaiting_signature(self) -> list[Order]:
        """Orders with an open submission (Pending or Viewed), oldest number first."""
        statuses = [AgreementStatus.PENDING.value, AgreementStatus.VIEWED.value]
        orders = []
        offset = 0
        while True:
            page = (
                self._dao.query.filter(agreement_status__in=statuses)
                .order_by("order_number")
                .offset(offset)
                .limit(_PAGE_SIZE)
                .all()
                .items
            )
            orders.extend(page)
            if len(page) < _PAGE_SIZE:
                return orders
            offset += _PAGE_SIZE


class OrderStore:
    """Conditional writes and bounded retries over the Order repository."""

    _locks = KeyedLocks()

    def __init__(self, max_attempts: int | None = None) -> None:
        self.max_attempts = max_attempts or get_settings().max_write_attempts

    @property
    def repository(self) -> OrderRepository:
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, order_id: str) -> Order:
        try:
            return self.repository.get(order_id)
        except ObjectNotFoundError:
            raise NotFoundError(f"Order {order_id} not found", order_id=order_id) from None

    def get_by_order_number(self, order_number: str) -> Order:
        order = self.repository.find_by_order_number(order_number)
        if order is None:
            raise NotFoundError(f"Order {order_number} not found", order_number=order_number)
        return order

    def find_by_submission_id(self, submission_id: str) -> Order | None:
        return self.repository.find_by_submission_id(submission_id)

    def awaiting_signature(self) -> list[Order]:
        return self.repository.awaiting_signature()

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def add(self, order: Order) -> Order:
        """Persist a brand-new order at version 1."""
        with self._locks.hold(order.id):
            order.version = 1
            self.repository.add(order)
        return order

    def save(self, order: Order, expected_version: int) -> Order:
        """Write ``order`` only if the stored version is ``expected_version``."""
        with self._locks.hold(order.id):
            stored = self.get(order.id)
            if stored.version != expected_version:
                raise VersionConflict(
                    f"Order {order.id} is at version {stored.version}, expected {expected_version}",
                    order_id=str(order.id),
                    expected_version=expected_version,
                    actual_version=stored.version,
                )
            order.version = expected_version + 1
            self.repository.add(order)
        return order

    def delete(self, order: Order, expected_version: int) -> None:
        with self._locks.hold(order.id):
            stored = self.get(order.id)
            if stored.version != expected_version:
                raise VersionConflict(
                    f"Order {order.id} changed while being deleted",
                    order_id=str(order.id),
                    expected_version=expected_version,
                    actual_version=stored.version,
                )
            self.repository._dao.delete(stored)

    def mutate(
        self,
        order_id: str,
        apply: Callable[[Order], Any],
        expected_version: int | None = None,
        strict: bool = True,
        write_if: Callable[[Any], bool] | None = None,
    ) -> Mutation:
        """Read, apply and conditionally write an order, retrying on conflicts.

        Args:
            apply: Mutates the loaded order in place and returns a result.
            expected_version: Caller's view of the order. A stale value raises
                ConflictError before ``apply`` runs.
            strict: When True an ``expected_version`` pins every attempt, so a
                concurrent write surfaces as ConflictError instead of a retry.
            write_if: Decides from ``apply``'s result whether anything needs
                persisting; skipped writes leave the version untouched.
        """
        attempts = 1 if (strict and expected_version is not None) else self.max_attempts

        for attempt in range(1, attempts + 1):
            order = self.get(order_id)
            if expected_version is not None and attempt == 1 and order.version != expected_version:
                raise ConflictError(
                    f"Order {order_id} is at version {order.version}, expected {expected_version}",
                    order_id=order_id,
                    expected_version=expected_version,
                    actual_version=order.version,
                )

            read_version = order.version
            result = apply(order)
            if write_if is not None and not write_if(result):
                return Mutation(order=order, result=result, written=False, attempts=attempt)

            try:
                self.save(order, read_version)
            except VersionConflict as exc:
                logger.info(
                    "Version conflict while writing order",
                    order_id=order_id,
                    attempt=attempt,
                    max_attempts=attempts,
                    actual_version=exc.context.get("actual_version"),
                )
                continue
            return Mutation(order=order, result=result, written=True, attempts=attempt)

        logger.warning("Giving up on order write after repeated conflicts", order_id=order_id, attempts=attempts)
        raise ConflictError(
            f"Order {order_id} was modified concurrently; gave up after {attempts} attempts",
            order_id=order_id,
        )
