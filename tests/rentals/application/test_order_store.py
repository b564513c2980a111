"""Application tests for version-checked writes and bounded retries."""

import pytest
from rentals.exceptions import ConflictError
from rentals.order.store import OrderStore, VersionConflict


def _concurrent_write(store, order_id, notes):
    """Simulate another writer committing between our read and our write."""
    other = store.get(order_id)
    other.notes = notes
    store.save(other, other.version)


class TestSave:
    def test_save_bumps_version(self, make_order):
        store = OrderStore()
        order = store.get(make_order().id)
        order.notes = "Updated"
        store.save(order, 1)
        assert store.get(order.id).version == 2

    def test_stale_save_rejected(self, make_order):
        store = OrderStore()
        order_id = make_order().id
        first = store.get(order_id)
        second = store.get(order_id)

        first.notes = "First"
        store.save(first, 1)

        second.notes = "Second"
        with pytest.raises(VersionConflict):
            store.save(second, 1)
        assert store.get(order_id).notes == "First"


class TestMutate:
    def test_retries_after_conflict(self, make_order):
        store = OrderStore(max_attempts=3)
        order_id = make_order().id
        calls = []

        def apply(order):
            calls.append(order.version)
            if len(calls) == 1:
                _concurrent_write(store, order_id, "Other writer")
            order.revise({"tax_amount": 500})

        mutation = store.mutate(order_id, apply)

        assert mutation.written is True
        assert mutation.attempts == 2
        assert calls == [1, 2]
        stored = store.get(order_id)
        assert stored.version == 3
        assert stored.tax_amount == 500
        assert stored.notes == "Other writer"

    def test_gives_up_after_max_attempts(self, make_order):
        store = OrderStore(max_attempts=3)
        order_id = make_order().id
        calls = []

        def apply(order):
            calls.append(1)
            _concurrent_write(store, order_id, f"Writer {len(calls)}")
            order.revise({"tax_amount": 500})

        with pytest.raises(ConflictError):
            store.mutate(order_id, apply)
        assert len(calls) == 3
        assert store.get(order_id).tax_amount == 0

    def test_expected_version_checked_before_apply(self, make_order):
        store = OrderStore()
        order_id = make_order().id
        _concurrent_write(store, order_id, "Other")
        applied = []

        with pytest.raises(ConflictError):
            store.mutate(order_id, applied.append, expected_version=1)
        assert applied == []

    def test_strict_expected_version_does_not_retry(self, make_order):
        store = OrderStore(max_attempts=3)
        order_id = make_order().id
        calls = []

        def apply(order):
            calls.append(1)
            _concurrent_write(store, order_id, "Other")
            order.notes = "Mine"

        with pytest.raises(ConflictError):
            store.mutate(order_id, apply, expected_version=1, strict=True)
        assert len(calls) == 1
        assert store.get(order_id).notes == "Other"

    def test_lenient_expected_version_retries(self, make_order):
        store = OrderStore(max_attempts=3)
        order_id = make_order().id
        calls = []

        def apply(order):
            calls.append(1)
            if len(calls) == 1:
                _concurrent_write(store, order_id, "Other")
            order.customer_phone = "555-0199"

        mutation = store.mutate(order_id, apply, expected_version=1, strict=False)
        assert mutation.attempts == 2
        assert store.get(order_id).customer_phone == "555-0199"

    def test_skipped_write_keeps_version(self, make_order):
        store = OrderStore()
        order_id = make_order().id

        mutation = store.mutate(order_id, lambda order: False, write_if=bool)

        assert mutation.written is False
        assert store.get(order_id).version == 1


class TestQueries:
    def test_awaiting_signature(self, make_order):
        store = OrderStore()
        pending = make_order()
        viewed = make_order()
        make_order()

        store.mutate(pending.id, lambda order: order.mark_agreement_sent("sub_a"))
        store.mutate(viewed.id, lambda order: order.mark_agreement_sent("sub_b"))
        store.mutate(viewed.id, lambda order: order.apply_agreement_event("viewed"))

        numbers = [order.order_number for order in store.awaiting_signature()]
        assert numbers == [pending.order_number, viewed.order_number]

    def test_find_by_submission_id(self, make_order):
        store = OrderStore()
        order = make_order()
        store.mutate(order.id, lambda o: o.mark_agreement_sent("sub_find"))

        assert store.find_by_submission_id("sub_find").id == order.id
        assert store.find_by_submission_id("sub_unknown") is None
