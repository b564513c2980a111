"""Per-key critical sections.

Writers for the same key (an order id, a counter name) are serialized;
writers for different keys never contend. There is no global lock.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLocks:
    """A registry handing out one re-entrant lock per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.lock_for(str(key))
        with lock:
            yield

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()
