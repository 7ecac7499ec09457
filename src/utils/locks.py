"""Per-key mutual exclusion."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    """A registry of locks keyed by an identifier such as a drone id.

    Work on the same key is serialized; work on different keys never
    contends beyond the short registry lookup.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get_lock(self, key: str) -> threading.Lock:
        """Return the lock for a key, creating it on first use."""
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self.get_lock(key):
            yield

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
