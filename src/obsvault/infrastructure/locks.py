"""Per-key locking for item writes.

Two updates to the same item serialise their read-merge-write sequence;
writes to different items proceed in parallel. Locks live in a
``WeakValueDictionary`` and are collected once no thread holds them.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager


class KeyedLock:
    """A family of reentrant locks addressed by string key."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = (
            weakref.WeakValueDictionary()
        )
        self._guard = threading.Lock()

    def _get(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._get(key)
        with lock:
            yield

    @contextmanager
    def hold_many(self, keys: Iterable[str]) -> Iterator[None]:
        """Acquire several keys in sorted order (deadlock-free)."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self.hold(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
