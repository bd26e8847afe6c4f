"""Tests for the keyed lock."""

from __future__ import annotations

import threading
import time

from obsvault.infrastructure.locks import KeyedLock


class TestKeyedLock:
    def test_same_key_serialises(self) -> None:
        locks = KeyedLock()
        active = 0
        peak = 0
        guard = threading.Lock()

        def work() -> None:
            nonlocal active, peak
            with locks.hold("item"):
                with guard:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.01)
                with guard:
                    active -= 1

        threads = [threading.Thread(target=work) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert peak == 1

    def test_different_keys_do_not_block(self) -> None:
        locks = KeyedLock()
        entered = threading.Event()

        def other() -> None:
            with locks.hold("b"):
                entered.set()

        with locks.hold("a"):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=2)
            t.join()

    def test_reentrant_and_hold_many(self) -> None:
        locks = KeyedLock()
        with locks.hold("a"), locks.hold_many(["b", "a", "b"]):
            assert len(locks) == 2

    def test_unused_locks_are_collected(self) -> None:
        locks = KeyedLock()
        with locks.hold("a"):
            pass
        assert len(locks) == 0
