"""Tests for the admission gate."""

from __future__ import annotations

import threading
import time

import pytest

from s3loadgen.gate import AdmissionGate


class TestAdmissionGate:
    def test_acquire_release_cycles(self):
        gate = AdmissionGate(3)
        assert gate.available() == 3
        assert gate.in_flight() == 0

        slots = [gate.acquire() for _ in range(3)]
        assert gate.available() == 0
        assert gate.in_flight() == 3

        # At capacity: a bounded wait gives up.
        assert gate.acquire(timeout=0.05) is None

        for slot in slots:
            slot.release()
        assert gate.available() == 3
        assert gate.peak() == 3

    def test_release_is_idempotent(self):
        gate = AdmissionGate(1)
        slot = gate.acquire()
        slot.release()
        slot.release()
        assert gate.available() == 1
        assert slot.released

    def test_available_never_exceeds_limit(self):
        gate = AdmissionGate(2)
        gate._release()
        assert gate.available() == 2

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            AdmissionGate(0)

    def test_slot_released_when_block_raises(self):
        gate = AdmissionGate(1)
        with pytest.raises(RuntimeError):
            with gate.slot():
                assert gate.available() == 0
                raise RuntimeError("boom")
        assert gate.available() == 1

    def test_blocked_waiter_proceeds_after_release(self):
        gate = AdmissionGate(1)
        held = gate.acquire()
        acquired = threading.Event()

        def waiter() -> None:
            slot = gate.acquire()
            acquired.set()
            slot.release()

        thread = threading.Thread(target=waiter)
        thread.start()
        assert not acquired.wait(0.05)

        held.release()
        assert acquired.wait(1)
        thread.join(1)
        assert gate.available() == 1

    def test_concurrent_holders_bounded_by_limit(self):
        limit = 4
        gate = AdmissionGate(limit)
        lock = threading.Lock()
        active = 0
        observed_peak = 0

        def worker() -> None:
            nonlocal active, observed_peak
            with gate.slot():
                with lock:
                    active += 1
                    observed_peak = max(observed_peak, active)
                time.sleep(0.01)
                with lock:
                    active -= 1

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert observed_peak <= limit
        assert gate.peak() <= limit
        assert gate.available() == limit
