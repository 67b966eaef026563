"""Admission control — bounds the number of in-flight operations.

Usage::

    from s3loadgen.gate import AdmissionGate

    gate = AdmissionGate(10)
    slot = gate.acquire()          # blocks while 10 slots are held
    try:
        do_work()
    finally:
        slot.release()

    with gate.slot():              # same thing, scoped
        do_work()
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger("s3loadgen.gate")


class AdmissionSlot:
    """Release obligation returned by :meth:`AdmissionGate.acquire`.

    Releasing more than once is a no-op, so the slot can be released
    from a ``finally`` block without tracking whether an earlier path
    already did.
    """

    __slots__ = ("_gate", "_released", "_lock")

    def __init__(self, gate: AdmissionGate) -> None:
        self._gate = gate
        self._released = False
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Return the slot to the gate (idempotent)."""
        with self._lock:
            if self._released:
                return
            self._released = True
        self._gate._release()

    def __enter__(self) -> AdmissionSlot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class AdmissionGate:
    """Counting gate with a fixed number of slots.

    The available count starts at ``limit``, drops by one per acquire
    and rises by one per release. It never goes negative and never
    exceeds ``limit``. Waiters are woken on every release; the order in
    which they proceed is not FIFO.
    """

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"Gate limit must be at least 1: {limit}")
        self._limit = limit
        self._available = limit
        self._peak = 0
        self._condition = threading.Condition(threading.Lock())

    def acquire(
        self,
        timeout: float | None = None,
    ) -> AdmissionSlot | None:
        """Wait for a free slot and take it.

        Args:
            timeout: Maximum time to wait in seconds (None = forever).

        Returns:
            An :class:`AdmissionSlot`, or None if the timeout expired.
        """
        with self._condition:
            if not self._condition.wait_for(
                lambda: self._available > 0, timeout=timeout,
            ):
                return None
            self._available -= 1
            in_flight = self._limit - self._available
            if in_flight > self._peak:
                self._peak = in_flight
        return AdmissionSlot(self)

    def _release(self) -> None:
        with self._condition:
            if self._available >= self._limit:
                logger.warning(
                    "Gate release with no slot held; ignoring"
                )
                return
            self._available += 1
            self._condition.notify()

    @contextmanager
    def slot(self) -> Iterator[AdmissionSlot]:
        """Hold one slot for the duration of the ``with`` block."""
        admitted = self.acquire()
        try:
            yield admitted
        finally:
            admitted.release()

    @property
    def limit(self) -> int:
        return self._limit

    def available(self) -> int:
        """Number of free slots."""
        with self._condition:
            return self._available

    def in_flight(self) -> int:
        """Number of slots currently held."""
        with self._condition:
            return self._limit - self._available

    def peak(self) -> int:
        """Highest number of slots held at once since creation."""
        with self._condition:
            return self._peak

    def __repr__(self) -> str:
        return (
            f"AdmissionGate(available={self._available}/"
            f"{self._limit}, peak={self._peak})"
        )
