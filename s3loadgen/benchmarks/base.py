from __future__ import annotations

"""Base class for benchmarks.

All benchmark classes inherit from Benchmark which provides:
- The time-boxed issuing loop with admission control
- Draining of in-flight operations once the duration expires
- Aggregation of operation outcomes into RunStats
- Logging with benchmark context
"""

import enum
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from threading import Event
from typing import Any, Callable

from s3loadgen.gate import AdmissionGate, AdmissionSlot
from s3loadgen.logging_setup import get_logger
from s3loadgen.models import BenchmarkConfig, OperationOutcome
from s3loadgen.stats import RunStats, StatsAggregator
from s3loadgen.utils import format_duration

# How long the issuing loop waits for a slot before re-checking the
# deadline and the stop event.
_ACQUIRE_POLL = 0.1

Operation = Callable[[], int]


class BenchmarkSetupError(RuntimeError):
    """The benchmark cannot start, e.g. nothing to download."""


class BenchmarkState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


class Benchmark:
    """Time-boxed, concurrency-bounded benchmark driver.

    Subclasses set ``operation`` and implement :meth:`build_operation`;
    they may override :meth:`prepare` for work that must happen before
    the clock starts.
    """

    operation = ""

    def __init__(
        self,
        client: Any,
        config: BenchmarkConfig,
        stop_event: Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize benchmark.

        Args:
            client: Storage client shared by every operation.
            config: Run parameters; validated here.
            stop_event: Event that ends the issuing phase early.
            clock: Monotonic clock in seconds.
        """
        self.client = client
        self.config = config.validate()
        self.stop_event = stop_event or Event()
        self.clock = clock
        self.gate = AdmissionGate(config.concurrency)
        self.state = BenchmarkState.IDLE
        self.issued = 0
        self.start_time: float | None = None
        self.logger = get_logger(benchmark=self.operation)

    def log(self, msg: str, level: str = "info", **extra: object) -> None:
        """Log message with benchmark context."""
        log_func = getattr(self.logger, level.lower(), self.logger.info)
        log_func(msg, extra=extra)

    def describe(self) -> list[str]:
        """Lines logged when the run starts."""
        return [
            f"Bucket: {self.config.bucket}",
            f"Duration: {format_duration(int(self.config.duration_seconds))}",
            f"Concurrent operations: {self.config.concurrency}",
        ]

    def prepare(self) -> None:
        """Work done before the timed window opens."""

    def build_operation(self, counter: int) -> Operation:
        """Return the callable for the ``counter``-th operation.

        Called on the issuing thread, in counter order. The callable
        runs on a worker thread and returns bytes moved or items
        counted.
        """
        raise NotImplementedError("Subclasses must implement build_operation()")

    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return self.clock() - self.start_time

    def should_continue(self) -> bool:
        """Check if the issuing loop should launch another operation."""
        if self.stop_event.is_set():
            return False
        return self.elapsed() < self.config.duration_seconds

    def progress(self) -> dict[str, Any]:
        """Read-only snapshot for progress reporting."""
        return {
            "state": self.state.value,
            "issued": self.issued,
            "in_flight": self.gate.in_flight(),
            "elapsed": self.elapsed(),
        }

    def _execute(
        self,
        operation: Operation,
        slot: AdmissionSlot,
    ) -> OperationOutcome:
        """Run one operation; the slot is released on every path."""
        started = time.perf_counter()
        try:
            amount = operation()
        except Exception as exc:
            latency = time.perf_counter() - started
            error = f"{type(exc).__name__}: {exc}"
            self.log(f"Operation failed: {error}", level="debug")
            return OperationOutcome.failure(latency, error)
        finally:
            slot.release()
        return OperationOutcome.success(
            amount, time.perf_counter() - started,
        )

    def _issue(self, executor: ThreadPoolExecutor) -> list[Future]:
        futures: list[Future] = []
        pacing = self.config.pacing_seconds

        while self.should_continue():
            slot = self.gate.acquire(timeout=_ACQUIRE_POLL)
            if slot is None:
                continue
            try:
                operation = self.build_operation(self.issued)
                futures.append(
                    executor.submit(self._execute, operation, slot),
                )
            except BaseException:
                slot.release()
                raise
            self.issued += 1
            if pacing:
                self.stop_event.wait(pacing)

        return futures

    def _drain(self, futures: list[Future]) -> StatsAggregator:
        aggregator = StatsAggregator(self.operation)
        for future in as_completed(futures):
            try:
                outcome = future.result()
            except Exception as exc:
                outcome = OperationOutcome.failure(
                    0.0, f"{type(exc).__name__}: {exc}",
                )
                self.log(f"Operation aborted: {exc}", level="warning")
            aggregator.record(outcome)
        return aggregator

    def run(self) -> RunStats:
        """Run the benchmark to completion and return its totals.

        Raises:
            BenchmarkSetupError: If :meth:`prepare` finds nothing to do.
            RuntimeError: If this instance has already run.
        """
        if self.state is not BenchmarkState.IDLE:
            raise RuntimeError("A benchmark instance runs only once")

        self.log(f"Starting {self.operation} benchmark...")
        for line in self.describe():
            self.log(line)

        self.prepare()

        self.start_time = self.clock()
        self.state = BenchmarkState.RUNNING

        with ThreadPoolExecutor(
            max_workers=self.config.concurrency,
            thread_name_prefix=f"{self.operation.lower()}-op",
        ) as executor:
            try:
                futures = self._issue(executor)
            finally:
                self.state = BenchmarkState.DRAINING
            self.log(
                f"Issued {self.issued:,} operations, waiting for "
                f"{self.gate.in_flight()} in flight to complete..."
            )
            aggregator = self._drain(futures)

        stats = aggregator.finish(self.elapsed())
        self.state = BenchmarkState.DONE
        self.log(
            f"Done: {stats.operations:,} operations, "
            f"{stats.errors} errors in {stats.duration:.2f}s"
        )
        return stats
