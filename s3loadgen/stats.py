"""Run statistics — aggregation of operation outcomes and the report.

Usage::

    from s3loadgen.stats import StatsAggregator, format_report

    aggregator = StatsAggregator("PUT")
    for outcome in outcomes:
        aggregator.record(outcome)
    stats = aggregator.finish(duration=61.3)
    print(format_report(stats))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from s3loadgen.models import OperationOutcome

BYTES_PER_MB = 1_048_576


@dataclass
class RunStats:
    """Accumulated totals for one run.

    ``amount`` is bytes for PUT/GET and items listed for LIST.
    ``total_latency`` sums successful operations only, in seconds.
    """

    operation: str
    operations: int = 0
    errors: int = 0
    amount: int = 0
    total_latency: float = 0.0
    duration: float = 0.0

    @property
    def is_listing(self) -> bool:
        return self.operation == "LIST"

    @property
    def successes(self) -> int:
        return self.operations - self.errors

    @property
    def ops_per_sec(self) -> float:
        if self.duration <= 0:
            return 0.0
        return self.operations / self.duration

    @property
    def bytes_transferred(self) -> int:
        return 0 if self.is_listing else self.amount

    @property
    def items_listed(self) -> int:
        return self.amount if self.is_listing else 0

    @property
    def megabytes(self) -> float:
        return self.bytes_transferred / BYTES_PER_MB

    @property
    def throughput_mb_per_sec(self) -> float:
        if self.duration <= 0:
            return 0.0
        return self.megabytes / self.duration

    @property
    def avg_latency_ms(self) -> float:
        """Mean latency of successful operations; 0 without successes."""
        if self.successes <= 0:
            return 0.0
        return self.total_latency * 1000 / self.successes

    @property
    def avg_items_per_op(self) -> float:
        if self.operations <= 0:
            return 0.0
        return self.items_listed / self.operations

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_s": round(self.duration, 3),
            "operations": self.operations,
            "successful": self.successes,
            "errors": self.errors,
            "ops_per_sec": round(self.ops_per_sec, 2),
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "data_transferred_mb": round(self.megabytes, 2),
            "throughput_mb_per_sec": round(
                self.throughput_mb_per_sec, 2,
            ),
        }
        if self.is_listing:
            result["items_listed"] = self.items_listed
            result["avg_items_per_op"] = round(self.avg_items_per_op, 2)
        return result


class StatsAggregator:
    """Single consumer of operation outcomes.

    Not thread-safe: the driver feeds it sequentially while draining.
    """

    def __init__(self, operation: str) -> None:
        self.stats = RunStats(operation=operation)
        self._finished = False

    def record(self, outcome: OperationOutcome) -> None:
        if self._finished:
            raise RuntimeError("Cannot record into finished stats")
        self.stats.operations += 1
        if outcome.ok:
            self.stats.amount += outcome.amount
            self.stats.total_latency += outcome.latency
        else:
            self.stats.errors += 1

    def extend(self, outcomes: Iterable[OperationOutcome]) -> None:
        for outcome in outcomes:
            self.record(outcome)

    def finish(self, duration: float) -> RunStats:
        """Stamp the observed duration and hand over the totals."""
        self.stats.duration = duration
        self._finished = True
        return self.stats


def format_report(stats: RunStats) -> str:
    """Render the human-readable summary for a finished run."""
    lines = [
        f"=== {stats.operation} Benchmark Results ===",
        f"Duration: {stats.duration:.2f}s",
        f"Total operations: {stats.operations}",
        f"Successful: {stats.successes}",
        f"Errors: {stats.errors}",
        f"Operations/sec: {stats.ops_per_sec:.2f}",
        f"Average latency: {stats.avg_latency_ms:.2f} ms",
        f"Data transferred: {stats.megabytes:.2f} MB",
        f"Throughput: {stats.throughput_mb_per_sec:.2f} MB/s",
    ]
    if stats.is_listing:
        lines.append(f"Total objects listed: {stats.items_listed}")
        lines.append(
            f"Avg objects per list: {stats.avg_items_per_op:.2f}"
        )
    return "\n".join(lines)
