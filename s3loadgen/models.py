"""Shared types for benchmark runs.

Usage::

    from s3loadgen.models import BenchmarkConfig, OperationOutcome

    config = BenchmarkConfig(bucket="bench", duration_seconds=60, concurrency=10)
    outcome = OperationOutcome.success(1024, latency=0.012)
"""

from __future__ import annotations

from dataclasses import dataclass

from s3loadgen.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DURATION,
    DEFAULT_OBJECT_SIZE,
    DEFAULT_PACING,
    DEFAULT_PART_SIZE,
    DEFAULT_PREFIX,
)


@dataclass(frozen=True)
class BenchmarkConfig:
    """Immutable parameters for one benchmark run.

    ``object_size``, ``part_size``, ``multipart`` and
    ``part_concurrency`` only matter to PUT runs; ``range_bytes`` only
    to GET runs.
    """

    bucket: str
    duration_seconds: float = DEFAULT_DURATION
    concurrency: int = DEFAULT_CONCURRENCY
    prefix: str = DEFAULT_PREFIX
    object_size: int = DEFAULT_OBJECT_SIZE
    part_size: int = DEFAULT_PART_SIZE
    multipart: bool = True
    range_bytes: int | None = None
    pacing_seconds: float = DEFAULT_PACING
    part_concurrency: int | None = None

    def validate(self) -> BenchmarkConfig:
        """Check every bound and return ``self``.

        Raises:
            ValueError: If any field is out of range.
        """
        if self.duration_seconds <= 0:
            raise ValueError(
                f"duration must be positive: {self.duration_seconds}"
            )
        if self.concurrency < 1:
            raise ValueError(
                f"concurrency must be at least 1: {self.concurrency}"
            )
        if self.object_size < 0:
            raise ValueError(
                f"object size cannot be negative: {self.object_size}"
            )
        if self.part_size <= 0:
            raise ValueError(
                f"part size must be positive: {self.part_size}"
            )
        if self.range_bytes is not None and self.range_bytes <= 0:
            raise ValueError(
                f"range length must be positive: {self.range_bytes}"
            )
        if self.pacing_seconds < 0:
            raise ValueError(
                f"pacing delay cannot be negative: {self.pacing_seconds}"
            )
        if self.part_concurrency is not None and self.part_concurrency < 1:
            raise ValueError(
                f"part concurrency must be at least 1: "
                f"{self.part_concurrency}"
            )
        return self

    @property
    def use_multipart(self) -> bool:
        """Whether PUT operations take the multipart path."""
        return self.multipart and self.object_size >= self.part_size


@dataclass(frozen=True)
class OperationOutcome:
    """Terminal result of one benchmark operation.

    ``amount`` is bytes moved (PUT/GET) or items counted (LIST) and is
    always 0 for failures. ``latency`` is in seconds.
    """

    ok: bool
    amount: int
    latency: float
    error: str | None = None

    @classmethod
    def success(cls, amount: int, latency: float) -> OperationOutcome:
        return cls(ok=True, amount=amount, latency=latency)

    @classmethod
    def failure(
        cls,
        latency: float,
        error: str | None = None,
    ) -> OperationOutcome:
        return cls(ok=False, amount=0, latency=latency, error=error)


@dataclass(frozen=True)
class UploadPart:
    """One uploaded part of a multipart upload."""

    part_number: int
    etag: str
