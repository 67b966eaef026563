from __future__ import annotations

"""GET benchmark: read back objects written under the prefix.

Objects are enumerated once before the clock starts and then visited
round-robin, so every object gets the same share of requests.
"""

from functools import partial

from s3loadgen.benchmarks.base import Benchmark, BenchmarkSetupError, Operation
from s3loadgen.s3_ops import get, get_range, list_all_keys


class GetBenchmark(Benchmark):
    """GET: full or ranged downloads of pre-listed objects."""

    operation = "GET"

    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)
        self.keys: list[str] = []

    def describe(self) -> list[str]:
        lines = super().describe()
        if self.config.range_bytes:
            lines.append(
                f"Range query: reading first "
                f"{self.config.range_bytes} bytes"
            )
        return lines

    def prepare(self) -> None:
        """List every object under the prefix.

        Raises:
            BenchmarkSetupError: If the prefix holds no objects.
        """
        prefix = self.config.prefix
        self.log(f"Listing objects with prefix '{prefix}'...")
        self.keys = list_all_keys(self.client, prefix)
        if not self.keys:
            raise BenchmarkSetupError(
                f"No objects found with prefix '{prefix}'. "
                f"Please run PUT benchmark first."
            )
        self.log(f"Found {len(self.keys):,} objects to download")

    def build_operation(self, counter: int) -> Operation:
        key = self.keys[counter % len(self.keys)]
        if self.config.range_bytes:
            return partial(
                get_range, self.client, key, self.config.range_bytes,
            )
        return partial(get, self.client, key)
