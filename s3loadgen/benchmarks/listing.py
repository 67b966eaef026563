from __future__ import annotations

"""LIST benchmark: repeatedly paginate through the whole prefix."""

from functools import partial

from s3loadgen.benchmarks.base import Benchmark, Operation
from s3loadgen.s3_ops import list_all


class ListBenchmark(Benchmark):
    """LIST: every operation is one full paginated listing."""

    operation = "LIST"

    def describe(self) -> list[str]:
        return super().describe() + [f"Prefix: '{self.config.prefix}'"]

    def build_operation(self, counter: int) -> Operation:
        return partial(list_all, self.client, self.config.prefix)
