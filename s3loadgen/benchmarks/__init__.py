from __future__ import annotations

# Benchmark classes registry and entry points

from threading import Event
from typing import Any

from s3loadgen.benchmarks.base import (
    Benchmark,
    BenchmarkSetupError,
    BenchmarkState,
)
from s3loadgen.benchmarks.get import GetBenchmark
from s3loadgen.benchmarks.listing import ListBenchmark
from s3loadgen.benchmarks.put import PutBenchmark
from s3loadgen.models import BenchmarkConfig
from s3loadgen.stats import RunStats

BENCHMARK_CLASSES: dict[str, type[Benchmark]] = {
    "put": PutBenchmark,
    "get": GetBenchmark,
    "list": ListBenchmark,
}


def run_benchmark(
    name: str,
    config: BenchmarkConfig,
    client: Any = None,
    stop_event: Event | None = None,
) -> RunStats:
    """Build and run the named benchmark.

    A client is created from ``s3loadgen.config`` when none is given.
    """
    benchmark_class = BENCHMARK_CLASSES.get(name)
    if benchmark_class is None:
        available = ", ".join(BENCHMARK_CLASSES)
        raise ValueError(
            f"Unknown benchmark '{name}'. Available: {available}"
        )
    if client is None:
        from s3loadgen.s3_client import S3Client

        client = S3Client(
            bucket=config.bucket, concurrency=config.concurrency,
        )
    return benchmark_class(client, config, stop_event).run()


def run_put_benchmark(config: BenchmarkConfig, **kwargs: Any) -> RunStats:
    return run_benchmark("put", config, **kwargs)


def run_get_benchmark(config: BenchmarkConfig, **kwargs: Any) -> RunStats:
    return run_benchmark("get", config, **kwargs)


def run_list_benchmark(config: BenchmarkConfig, **kwargs: Any) -> RunStats:
    return run_benchmark("list", config, **kwargs)


__all__ = [
    "BENCHMARK_CLASSES",
    "Benchmark",
    "BenchmarkSetupError",
    "BenchmarkState",
    "GetBenchmark",
    "ListBenchmark",
    "PutBenchmark",
    "run_benchmark",
    "run_get_benchmark",
    "run_list_benchmark",
    "run_put_benchmark",
]
