"""Benchmark commands — put, get and list.

Builds the run configuration from CLI arguments on top of
``s3loadgen.config``, checks the bucket is reachable, runs the
benchmark with periodic progress logging, and prints the report.
"""

from __future__ import annotations

import json
import signal
from argparse import Namespace
from threading import Event, Thread
from typing import Any

from s3loadgen.benchmarks import BENCHMARK_CLASSES, BenchmarkSetupError
from s3loadgen.benchmarks.base import Benchmark
from s3loadgen.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DURATION,
    DEFAULT_LIST_PACING,
    DEFAULT_LIST_PREFIX,
    DEFAULT_OBJECT_SIZE,
    DEFAULT_PACING,
    DEFAULT_PART_SIZE,
    DEFAULT_PREFIX,
    DEFAULT_STATS_INTERVAL,
    S3_BUCKET,
    S3_ENDPOINTS,
)
from s3loadgen.logging_setup import get_logger, setup_logging
from s3loadgen.models import BenchmarkConfig
from s3loadgen.s3_client import S3Client
from s3loadgen.stats import format_report
from s3loadgen.utils import format_duration, parse_duration, parse_size


def build_config(command: str, args: Namespace) -> BenchmarkConfig:
    """Resolve CLI arguments and defaults into a validated config.

    Raises:
        ValueError: On unparsable or out-of-range values.
    """
    raw_duration = getattr(args, "duration", None)
    duration = (
        parse_duration(str(raw_duration))
        if raw_duration else DEFAULT_DURATION
    )

    prefix = getattr(args, "prefix", None)
    if prefix is None:
        prefix = DEFAULT_LIST_PREFIX if command == "list" else DEFAULT_PREFIX

    pacing = getattr(args, "pacing", None)
    if pacing is None:
        pacing = DEFAULT_LIST_PACING if command == "list" else DEFAULT_PACING

    object_size = getattr(args, "object_size", None)
    part_size = getattr(args, "part_size", None)
    range_bytes = getattr(args, "range_bytes", None)
    concurrent = getattr(args, "concurrent", None)

    return BenchmarkConfig(
        bucket=getattr(args, "bucket", None) or S3_BUCKET,
        duration_seconds=duration,
        concurrency=(
            concurrent if concurrent is not None else DEFAULT_CONCURRENCY
        ),
        prefix=prefix,
        object_size=(
            parse_size(object_size) if object_size is not None
            else DEFAULT_OBJECT_SIZE
        ),
        part_size=(
            parse_size(part_size) if part_size is not None
            else DEFAULT_PART_SIZE
        ),
        multipart=not getattr(args, "disable_multipart", False),
        range_bytes=(
            parse_size(range_bytes) if range_bytes is not None else None
        ),
        pacing_seconds=pacing,
        part_concurrency=getattr(args, "part_concurrency", None),
    ).validate()


def _pool_size(command: str, config: BenchmarkConfig) -> int:
    """HTTP connections a run can hold open at once."""
    if command != "put" or not config.use_multipart:
        return config.concurrency
    parts = -(-config.object_size // config.part_size)
    if config.part_concurrency:
        parts = min(parts, config.part_concurrency)
    return config.concurrency * parts


def build_client(
    command: str,
    args: Namespace,
    config: BenchmarkConfig,
) -> Any:
    """Create the storage client for a run from CLI overrides."""
    endpoints = getattr(args, "endpoint", None)
    return S3Client(
        bucket=config.bucket,
        endpoints=(
            [ep.strip() for ep in endpoints.split(",") if ep.strip()]
            if endpoints else S3_ENDPOINTS
        ),
        access_key_id=getattr(args, "access_key", None),
        secret_access_key=getattr(args, "secret_key", None),
        region=getattr(args, "region", None),
        concurrency=_pool_size(command, config),
        delay=getattr(args, "simulated_latency", 0) or 0,
        backend=getattr(args, "backend", None),
    )


def check_bucket_access(client: Any) -> tuple[bool, str]:
    """Check if the bucket is accessible.

    Attempts to list a single object from the bucket to verify:
    - Network connectivity to S3 endpoints
    - Credentials are valid
    - Bucket exists and is accessible

    Returns:
        Tuple of (success: bool, message: str)
    """
    bucket = getattr(client, "bucket", "")
    try:
        client.list_objects("", 1, None)
        return True, f"Bucket '{bucket}' is accessible"
    except Exception as e:
        error_msg = str(e)
        if "NoSuchBucket" in error_msg:
            return False, f"Bucket '{bucket}' does not exist"
        elif "AccessDenied" in error_msg or "InvalidAccessKeyId" in error_msg:
            return False, f"Access denied to bucket '{bucket}' - check credentials"
        elif "Could not connect" in error_msg or "Connection refused" in error_msg:
            return False, "Cannot connect to S3 endpoint - check --endpoint"
        elif "timeout" in error_msg.lower() or "timed out" in error_msg.lower():
            return False, "Connection timeout to S3 endpoint"
        else:
            return False, f"Bucket access failed: {error_msg}"


def _start_progress_reporter(
    benchmark: Benchmark,
    interval: int,
    stop: Event,
) -> Thread:
    logger = get_logger(benchmark=benchmark.operation)

    def reporter() -> None:
        while not stop.wait(interval):
            snapshot = benchmark.progress()
            logger.info(
                f"PROGRESS: state={snapshot['state']}, "
                f"issued={snapshot['issued']:,}, "
                f"in_flight={snapshot['in_flight']}, "
                f"elapsed={format_duration(int(snapshot['elapsed']))}",
                extra={"op_type": "STATS"},
            )

    thread = Thread(target=reporter, daemon=True)
    thread.start()
    return thread


def cmd_run(args: Namespace) -> int:
    """Run the benchmark named by ``args.command``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Exit code (0 success, 1 setup/access failure, 2 bad config).
    """
    setup_logging(level=getattr(args, "log_level", None))
    command = args.command
    logger = get_logger(benchmark=command.upper())

    try:
        config = build_config(command, args)
        client = build_client(command, args, config)
    except ValueError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 2

    if not getattr(args, "skip_preflight", False):
        ok, message = check_bucket_access(client)
        if not ok:
            logger.error(message)
            return 1
        logger.debug(message)

    stop_event = Event()

    def signal_handler(sig: int, frame: object) -> None:
        logger.info("Received stop signal, draining in-flight operations...")
        stop_event.set()

    previous_handlers = {
        sig: signal.signal(sig, signal_handler)
        for sig in (signal.SIGTERM, signal.SIGINT)
    }

    benchmark = BENCHMARK_CLASSES[command](client, config, stop_event)

    stats_interval = getattr(args, "stats_interval", None)
    if stats_interval is None:
        stats_interval = DEFAULT_STATS_INTERVAL
    reporter_stop = Event()
    reporter: Thread | None = None
    if stats_interval and stats_interval > 0:
        reporter = _start_progress_reporter(
            benchmark, stats_interval, reporter_stop,
        )

    try:
        stats = benchmark.run()
    except BenchmarkSetupError as exc:
        logger.error(str(exc))
        return 1
    finally:
        if reporter:
            reporter_stop.set()
            reporter.join(timeout=1)
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    if getattr(args, "json", False):
        print(json.dumps(stats.to_dict(), indent=2))
    else:
        print()
        print(format_report(stats))
    return 0
