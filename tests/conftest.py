"""Shared fixtures: in-memory storage and instrumented clients."""

from __future__ import annotations

import random
import threading
import time

import pytest

from s3loadgen.backends import S3ClientMemory
from s3loadgen.models import BenchmarkConfig


class TrackingClient(S3ClientMemory):
    """Memory client that records how many calls overlap in time."""

    def __init__(self, *, delay: float = 0.0, **kwargs: object) -> None:
        super().__init__(delay=delay, **kwargs)
        self._track_lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.calls: list[str] = []

    def _enter(self, name: str) -> None:
        with self._track_lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
            self.calls.append(name)

    def _exit(self) -> None:
        with self._track_lock:
            self.active -= 1

    def put_object(self, key, data):
        self._enter("put_object")
        try:
            return super().put_object(key, data)
        finally:
            self._exit()

    def create_multipart_upload(self, key):
        with self._track_lock:
            self.calls.append("create_multipart_upload")
        return super().create_multipart_upload(key)

    def get_object(self, key, byte_range=None):
        self._enter("get_object")
        try:
            return super().get_object(key, byte_range)
        finally:
            self._exit()


class FlakyClient(S3ClientMemory):
    """Memory client whose PUTs fail for every ``fail_every``-th call."""

    def __init__(self, fail_every: int, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.fail_every = fail_every
        self._count = 0
        self._count_lock = threading.Lock()

    def put_object(self, key, data):
        with self._count_lock:
            self._count += 1
            count = self._count
        if count % self.fail_every == 0:
            raise ConnectionError(f"injected failure on call {count}")
        return super().put_object(key, data)


class ShuffledPartsClient(S3ClientMemory):
    """Part uploads finish in a random order; completions are captured."""

    def __init__(self, seed: int, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._rng = random.Random(seed)
        self._rng_lock = threading.Lock()
        self.completed_parts: list[list[int]] = []
        self.finish_order: list[int] = []
        self._order_lock = threading.Lock()

    def upload_part(self, key, upload_id, part_number, data):
        with self._rng_lock:
            pause = self._rng.uniform(0, 0.02)
        time.sleep(pause)
        etag = super().upload_part(key, upload_id, part_number, data)
        with self._order_lock:
            self.finish_order.append(part_number)
        return etag

    def complete_multipart_upload(self, key, upload_id, parts):
        self.completed_parts.append([p.part_number for p in parts])
        return super().complete_multipart_upload(key, upload_id, parts)


@pytest.fixture
def memory_client() -> S3ClientMemory:
    return S3ClientMemory(bucket="bench")


@pytest.fixture
def make_config():
    def factory(**overrides: object) -> BenchmarkConfig:
        values: dict[str, object] = {
            "bucket": "bench",
            "duration_seconds": 0.3,
            "concurrency": 2,
            "prefix": "test-object/",
            "object_size": 1024,
            "part_size": 8192,
            "pacing_seconds": 0.0,
        }
        values.update(overrides)
        return BenchmarkConfig(**values)

    return factory
