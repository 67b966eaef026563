from __future__ import annotations

"""PUT benchmark: upload fresh random objects under the prefix.

Writes to: {prefix}{counter}-{nanosecond timestamp}
"""

from functools import partial

from s3loadgen.benchmarks.base import Benchmark, Operation
from s3loadgen.s3_ops import put_multipart, put_simple
from s3loadgen.utils import format_bytes, generate_data, make_object_key


class PutBenchmark(Benchmark):
    """PUT: single-shot or multipart uploads of ``object_size`` bytes.

    Multipart is used when it is enabled and the object is at least one
    part long; smaller objects always take the single-request path.
    """

    operation = "PUT"

    def describe(self) -> list[str]:
        config = self.config
        return super().describe() + [
            f"Prefix: '{config.prefix}'",
            f"Object size: {config.object_size} bytes "
            f"({format_bytes(config.object_size)})",
            f"Part size: {config.part_size} bytes "
            f"({format_bytes(config.part_size)})",
            f"Multipart: {config.use_multipart}",
        ]

    def build_operation(self, counter: int) -> Operation:
        config = self.config
        key = make_object_key(config.prefix, counter)
        data = generate_data(config.object_size)

        if config.use_multipart:
            return partial(
                put_multipart,
                self.client,
                key,
                data,
                config.part_size,
                max_workers=config.part_concurrency,
            )
        return partial(put_simple, self.client, key, data)
