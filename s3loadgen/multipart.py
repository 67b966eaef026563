"""Multipart upload orchestration.

Splits a payload into fixed-size parts, uploads the parts in parallel
and completes the upload with the parts in ascending part-number order.

Usage::

    from s3loadgen.multipart import multipart_upload

    nbytes = multipart_upload(client, key, data, part_size=8 * 1024**2)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any

from s3loadgen.models import UploadPart

logger = logging.getLogger("s3loadgen.multipart")


class MultipartUploadError(RuntimeError):
    """One or more parts of a multipart upload failed.

    The upload session is left open on the server; ``s3loadgen cleanup``
    aborts such sessions.
    """

    def __init__(
        self,
        key: str,
        upload_id: str,
        failed_parts: dict[int, BaseException],
    ) -> None:
        self.key = key
        self.upload_id = upload_id
        self.failed_parts = failed_parts
        numbers = ", ".join(str(n) for n in sorted(failed_parts))
        first = failed_parts[min(failed_parts)]
        super().__init__(
            f"Multipart upload of {key} failed on part(s) {numbers}: "
            f"{type(first).__name__}: {first}"
        )


def split_payload(data: bytes, part_size: int) -> list[bytes]:
    """Cut ``data`` into ``part_size`` chunks; the last may be shorter.

    An empty payload yields a single empty part so that a forced
    multipart upload of zero bytes still has part 1.
    """
    if part_size <= 0:
        raise ValueError(f"Part size must be positive: {part_size}")
    if not data:
        return [b""]
    return [
        data[offset:offset + part_size]
        for offset in range(0, len(data), part_size)
    ]


def _upload_one(
    client: Any,
    key: str,
    upload_id: str,
    part_number: int,
    chunk: bytes,
) -> UploadPart:
    etag = client.upload_part(key, upload_id, part_number, chunk)
    return UploadPart(part_number=part_number, etag=etag)


def multipart_upload(
    client: Any,
    key: str,
    data: bytes,
    part_size: int,
    *,
    max_workers: int | None = None,
) -> int:
    """Upload ``data`` to ``key`` as a multipart upload.

    Args:
        client: Storage client (see ``s3loadgen.backends``).
        key: Destination object key.
        data: Full payload.
        part_size: Bytes per part.
        max_workers: Cap on parallel part uploads. None starts one
            thread per part.

    Returns:
        Total bytes uploaded (``len(data)``).

    Raises:
        MultipartUploadError: If any part fails. Raised only after every
            part has finished.
        Exception: Whatever the client raises from initiation or
            completion.
    """
    upload_id = client.create_multipart_upload(key)
    chunks = split_payload(data, part_size)

    workers = len(chunks) if max_workers is None else max_workers
    with ThreadPoolExecutor(
        max_workers=max(1, min(workers, len(chunks))),
        thread_name_prefix="part",
    ) as executor:
        futures = {
            executor.submit(
                _upload_one, client, key, upload_id, number, chunk,
            ): number
            for number, chunk in enumerate(chunks, start=1)
        }
        # Every part finishes before we decide anything.
        wait(futures)

    parts: list[UploadPart] = []
    failed: dict[int, BaseException] = {}
    for future, number in futures.items():
        exc = future.exception()
        if exc is not None:
            failed[number] = exc
        else:
            parts.append(future.result())

    if failed:
        raise MultipartUploadError(key, upload_id, failed)

    parts.sort(key=lambda part: part.part_number)
    client.complete_multipart_upload(key, upload_id, parts)

    logger.debug(
        f"Completed multipart upload {key} ({len(parts)} parts, "
        f"{len(data)} bytes)"
    )
    return len(data)
