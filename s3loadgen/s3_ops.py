"""Core S3 Operations — the request shapes a benchmark issues.

Each function performs one benchmark operation against a storage
client and returns the bytes moved or items counted. Failures
propagate as exceptions; the benchmark driver turns them into
failed outcomes. Nothing here retries.

Usage::

    from s3loadgen.s3_ops import put_simple, get, list_all

    nbytes = put_simple(client, key, data)
    nbytes = get(client, key)
    count = list_all(client, prefix)
"""

from __future__ import annotations

from typing import Any

from s3loadgen.config import LIST_PAGE_SIZE
from s3loadgen.multipart import multipart_upload
from s3loadgen.utils import first_bytes_range

__all__ = [
    "put_simple",
    "put_multipart",
    "get",
    "get_range",
    "list_all",
    "list_all_keys",
    "iter_list_pages",
]


def put_simple(client: Any, key: str, data: bytes) -> int:
    """Single-request PUT. Returns bytes uploaded."""
    client.put_object(key, data)
    return len(data)


def put_multipart(
    client: Any,
    key: str,
    data: bytes,
    part_size: int,
    *,
    max_workers: int | None = None,
) -> int:
    """Multipart PUT with parallel parts. Returns bytes uploaded."""
    return multipart_upload(
        client, key, data, part_size, max_workers=max_workers,
    )


def get(client: Any, key: str) -> int:
    """Download a whole object. Returns bytes received."""
    return len(client.get_object(key))


def get_range(client: Any, key: str, length: int) -> int:
    """Download the first ``length`` bytes of an object.

    Returns bytes received, which is less than ``length`` for
    objects shorter than the range.
    """
    return len(client.get_object(key, byte_range=first_bytes_range(length)))


def iter_list_pages(
    client: Any,
    prefix: str = "",
    page_size: int = LIST_PAGE_SIZE,
):
    """Yield ListObjectsV2 pages until the listing is exhausted.

    Pagination stops when a page is not truncated or carries no
    continuation token.
    """
    continuation_token: str | None = None
    while True:
        page = client.list_objects(prefix, page_size, continuation_token)
        yield page
        if not page.get("IsTruncated"):
            return
        continuation_token = page.get("NextContinuationToken")
        if not continuation_token:
            return


def list_all(
    client: Any,
    prefix: str = "",
    page_size: int = LIST_PAGE_SIZE,
) -> int:
    """Paginate through every object under ``prefix``.

    Returns:
        Number of objects listed across all pages.
    """
    return sum(
        len(page.get("Contents", []))
        for page in iter_list_pages(client, prefix, page_size)
    )


def list_all_keys(
    client: Any,
    prefix: str = "",
    page_size: int = LIST_PAGE_SIZE,
) -> list[str]:
    """Return every key under ``prefix`` in listing order."""
    return [
        obj["Key"]
        for page in iter_list_pages(client, prefix, page_size)
        for obj in page.get("Contents", [])
    ]
