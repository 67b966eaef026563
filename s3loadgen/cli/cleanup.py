"""Cleanup command — Delete benchmark objects and abort dangling uploads."""

from __future__ import annotations

from argparse import Namespace
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from s3loadgen.cli.run import build_client, build_config
from s3loadgen.config import (
    CLEANUP_MAX_PARALLEL,
    DELETE_BATCH_SIZE,
)
from s3loadgen.logging_setup import get_logger, setup_logging
from s3loadgen.s3_ops import iter_list_pages

_S3_ERRORS = (ClientError, BotoCoreError, OSError)


def delete_prefix(client: Any, prefix: str) -> int:
    """List and delete all objects with given prefix.

    Listing pages become delete batches that run in parallel.

    Args:
        client: Storage client.
        prefix: Key prefix to clean up.

    Returns:
        Number of objects deleted.
    """
    logger = get_logger()
    deleted_total = 0

    def delete_batch(batch_keys: list[str]) -> int:
        try:
            result = client.delete_objects(batch_keys)
        except _S3_ERRORS as exc:
            logger.warning(f"Error deleting batch: {exc}")
            return 0
        for error in result.get("Errors", []):
            logger.warning(
                f"Could not delete {error.get('Key')}: "
                f"{error.get('Code')}"
            )
        return len(result.get("Deleted", []))

    with ThreadPoolExecutor(max_workers=CLEANUP_MAX_PARALLEL) as executor:
        futures = []
        for page in iter_list_pages(client, prefix, DELETE_BATCH_SIZE):
            keys = [obj["Key"] for obj in page.get("Contents", [])]
            if keys:
                futures.append(executor.submit(delete_batch, keys))

        for future in as_completed(futures):
            deleted_total += future.result()

    return deleted_total


def abort_uploads(client: Any, prefix: str) -> int:
    """Abort every in-progress multipart upload under ``prefix``.

    Failed multipart PUTs leave their sessions open; this reclaims the
    parts they already stored.

    Returns:
        Number of uploads aborted.
    """
    logger = get_logger()
    aborted = 0
    for key, upload_id in client.list_multipart_uploads(prefix):
        try:
            client.abort_multipart_upload(key, upload_id)
            aborted += 1
        except _S3_ERRORS as exc:
            logger.warning(f"Could not abort upload {upload_id} of {key}: {exc}")
    return aborted


def cmd_cleanup(args: Namespace) -> int:
    """Clean up benchmark objects from the bucket.

    Args:
        args: Parsed CLI arguments with optional ``prefix`` attribute.

    Returns:
        Exit code (0 for success, 1 if listing failed).
    """
    setup_logging(level=getattr(args, "log_level", None))
    logger = get_logger()

    try:
        config = build_config("cleanup", args)
        client = build_client("cleanup", args, config)
    except ValueError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 2

    prefix = config.prefix
    if not prefix:
        logger.error("Refusing to clean up an empty prefix (whole bucket)")
        return 2

    print(f"Cleaning up objects with prefix '{prefix}'")
    print(f"Bucket: {config.bucket}")
    print("=" * 80)

    try:
        aborted = abort_uploads(client, prefix)
        deleted = delete_prefix(client, prefix)
    except _S3_ERRORS as exc:
        logger.error(f"Cleanup failed: {exc}")
        return 1

    print(f"Multipart uploads aborted: {aborted}")
    print(f"Total objects deleted: {deleted}")
    return 0
