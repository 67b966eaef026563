"""S3 Client Factory — Creates storage clients with configuration pre-loaded.

Usage::

    from s3loadgen.s3_client import S3Client

    client = S3Client()                                  # Default: boto3
    client = S3Client(bucket="bench", concurrency=200)   # Sized pool
    client = S3Client(backend="memory")                  # Dry run
"""

from __future__ import annotations

from typing import Any

from s3loadgen.config import (
    S3_ACCESS_KEY_ID,
    S3_BACKEND,
    S3_BUCKET,
    S3_ENDPOINTS,
    S3_REGION,
    S3_SECRET_ACCESS_KEY,
)

_BACKEND_CACHE: dict[str, type] = {}


def _get_backend_class(backend_name: str | None = None) -> type:
    """Resolve backend name to class (cached).

    Args:
        backend_name: Backend identifier. If None, uses
            ``S3_BACKEND`` from config.

    Returns:
        The S3 client class for the requested backend.

    Raises:
        ValueError: If the backend name is not recognized.
    """
    name = (backend_name or S3_BACKEND).lower()
    if name in _BACKEND_CACHE:
        return _BACKEND_CACHE[name]

    from s3loadgen.backends import S3ClientBoto3, S3ClientMemory

    mapping: dict[str, type] = {
        "boto3": S3ClientBoto3,
        "memory": S3ClientMemory,
    }

    cls = mapping.get(name)
    if cls is None:
        available = ", ".join(mapping.keys())
        raise ValueError(
            f"Unknown S3 backend '{name}'. "
            f"Available: {available}"
        )

    _BACKEND_CACHE[name] = cls
    return cls


def S3Client(
    *,
    bucket: str | None = None,
    endpoints: list[str] | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    region: str | None = None,
    concurrency: int = 10,
    delay: float = 0,
    backend: str | None = None,
) -> Any:
    """Create a storage client with pre-loaded configuration.

    Arguments left as None fall back to ``s3loadgen.config``.

    Args:
        bucket: Bucket every request targets.
        endpoints: S3 endpoint URLs to rotate across.
        access_key_id: Access key.
        secret_access_key: Secret key.
        region: Signing region.
        concurrency: Expected in-flight requests; sizes the HTTP pool.
        delay: Artificial latency per call (memory backend only).
        backend: Override backend (``boto3``, ``memory``).

    Returns:
        Client instance for the selected backend.
    """
    cls = _get_backend_class(backend)
    bucket = bucket if bucket is not None else S3_BUCKET

    if cls.__name__ == "S3ClientMemory":
        return cls(bucket=bucket or "memory", delay=delay)

    return cls(
        bucket=bucket,
        endpoints=endpoints if endpoints is not None else S3_ENDPOINTS,
        access_key_id=access_key_id or S3_ACCESS_KEY_ID,
        secret_access_key=secret_access_key or S3_SECRET_ACCESS_KEY,
        region=region or S3_REGION,
        max_pool_connections=max(10, concurrency),
    )


def get_client_backend_name(
    backend: str | None = None,
) -> str:
    """Get the class name of the selected S3 client backend."""
    return _get_backend_class(backend).__name__
