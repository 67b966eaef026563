"""S3 client backends for benchmarking.

Available clients:
    S3ClientBoto3   - boto3 against one or more S3 endpoints (default)
    S3ClientMemory  - in-process object store, for dry runs and tests

Every backend is bound to one bucket and is safe to share between
threads once constructed.
"""

from __future__ import annotations

import hashlib
import itertools
import threading
import time
import uuid
from typing import Any

import boto3
import urllib3
from botocore.config import Config
from botocore.exceptions import ClientError

from s3loadgen.config import (
    LIST_PAGE_SIZE,
    S3_ADDRESSING_STYLE,
    S3_CONNECT_TIMEOUT,
    S3_MAX_ATTEMPTS,
    S3_READ_TIMEOUT,
    S3_VERIFY_SSL,
)
from s3loadgen.models import UploadPart

if not S3_VERIFY_SSL:
    # Suppress SSL warnings for self-signed certificates
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


class S3ClientBoto3:
    """boto3 S3 client with endpoint rotation.

    One botocore client is built per endpoint at construction time and
    requests rotate across them. botocore clients are thread-safe, so a
    single instance serves every concurrent operation of a run.
    """

    _counter = itertools.count()

    def __init__(
        self,
        *,
        bucket: str,
        endpoints: list[str],
        access_key_id: str,
        secret_access_key: str,
        region: str,
        max_pool_connections: int = 10,
        addressing_style: str = S3_ADDRESSING_STYLE,
        verify_ssl: bool = S3_VERIFY_SSL,
        max_attempts: int = S3_MAX_ATTEMPTS,
    ) -> None:
        self.bucket = bucket
        self.endpoints = list(endpoints)
        self.region = region

        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
            retries={"max_attempts": max_attempts, "mode": "standard"},
            connect_timeout=S3_CONNECT_TIMEOUT,
            read_timeout=S3_READ_TIMEOUT,
            max_pool_connections=max_pool_connections,
        )
        session = boto3.session.Session(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )
        # ``None`` lets botocore resolve the AWS endpoint for the region.
        self._clients: tuple[Any, ...] = tuple(
            session.client(
                "s3",
                endpoint_url=endpoint,
                verify=verify_ssl,
                config=config,
            )
            for endpoint in (self.endpoints or [None])
        )

    def _get_client(self) -> Any:
        """Get a botocore client, rotating across endpoints."""
        idx = next(S3ClientBoto3._counter) % len(self._clients)
        return self._clients[idx]

    def put_object(self, key: str, data: bytes) -> dict:
        """Upload object in a single request."""
        return self._get_client().put_object(
            Bucket=self.bucket, Key=key, Body=data,
        )

    def create_multipart_upload(self, key: str) -> str:
        """Start a multipart upload and return its upload id."""
        response = self._get_client().create_multipart_upload(
            Bucket=self.bucket, Key=key,
        )
        upload_id = response.get("UploadId")
        if not upload_id:
            raise RuntimeError(
                f"CreateMultipartUpload for {key} returned no UploadId"
            )
        return upload_id

    def upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes,
    ) -> str:
        """Upload one part and return its ETag."""
        response = self._get_client().upload_part(
            Bucket=self.bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=data,
        )
        return response.get("ETag", "")

    def complete_multipart_upload(
        self,
        key: str,
        upload_id: str,
        parts: list[UploadPart],
    ) -> dict:
        """Assemble the uploaded parts, in the order given."""
        return self._get_client().complete_multipart_upload(
            Bucket=self.bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={
                "Parts": [
                    {"PartNumber": part.part_number, "ETag": part.etag}
                    for part in parts
                ],
            },
        )

    def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        """Discard an unfinished multipart upload."""
        self._get_client().abort_multipart_upload(
            Bucket=self.bucket, Key=key, UploadId=upload_id,
        )

    def list_multipart_uploads(
        self,
        prefix: str = "",
    ) -> list[tuple[str, str]]:
        """Return ``(key, upload_id)`` for every open upload under prefix."""
        client = self._get_client()
        uploads: list[tuple[str, str]] = []
        params: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        while True:
            response = client.list_multipart_uploads(**params)
            for upload in response.get("Uploads", []):
                uploads.append((upload["Key"], upload["UploadId"]))
            if not response.get("IsTruncated"):
                return uploads
            params["KeyMarker"] = response.get("NextKeyMarker", "")
            params["UploadIdMarker"] = response.get(
                "NextUploadIdMarker", "",
            )

    def get_object(
        self,
        key: str,
        byte_range: str | None = None,
    ) -> bytes:
        """Download an object, or part of it when a Range is given."""
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if byte_range:
            params["Range"] = byte_range
        response = self._get_client().get_object(**params)
        return response["Body"].read()

    def list_objects(
        self,
        prefix: str = "",
        max_keys: int = LIST_PAGE_SIZE,
        continuation_token: str | None = None,
    ) -> dict:
        """List objects using ListObjectsV2."""
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "MaxKeys": max_keys,
        }
        if prefix:
            params["Prefix"] = prefix
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        return self._get_client().list_objects_v2(**params)

    def delete_objects(self, keys: list[str]) -> dict:
        """Batch delete up to 1000 objects.

        Returns:
            Dict with 'Deleted' and 'Errors' lists.
        """
        response = self._get_client().delete_objects(
            Bucket=self.bucket,
            Delete={"Objects": [{"Key": k} for k in keys]},
        )
        return {
            "Deleted": response.get("Deleted", []),
            "Errors": response.get("Errors", []),
        }


def _client_error(code: str, message: str, operation: str) -> ClientError:
    """Build the botocore error a real endpoint would have produced."""
    status = {"NoSuchKey": 404, "NoSuchUpload": 404}.get(code, 400)
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class S3ClientMemory:
    """In-process object store speaking the same interface as S3.

    Used for dry runs of the harness and by the test-suite. ``delay``
    adds an artificial latency in seconds to every call. Errors are
    raised as botocore ``ClientError`` with S3 error codes.
    """

    def __init__(
        self,
        *,
        bucket: str = "memory",
        delay: float = 0,
    ) -> None:
        self.bucket = bucket
        self.delay = delay
        self._lock = threading.Lock()
        self._objects: dict[str, bytes] = {}
        self._uploads: dict[str, tuple[str, dict[int, tuple[str, bytes]]]] = {}

    def _pause(self) -> None:
        if self.delay:
            time.sleep(self.delay)

    @staticmethod
    def _etag(data: bytes) -> str:
        return f'"{hashlib.md5(data).hexdigest()}"'

    def put_object(self, key: str, data: bytes) -> dict:
        self._pause()
        with self._lock:
            self._objects[key] = bytes(data)
        return {"ETag": self._etag(data)}

    def create_multipart_upload(self, key: str) -> str:
        self._pause()
        upload_id = uuid.uuid4().hex
        with self._lock:
            self._uploads[upload_id] = (key, {})
        return upload_id

    def upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes,
    ) -> str:
        self._pause()
        etag = self._etag(data)
        with self._lock:
            upload = self._uploads.get(upload_id)
            if upload is None or upload[0] != key:
                raise _client_error(
                    "NoSuchUpload", f"Unknown upload {upload_id}",
                    "UploadPart",
                )
            upload[1][part_number] = (etag, bytes(data))
        return etag

    def complete_multipart_upload(
        self,
        key: str,
        upload_id: str,
        parts: list[UploadPart],
    ) -> dict:
        """Assemble parts; they must be 1..N ascending with known ETags."""
        self._pause()
        with self._lock:
            upload = self._uploads.get(upload_id)
            if upload is None or upload[0] != key:
                raise _client_error(
                    "NoSuchUpload", f"Unknown upload {upload_id}",
                    "CompleteMultipartUpload",
                )
            numbers = [part.part_number for part in parts]
            if not parts or numbers != list(range(1, len(parts) + 1)):
                raise _client_error(
                    "InvalidPartOrder",
                    f"Parts must be ascending from 1, got {numbers}",
                    "CompleteMultipartUpload",
                )
            uploaded = upload[1]
            chunks: list[bytes] = []
            for part in parts:
                stored = uploaded.get(part.part_number)
                if stored is None or stored[0] != part.etag:
                    raise _client_error(
                        "InvalidPart",
                        f"Part {part.part_number} not uploaded",
                        "CompleteMultipartUpload",
                    )
                chunks.append(stored[1])
            data = b"".join(chunks)
            self._objects[key] = data
            del self._uploads[upload_id]
        return {"Key": key, "ETag": self._etag(data)}

    def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        self._pause()
        with self._lock:
            upload = self._uploads.get(upload_id)
            if upload is None or upload[0] != key:
                raise _client_error(
                    "NoSuchUpload", f"Unknown upload {upload_id}",
                    "AbortMultipartUpload",
                )
            del self._uploads[upload_id]

    def list_multipart_uploads(
        self,
        prefix: str = "",
    ) -> list[tuple[str, str]]:
        self._pause()
        with self._lock:
            return sorted(
                (key, upload_id)
                for upload_id, (key, _parts) in self._uploads.items()
                if key.startswith(prefix)
            )

    def get_object(
        self,
        key: str,
        byte_range: str | None = None,
    ) -> bytes:
        self._pause()
        with self._lock:
            data = self._objects.get(key)
        if data is None:
            raise _client_error(
                "NoSuchKey", f"{key} does not exist", "GetObject",
            )
        if not byte_range:
            return data
        start, end = self._parse_range(byte_range, len(data))
        return data[start:end + 1]

    @staticmethod
    def _parse_range(byte_range: str, size: int) -> tuple[int, int]:
        unit, _, span = byte_range.partition("=")
        first, _, last = span.partition("-")
        if unit.strip() != "bytes" or not first.isdigit():
            raise _client_error(
                "InvalidRange", f"Unsupported range {byte_range}",
                "GetObject",
            )
        start = int(first)
        end = int(last) if last.isdigit() else size - 1
        if start >= size and size > 0:
            raise _client_error(
                "InvalidRange", f"Range {byte_range} beyond {size}",
                "GetObject",
            )
        return start, min(end, size - 1)

    def list_objects(
        self,
        prefix: str = "",
        max_keys: int = LIST_PAGE_SIZE,
        continuation_token: str | None = None,
    ) -> dict:
        """List keys in ListObjectsV2 shape.

        The continuation token is the last key of the previous page.
        """
        self._pause()
        with self._lock:
            keys = sorted(
                (k, len(v)) for k, v in self._objects.items()
                if k.startswith(prefix)
            )
        if continuation_token:
            keys = [item for item in keys if item[0] > continuation_token]

        page = keys[:max_keys]
        is_truncated = len(keys) > max_keys
        response: dict[str, Any] = {
            "Contents": [{"Key": k, "Size": size} for k, size in page],
            "KeyCount": len(page),
            "IsTruncated": is_truncated,
            "MaxKeys": max_keys,
            "Prefix": prefix,
        }
        if is_truncated:
            response["NextContinuationToken"] = page[-1][0]
        if continuation_token:
            response["ContinuationToken"] = continuation_token
        return response

    def delete_objects(self, keys: list[str]) -> dict:
        self._pause()
        deleted: list[dict] = []
        with self._lock:
            for key in keys:
                if self._objects.pop(key, None) is not None:
                    deleted.append({"Key": key})
        return {"Deleted": deleted, "Errors": []}

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)
