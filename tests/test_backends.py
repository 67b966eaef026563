"""Tests for the storage client backends."""

from __future__ import annotations

import io

import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from s3loadgen.backends import S3ClientBoto3, S3ClientMemory
from s3loadgen.models import UploadPart
from s3loadgen.s3_client import S3Client, get_client_backend_name


@pytest.fixture
def boto_client():
    client = S3ClientBoto3(
        bucket="bench",
        endpoints=["http://localhost:9000"],
        access_key_id="changeme",
        secret_access_key="changeme",
        region="us-east-1",
    )
    stubber = Stubber(client._clients[0])
    with stubber:
        yield client, stubber
    stubber.assert_no_pending_responses()


class TestS3ClientBoto3:
    def test_put_object(self, boto_client):
        client, stubber = boto_client
        stubber.add_response(
            "put_object",
            {"ETag": '"abc"'},
            {"Bucket": "bench", "Key": "k", "Body": b"data"},
        )
        assert client.put_object("k", b"data")["ETag"] == '"abc"'

    def test_get_object_with_range(self, boto_client):
        client, stubber = boto_client
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(b"0123456789"), 10)},
            {"Bucket": "bench", "Key": "k", "Range": "bytes=0-9"},
        )
        assert client.get_object("k", byte_range="bytes=0-9") == b"0123456789"

    def test_multipart_calls(self, boto_client):
        client, stubber = boto_client
        stubber.add_response(
            "create_multipart_upload",
            {"UploadId": "u-1", "Bucket": "bench", "Key": "k"},
            {"Bucket": "bench", "Key": "k"},
        )
        stubber.add_response(
            "upload_part",
            {"ETag": '"e1"'},
            {
                "Bucket": "bench", "Key": "k", "UploadId": "u-1",
                "PartNumber": 1, "Body": b"part",
            },
        )
        stubber.add_response(
            "complete_multipart_upload",
            {"Bucket": "bench", "Key": "k"},
            {
                "Bucket": "bench", "Key": "k", "UploadId": "u-1",
                "MultipartUpload": {"Parts": [
                    {"PartNumber": 1, "ETag": '"e1"'},
                    {"PartNumber": 2, "ETag": '"e2"'},
                ]},
            },
        )

        assert client.create_multipart_upload("k") == "u-1"
        assert client.upload_part("k", "u-1", 1, b"part") == '"e1"'
        client.complete_multipart_upload(
            "k", "u-1",
            [UploadPart(1, '"e1"'), UploadPart(2, '"e2"')],
        )

    def test_list_objects_params(self, boto_client):
        client, stubber = boto_client
        stubber.add_response(
            "list_objects_v2",
            {"Contents": [{"Key": "p/a"}], "IsTruncated": False, "KeyCount": 1},
            {
                "Bucket": "bench", "MaxKeys": 1000, "Prefix": "p/",
                "ContinuationToken": "tok",
            },
        )
        page = client.list_objects("p/", 1000, "tok")
        assert [obj["Key"] for obj in page["Contents"]] == ["p/a"]

    def test_list_objects_without_prefix(self, boto_client):
        client, stubber = boto_client
        stubber.add_response(
            "list_objects_v2",
            {"IsTruncated": False, "KeyCount": 0},
            {"Bucket": "bench", "MaxKeys": 1},
        )
        assert client.list_objects("", 1, None)["KeyCount"] == 0

    def test_list_multipart_uploads_follows_markers(self, boto_client):
        client, stubber = boto_client
        stubber.add_response(
            "list_multipart_uploads",
            {
                "Uploads": [{"Key": "p/a", "UploadId": "u1"}],
                "IsTruncated": True,
                "NextKeyMarker": "p/a",
                "NextUploadIdMarker": "u1",
            },
            {"Bucket": "bench", "Prefix": "p/"},
        )
        stubber.add_response(
            "list_multipart_uploads",
            {"Uploads": [{"Key": "p/b", "UploadId": "u2"}], "IsTruncated": False},
            {
                "Bucket": "bench", "Prefix": "p/",
                "KeyMarker": "p/a", "UploadIdMarker": "u1",
            },
        )
        assert client.list_multipart_uploads("p/") == [
            ("p/a", "u1"), ("p/b", "u2"),
        ]

    def test_service_error_propagates(self, boto_client):
        client, stubber = boto_client
        stubber.add_client_error("put_object", service_error_code="SlowDown")
        with pytest.raises(ClientError):
            client.put_object("k", b"data")


class TestS3ClientMemory:
    def test_round_trip_and_range(self, memory_client):
        memory_client.put_object("k", b"0123456789")
        assert memory_client.get_object("k") == b"0123456789"
        assert memory_client.get_object("k", "bytes=0-3") == b"0123"
        assert memory_client.get_object("k", "bytes=5-") == b"56789"

    def test_missing_key(self, memory_client):
        with pytest.raises(ClientError) as excinfo:
            memory_client.get_object("nope")
        assert excinfo.value.response["Error"]["Code"] == "NoSuchKey"

    def test_pagination(self, memory_client):
        for i in range(5):
            memory_client.put_object(f"p/{i}", b"")
        first = memory_client.list_objects("p/", 3, None)
        assert first["KeyCount"] == 3
        assert first["IsTruncated"] is True
        second = memory_client.list_objects(
            "p/", 3, first["NextContinuationToken"],
        )
        assert [o["Key"] for o in second["Contents"]] == ["p/3", "p/4"]
        assert second["IsTruncated"] is False

    def test_completion_requires_ascending_parts(self, memory_client):
        upload_id = memory_client.create_multipart_upload("k")
        e1 = memory_client.upload_part("k", upload_id, 1, b"a")
        e2 = memory_client.upload_part("k", upload_id, 2, b"b")

        with pytest.raises(ClientError) as excinfo:
            memory_client.complete_multipart_upload(
                "k", upload_id, [UploadPart(2, e2), UploadPart(1, e1)],
            )
        assert excinfo.value.response["Error"]["Code"] == "InvalidPartOrder"

        memory_client.complete_multipart_upload(
            "k", upload_id, [UploadPart(1, e1), UploadPart(2, e2)],
        )
        assert memory_client.get_object("k") == b"ab"

    def test_completion_rejects_unknown_etag(self, memory_client):
        upload_id = memory_client.create_multipart_upload("k")
        memory_client.upload_part("k", upload_id, 1, b"a")
        with pytest.raises(ClientError):
            memory_client.complete_multipart_upload(
                "k", upload_id, [UploadPart(1, '"bogus"')],
            )

    def test_abort_and_delete(self, memory_client):
        upload_id = memory_client.create_multipart_upload("p/k")
        assert memory_client.list_multipart_uploads("p/") == [("p/k", upload_id)]
        memory_client.abort_multipart_upload("p/k", upload_id)
        assert memory_client.list_multipart_uploads("p/") == []

        memory_client.put_object("p/x", b"1")
        result = memory_client.delete_objects(["p/x", "p/missing"])
        assert result["Deleted"] == [{"Key": "p/x"}]
        assert len(memory_client) == 0


class TestClientFactory:
    def test_memory_backend(self):
        client = S3Client(backend="memory", bucket="b")
        assert isinstance(client, S3ClientMemory)
        assert client.bucket == "b"

    def test_boto3_backend(self):
        client = S3Client(
            backend="boto3", bucket="b", endpoints=["http://a:9000", "http://b:9000"],
            access_key_id="x", secret_access_key="y", region="us-east-1",
        )
        assert isinstance(client, S3ClientBoto3)
        assert len(client._clients) == 2

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            S3Client(backend="ftp")

    def test_backend_name(self):
        assert get_client_backend_name("memory") == "S3ClientMemory"
