"""Tests for multipart upload orchestration."""

from __future__ import annotations

import threading

import pytest

from s3loadgen.backends import S3ClientMemory
from s3loadgen.multipart import (
    MultipartUploadError,
    multipart_upload,
    split_payload,
)
from tests.conftest import ShuffledPartsClient

MIB = 1024 * 1024


class TestSplitPayload:
    def test_last_part_holds_remainder(self):
        data = bytes(20 * MIB)
        parts = split_payload(data, 8 * MIB)
        assert [len(p) for p in parts] == [8 * MIB, 8 * MIB, 4 * MIB]

    def test_exact_multiple(self):
        parts = split_payload(bytes(16), 8)
        assert [len(p) for p in parts] == [8, 8]

    def test_smaller_than_one_part(self):
        assert split_payload(b"abc", 8) == [b"abc"]

    def test_empty_payload_is_one_empty_part(self):
        assert split_payload(b"", 8) == [b""]

    def test_parts_preserve_content_order(self):
        data = bytes(range(10))
        assert b"".join(split_payload(data, 3)) == data

    def test_rejects_non_positive_part_size(self):
        with pytest.raises(ValueError):
            split_payload(b"abc", 0)


class TestMultipartUpload:
    def test_twenty_mib_in_eight_mib_parts(self):
        client = ShuffledPartsClient(seed=7)
        data = bytes(20 * MIB)

        assert multipart_upload(client, "k", data, 8 * MIB) == 20 * MIB
        assert client.completed_parts == [[1, 2, 3]]
        assert len(client.get_object("k")) == 20 * MIB

    @pytest.mark.parametrize("seed", range(10))
    def test_completion_sorted_whatever_finish_order(self, seed):
        client = ShuffledPartsClient(seed=seed)
        data = bytes(range(256)) * 40  # 10240 bytes, 10 parts of 1024

        multipart_upload(client, f"obj-{seed}", data, 1024)

        assert sorted(client.finish_order) == list(range(1, 11))
        assert client.completed_parts == [list(range(1, 11))]
        assert client.get_object(f"obj-{seed}") == data

    def test_capped_part_workers(self):
        client = ShuffledPartsClient(seed=1)
        data = bytes(5000)
        assert multipart_upload(client, "k", data, 1000, max_workers=2) == 5000
        assert client.completed_parts == [[1, 2, 3, 4, 5]]

    def test_failed_part_fails_whole_upload_after_all_parts_finish(self):
        finished: list[int] = []
        lock = threading.Lock()

        class FailingPart(S3ClientMemory):
            def upload_part(self, key, upload_id, part_number, data):
                try:
                    if part_number == 2:
                        raise ConnectionError("reset by peer")
                    return super().upload_part(
                        key, upload_id, part_number, data,
                    )
                finally:
                    with lock:
                        finished.append(part_number)

            def complete_multipart_upload(self, key, upload_id, parts):
                raise AssertionError("completion must not be attempted")

        client = FailingPart()
        with pytest.raises(MultipartUploadError) as excinfo:
            multipart_upload(client, "k", bytes(4000), 1000)

        assert sorted(finished) == [1, 2, 3, 4]
        assert set(excinfo.value.failed_parts) == {2}
        assert "reset by peer" in str(excinfo.value)
        # The session is left open for cleanup to abort.
        assert client.list_multipart_uploads("") == [
            ("k", excinfo.value.upload_id),
        ]
        with pytest.raises(Exception):
            client.get_object("k")

    def test_initiation_failure_attempts_no_parts(self):
        class NoSession(S3ClientMemory):
            parts_attempted = 0

            def create_multipart_upload(self, key):
                raise ConnectionError("refused")

            def upload_part(self, *args):
                NoSession.parts_attempted += 1
                return super().upload_part(*args)

        with pytest.raises(ConnectionError):
            multipart_upload(NoSession(), "k", bytes(100), 10)
        assert NoSession.parts_attempted == 0
