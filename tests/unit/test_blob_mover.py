"""
Chunked uploads and moves into "-rejected" containers.
"""

import base64
import os

import pytest

from services.blob_mover import BlobMover, block_id_for
from tests.fakes import FakeBlobRepository


class TestBlockIds:

    @pytest.mark.parametrize("number,expected", [
        (1, "MDAwMDAwMQ=="),
        (10, base64.b64encode(b"0000010").decode()),
        (1234567, base64.b64encode(b"1234567").decode()),
    ])
    def test_block_id_format(self, number, expected):
        assert block_id_for(number) == expected

    def test_block_ids_have_equal_length(self):
        assert len({len(block_id_for(n)) for n in (1, 99, 12345, 9999999)}) == 1


class TestUploadWithChunks:

    def test_blocks_are_staged_in_order_and_committed(self, blob_mover, clock):
        target = FakeBlobRepository("target", clock=clock)
        data = os.urandom(512 * 3 + 100)

        block_ids = blob_mover.upload_with_chunks(target, "dest", "a.zip", data)

        assert block_ids == [block_id_for(n) for n in (1, 2, 3, 4)]
        assert target.committed_blocks[("dest", "a.zip")] == block_ids
        assert target.content("dest", "a.zip") == data

    def test_exact_multiple_of_chunk_size(self, blob_mover, clock):
        target = FakeBlobRepository("target", clock=clock)
        data = os.urandom(1024)

        assert len(blob_mover.upload_with_chunks(target, "dest", "a.zip", data)) == 2
        assert target.content("dest", "a.zip") == data

    def test_chunk_size_must_be_positive(self, source):
        with pytest.raises(ValueError):
            BlobMover(source, chunk_size_bytes=0)


class TestMoveToRejectedContainer:

    def test_move(self, source, blob_mover):
        source.upload("bulkscan", "a.zip", b"payload")

        rejected = blob_mover.move_to_rejected_container("bulkscan", "a.zip")

        assert rejected == "bulkscan-rejected"
        assert source.content("bulkscan-rejected", "a.zip") == b"payload"
        assert not source.blob_exists("bulkscan", "a.zip")

    def test_existing_rejected_copy_is_snapshotted(self, source, blob_mover):
        source.upload("bulkscan-rejected", "a.zip", b"old")
        source.upload("bulkscan", "a.zip", b"new")

        blob_mover.move_to_rejected_container("bulkscan", "a.zip")

        assert source.content("bulkscan-rejected", "a.zip") == b"new"
        assert source.snapshots("bulkscan-rejected", "a.zip") == [b"old"]

    def test_move_under_lease(self, source, blob_mover, lease_coordinator):
        source.upload("bulkscan", "a.zip", b"payload")

        with lease_coordinator.hold("bulkscan", "a.zip") as lease:
            blob_mover.move_to_rejected_container("bulkscan", "a.zip", lease_id=lease.lease_id)

        assert not source.blob_exists("bulkscan", "a.zip")
        assert source.blob_exists("bulkscan-rejected", "a.zip")

    def test_custom_suffix(self, source):
        mover = BlobMover(source, chunk_size_bytes=512, rejected_suffix="-quarantine")
        assert mover.rejected_container_for("bulkscan") == "bulkscan-quarantine"
