# ============================================================================
# BLOB MOVER
# ============================================================================
# STATUS: Service - Chunked upload and move-to-rejected primitives
# PURPOSE: Block-list uploads and relocation of source blobs
# EXPORTS: BlobMover, block_id_for
# DEPENDENCIES: infrastructure.blob
# ============================================================================
"""
Blob Mover.

upload_with_chunks() stages fixed-size blocks and commits them in a single
call. Staged blocks stay invisible until the commit, so readers of the
target never see a partially written blob.

move_to_rejected_container() copies a source blob into its sibling
"<container>-rejected" container, snapshotting any same-named blob already
there, then deletes the source (under the caller's lease when one is held).

Exports:
    BlobMover: Upload and move operations
    block_id_for: Deterministic block id for a block number
"""

import base64
from typing import List, Optional

from config.defaults import StorageDefaults
from infrastructure.blob import IBlobRepository
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "BlobMover")


def block_id_for(block_number: int) -> str:
    """base64 of the zero-padded 7 digit block number ("0000001" -> "MDAwMDAwMQ==")."""
    return base64.b64encode(f"{block_number:07d}".encode("ascii")).decode("ascii")


class BlobMover:
    """
    Moves bytes between containers and accounts.
    """

    def __init__(self, source_repository: IBlobRepository,
                 chunk_size_bytes: int = StorageDefaults.UPLOAD_CHUNK_SIZE_BYTES,
                 rejected_suffix: str = StorageDefaults.REJECTED_CONTAINER_SUFFIX):
        if chunk_size_bytes <= 0:
            raise ValueError(f"chunk_size_bytes must be positive, got {chunk_size_bytes}")
        self.source_repository = source_repository
        self.chunk_size_bytes = chunk_size_bytes
        self.rejected_suffix = rejected_suffix

    def upload_with_chunks(self, target: IBlobRepository, container: str,
                           blob_name: str, data: bytes) -> List[str]:
        """
        Stage data as sequential blocks and commit them.

        Returns:
            Committed block ids in order
        """
        block_ids = []
        for block_number, offset in enumerate(range(0, len(data), self.chunk_size_bytes), start=1):
            block_id = block_id_for(block_number)
            target.stage_block(container, blob_name, block_id, data[offset:offset + self.chunk_size_bytes])
            block_ids.append(block_id)

        target.commit_block_list(container, blob_name, block_ids)
        logger.info(
            f"📦 Chunked upload to {target.account_name}/{container}/{blob_name}: "
            f"{len(block_ids)} blocks, {len(data)} bytes"
        )
        return block_ids

    def rejected_container_for(self, container: str) -> str:
        return f"{container}{self.rejected_suffix}"

    def move_to_rejected_container(self, container: str, blob_name: str,
                                   lease_id: Optional[str] = None) -> str:
        """
        Copy a source blob to "<container>-rejected" and delete the source.

        Args:
            container: Source container
            blob_name: Blob to move
            lease_id: Lease held on the source blob, if any

        Returns:
            Name of the rejected container
        """
        rejected_container = self.rejected_container_for(container)
        content = self.source_repository.read_blob(container, blob_name)

        if self.source_repository.blob_exists(rejected_container, blob_name):
            # Keep the previous rejected copy as a snapshot
            self.source_repository.create_snapshot(rejected_container, blob_name)

        self.source_repository.write_blob(rejected_container, blob_name, content, overwrite=True)
        self.source_repository.delete_blob(container, blob_name, lease_id=lease_id)
        logger.info(f"🚫 Moved {container}/{blob_name} to {rejected_container}")
        return rejected_container


__all__ = ['BlobMover', 'block_id_for']
