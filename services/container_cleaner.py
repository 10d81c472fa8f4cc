# ============================================================================
# DISPATCHED-CONTAINER CLEANER
# ============================================================================
# STATUS: Service - Remove source blobs that were dispatched
# PURPOSE: Delete dispatched source blobs and mark envelopes deleted
# EXPORTS: ContainerCleaner, CleanupResult
# DEPENDENCIES: infrastructure.lease, services.envelope_service
# ============================================================================
"""
Dispatched-Container Cleaner.

For every DISPATCHED envelope in a container that is not yet marked deleted:

    blob absent (listing, lease or delete)  -> mark deleted
    blob rewritten after it was verified    -> leave it (unprocessed re-upload)
    lease held by another worker            -> skip, retried next run
    otherwise                               -> delete with snapshots, mark deleted

Running the cleaner twice leaves the same state as running it once.

Exports:
    ContainerCleaner: process(container), process_enabled_containers()
    CleanupResult: Counters shared by the cleanup jobs
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from config import StorageConfig
from core.models import Envelope
from infrastructure.blob import BlobItemInfo, IBlobRepository
from infrastructure.lease import Busy, BusyReason, LeaseCoordinator
from util_logger import LoggerFactory, ComponentType
from .duplicate_handler import replaced_after
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "ContainerCleaner")


@dataclass
class CleanupResult:
    """Counters for one cleanup run."""

    scanned: int = 0
    deleted: int = 0
    marked_deleted: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def merge(self, other: "CleanupResult") -> "CleanupResult":
        self.scanned += other.scanned
        self.deleted += other.deleted
        self.marked_deleted += other.marked_deleted
        self.skipped += other.skipped
        self.failed += other.failed
        self.errors.extend(other.errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanned": self.scanned,
            "deleted": self.deleted,
            "marked_deleted": self.marked_deleted,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": self.errors[:10],
        }


class ContainerCleaner:
    """
    Deletes dispatched blobs from source containers.
    """

    def __init__(self, blob_repository: IBlobRepository,
                 envelope_service: EnvelopeService,
                 lease_coordinator: LeaseCoordinator,
                 storage_config: StorageConfig):
        self.blob_repository = blob_repository
        self.envelope_service = envelope_service
        self.lease_coordinator = lease_coordinator
        self.storage_config = storage_config

    def process_enabled_containers(self) -> CleanupResult:
        total = CleanupResult()
        for route in self.storage_config.enabled_source_containers():
            total.merge(self.process(route.source_container))
        return total

    def process(self, container: str) -> CleanupResult:
        result = CleanupResult()
        logger.info(f"🧹 Started deleting dispatched blobs from container {container}")
        try:
            envelopes = self.envelope_service.get_ready_to_delete_dispatches(container)
            blobs = {blob.name: blob for blob in self.blob_repository.list_blobs(container)}
        except Exception as e:
            logger.error(f"❌ Error deleting blobs in container {container}: {e}")
            result.failed += 1
            result.errors.append(f"{container}: {e}")
            return result

        for envelope in envelopes:
            result.scanned += 1
            try:
                self._delete_blob(container, envelope, blobs.get(envelope.file_name), result)
            except Exception as e:
                logger.error(f"❌ Error deleting dispatched blob {container}/{envelope.file_name}: {e}")
                result.failed += 1
                result.errors.append(f"{container}/{envelope.file_name}: {e}")

        logger.info(
            f"✅ Finished deleting dispatched blobs from container {container}: "
            f"deleted={result.deleted}, marked={result.marked_deleted}, skipped={result.skipped}"
        )
        return result

    def _delete_blob(self, container: str, envelope: Envelope, blob: BlobItemInfo,
                     result: CleanupResult) -> None:
        if blob is None:
            self._mark_deleted(envelope, result, "blob not found")
            return

        if replaced_after(blob, envelope):
            logger.info(
                f"⏭️ {container}/{envelope.file_name} was re-uploaded after envelope {envelope.id}, not deleting"
            )
            result.skipped += 1
            return

        with self.lease_coordinator.hold(container, envelope.file_name) as lease:
            if isinstance(lease, Busy):
                if lease.reason == BusyReason.BLOB_NOT_FOUND:
                    self._mark_deleted(envelope, result, "blob not found")
                else:
                    result.skipped += 1
                return

            if self.blob_repository.delete_blob(container, envelope.file_name, lease_id=lease.lease_id):
                result.deleted += 1
                logger.info(f"🗑️ Deleted dispatched blob {envelope.file_name} from container {container}")
            self._mark_deleted(envelope, result, "deleted")

    def _mark_deleted(self, envelope: Envelope, result: CleanupResult, reason: str) -> None:
        if self.envelope_service.mark_envelope_as_deleted(envelope):
            result.marked_deleted += 1
            logger.info(
                f"Marked envelope as deleted ({reason}). "
                f"File name: {envelope.file_name}, container: {envelope.container}"
            )


__all__ = ['ContainerCleaner', 'CleanupResult']
