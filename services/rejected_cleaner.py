# ============================================================================
# REJECTED-CONTAINER CLEANER
# ============================================================================
# STATUS: Service - TTL sweep of "-rejected" containers
# PURPOSE: Delete expired rejected blobs and snapshots
# EXPORTS: RejectedContainerCleaner, RejectedBlobChecker
# DEPENDENCIES: infrastructure.lease, services.envelope_service
# ============================================================================
"""
Rejected-Container Cleaner.

Every container whose name ends with "-rejected" is listed with snapshots.
An item older than the rejected-file TTL (by last-modified time) is removed:

    base blob   -> leased, deleted together with all its snapshots, and a
                   DELETED_FROM_REJECTED event is added to the last envelope
                   of the source container
    snapshot    -> deleted on its own when its base blob is kept

Snapshots are created whenever a newer rejected copy replaces an older one,
so a snapshot is never newer than its base blob.

Exports:
    RejectedContainerCleaner: clean_up()
    RejectedBlobChecker: TTL predicate
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Set

from config.defaults import StorageDefaults
from core.models import EventType
from infrastructure.blob import BlobItemInfo, IBlobRepository
from infrastructure.lease import Busy, LeaseCoordinator
from util_logger import LoggerFactory, ComponentType
from .container_cleaner import CleanupResult
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RejectedContainerCleaner")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RejectedBlobChecker:
    """
    A rejected blob is deleted once last_modified + ttl is in the past.
    """

    def __init__(self, ttl: timedelta, clock: Callable[[], datetime] = _utcnow):
        if ttl is None:
            raise ValueError("TTL is required")
        if ttl < timedelta(0):
            raise ValueError("TTL cannot be negative")
        self.ttl = ttl
        self.clock = clock

    def should_be_deleted(self, blob: BlobItemInfo) -> bool:
        return blob.last_modified + self.ttl < self.clock()


class RejectedContainerCleaner:

    def __init__(self, blob_repository: IBlobRepository,
                 blob_checker: RejectedBlobChecker,
                 envelope_service: EnvelopeService,
                 lease_coordinator: LeaseCoordinator,
                 rejected_suffix: str = StorageDefaults.REJECTED_CONTAINER_SUFFIX):
        self.blob_repository = blob_repository
        self.blob_checker = blob_checker
        self.envelope_service = envelope_service
        self.lease_coordinator = lease_coordinator
        self.rejected_suffix = rejected_suffix

    def clean_up(self) -> CleanupResult:
        result = CleanupResult()
        for container in self.blob_repository.list_containers(name_suffix=self.rejected_suffix):
            try:
                result.merge(self.clean_up_container(container))
            except Exception as e:
                logger.error(f"❌ Error cleaning rejected container {container}: {e}")
                result.failed += 1
                result.errors.append(f"{container}: {e}")
        return result

    def clean_up_container(self, container: str) -> CleanupResult:
        result = CleanupResult()
        logger.info(f"🧹 Looking for rejected files to delete. Container: {container}")

        items = self.blob_repository.list_blobs(container, include_snapshots=True)
        expired = [item for item in items if self.blob_checker.should_be_deleted(item)]
        result.scanned = len(items)

        expired_bases: Set[str] = {item.name for item in expired if not item.is_snapshot}

        for item in expired:
            if item.is_snapshot:
                if item.name in expired_bases:
                    # Removed together with its base blob
                    continue
                self._delete_snapshot(item, result)
            else:
                self._delete_base_blob(item, result)

        logger.info(
            f"✅ Finished removing rejected files. Container: {container}, "
            f"deleted={result.deleted}, skipped={result.skipped}, failed={result.failed}"
        )
        return result

    def _source_container(self, rejected_container: str) -> str:
        return rejected_container[:-len(self.rejected_suffix)]

    def _delete_snapshot(self, item: BlobItemInfo, result: CleanupResult) -> None:
        try:
            if self.blob_repository.delete_blob(item.container, item.name, snapshot=item.snapshot):
                result.deleted += 1
                logger.info(f"Deleted rejected snapshot. Container: {item.container}. "
                            f"File name: {item.name}. Snapshot ID: {item.snapshot}")
        except Exception as e:
            logger.error(f"❌ Error deleting rejected snapshot {item.container}/{item.name}@{item.snapshot}: {e}")
            result.failed += 1
            result.errors.append(f"{item.container}/{item.name}@{item.snapshot}: {e}")

    def _delete_base_blob(self, item: BlobItemInfo, result: CleanupResult) -> None:
        blob_info = f"Container: {item.container}. File name: {item.name}"
        try:
            with self.lease_coordinator.hold(item.container, item.name) as lease:
                if isinstance(lease, Busy):
                    # Gone already, or being replaced by a newer rejected copy
                    result.skipped += 1
                    return

                self.blob_repository.delete_blob(item.container, item.name, lease_id=lease.lease_id)
                result.deleted += 1

            source_container = self._source_container(item.container)
            envelope = self.envelope_service.find_last_envelope(item.name, source_container)
            if envelope is not None:
                self.envelope_service.save_event(envelope.id, EventType.DELETED_FROM_REJECTED)
            else:
                logger.warning(f"⚠️ Envelope not found. {blob_info}")
            logger.info(f"🗑️ Deleted rejected file. {blob_info}")
        except Exception as e:
            logger.error(f"❌ Error deleting rejected file. {blob_info}: {e}")
            result.failed += 1
            result.errors.append(f"{item.container}/{item.name}: {e}")


__all__ = ['RejectedContainerCleaner', 'RejectedBlobChecker']
