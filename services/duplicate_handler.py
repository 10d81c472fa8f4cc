# ============================================================================
# DUPLICATE HANDLER
# ============================================================================
# STATUS: Service - Reject re-uploads of already processed files
# PURPOSE: Find duplicates in source containers and move them aside
# EXPORTS: DuplicateFinder, DuplicateFileHandler, Duplicate
# DEPENDENCIES: infrastructure.lease, services.blob_mover
# ============================================================================
"""
Duplicate detection and rejection.

A blob is a duplicate when the most recent envelope for its name is
terminal and either

    - the envelope is already marked deleted (the file was processed and
      cleaned up, then uploaded again), or
    - the blob was modified after the content the envelope verified (a
      same-named upload that replaced the original before cleanup;
      overwriting keeps the blob creation time, so last-modified is
      compared with the value stored on the terminal transition).

The Blob Processor skips such blobs, so without this job they would sit in
the source container forever. A duplicate gets a DUPLICATE_REJECTED event on
the existing envelope and is moved to the "-rejected" container; no new
envelope is created and nothing is dispatched.

Exports:
    DuplicateFinder: find_in(container)
    DuplicateFileHandler: handle()
    Duplicate: Blob plus the envelope it duplicates
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from config import StorageConfig
from core.logic import is_envelope_terminal
from core.models import Envelope, EventType
from infrastructure.blob import BlobItemInfo, IBlobRepository
from infrastructure.lease import Busy, LeaseCoordinator
from util_logger import LoggerFactory, ComponentType
from .blob_mover import BlobMover
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "DuplicateHandler")

DUPLICATE_EVENT_MESSAGE = "Duplicate envelope"


def replaced_after(blob: BlobItemInfo, envelope: Envelope) -> bool:
    """
    True when the blob was rewritten after the content the envelope verified.

    Envelopes completed without reading the blob carry no file_last_modified
    and never count as replaced.
    """
    if envelope.file_last_modified is None:
        return False
    return blob.last_modified > envelope.file_last_modified


@dataclass(frozen=True)
class Duplicate:
    blob: BlobItemInfo
    envelope: Envelope


class DuplicateFinder:

    def __init__(self, blob_repository: IBlobRepository, envelope_service: EnvelopeService):
        self.blob_repository = blob_repository
        self.envelope_service = envelope_service

    @staticmethod
    def is_duplicate(blob: BlobItemInfo, envelope: Envelope) -> bool:
        if not is_envelope_terminal(envelope.status):
            return False
        return envelope.is_deleted or replaced_after(blob, envelope)

    def find_in(self, container: str) -> List[Duplicate]:
        duplicates = []
        for blob in self.blob_repository.list_blobs(container):
            envelope = self.envelope_service.find_last_envelope(blob.name, container)
            if envelope is not None and self.is_duplicate(blob, envelope):
                duplicates.append(Duplicate(blob=blob, envelope=envelope))
        return duplicates


@dataclass
class DuplicateHandlingResult:
    containers_scanned: int = 0
    duplicates_found: int = 0
    moved: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "containers_scanned": self.containers_scanned,
            "duplicates_found": self.duplicates_found,
            "moved": self.moved,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": self.errors[:10],
        }


class DuplicateFileHandler:
    """
    Moves duplicates of processed files out of every enabled source container.
    """

    def __init__(self, storage_config: StorageConfig,
                 duplicate_finder: DuplicateFinder,
                 envelope_service: EnvelopeService,
                 lease_coordinator: LeaseCoordinator,
                 blob_mover: BlobMover):
        self.storage_config = storage_config
        self.duplicate_finder = duplicate_finder
        self.envelope_service = envelope_service
        self.lease_coordinator = lease_coordinator
        self.blob_mover = blob_mover

    def handle(self) -> DuplicateHandlingResult:
        result = DuplicateHandlingResult()
        for route in self.storage_config.enabled_source_containers():
            container = route.source_container
            result.containers_scanned += 1
            try:
                duplicates = self.duplicate_finder.find_in(container)
            except Exception as e:
                logger.error(f"❌ Error finding duplicates in {container}: {e}")
                result.failed += 1
                result.errors.append(f"{container}: {e}")
                continue

            result.duplicates_found += len(duplicates)
            for duplicate in duplicates:
                self._move_to_rejected_container(container, duplicate, result)
        return result

    def _move_to_rejected_container(self, container: str, duplicate: Duplicate,
                                    result: DuplicateHandlingResult) -> None:
        file_name = duplicate.blob.name
        try:
            with self.lease_coordinator.hold(container, file_name) as lease:
                if isinstance(lease, Busy):
                    logger.info(f"🔒 Duplicate {container}/{file_name} not leasable ({lease.reason.value}), skipping")
                    result.skipped += 1
                    return

                logger.info(f"♊ Moving duplicate file to rejected container. {container}/{file_name}")
                self.envelope_service.save_event(
                    duplicate.envelope.id, EventType.DUPLICATE_REJECTED, notes=DUPLICATE_EVENT_MESSAGE
                )
                self.blob_mover.move_to_rejected_container(container, file_name, lease_id=lease.lease_id)
                result.moved += 1
        except Exception as e:
            logger.error(f"❌ Error moving duplicate file {container}/{file_name}: {e}")
            result.failed += 1
            result.errors.append(f"{container}/{file_name}: {e}")


__all__ = ['DuplicateFinder', 'DuplicateFileHandler', 'Duplicate', 'DuplicateHandlingResult']
