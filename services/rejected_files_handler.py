# ============================================================================
# REJECTED-FILES HANDLER
# ============================================================================
# STATUS: Service - Move rejected source blobs aside
# PURPOSE: Copy rejected blobs to "-rejected", delete source, mark deleted
# EXPORTS: RejectedFilesHandler
# DEPENDENCIES: infrastructure.lease, services.blob_mover
# ============================================================================
"""
Rejected-Files Handler.

For REJECTED envelopes whose source blob is still present, grouped by
container:

    - lease the source blob (absent: mark the envelope deleted)
    - copy it to "<container>-rejected", snapshotting an older rejected copy
    - delete the source under the lease
    - mark the envelope deleted with a DELETED event

Exports:
    RejectedFilesHandler: handle()
"""

from itertools import groupby

from core.models import Envelope
from infrastructure.lease import Busy, BusyReason, LeaseCoordinator
from util_logger import LoggerFactory, ComponentType
from .blob_mover import BlobMover
from .container_cleaner import CleanupResult
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RejectedFilesHandler")


class RejectedFilesHandler:

    def __init__(self, envelope_service: EnvelopeService,
                 lease_coordinator: LeaseCoordinator,
                 blob_mover: BlobMover):
        self.envelope_service = envelope_service
        self.lease_coordinator = lease_coordinator
        self.blob_mover = blob_mover

    def handle(self) -> CleanupResult:
        result = CleanupResult()
        envelopes = sorted(self.envelope_service.get_ready_to_delete_rejections(), key=lambda e: e.container)
        logger.info(f"Found {len(envelopes)} rejected envelopes")

        for container, group in groupby(envelopes, key=lambda e: e.container):
            logger.info(f"🚚 Started moving rejected files from container {container}")
            for envelope in group:
                result.scanned += 1
                self._handle_envelope(envelope, result)
            logger.info(f"Finished moving rejected files from container {container}")
        return result

    def _handle_envelope(self, envelope: Envelope, result: CleanupResult) -> None:
        context = f"File name: {envelope.file_name}. Source Container: {envelope.container}"
        try:
            with self.lease_coordinator.hold(envelope.container, envelope.file_name) as lease:
                if isinstance(lease, Busy):
                    if lease.reason == BusyReason.BLOB_NOT_FOUND:
                        logger.warning(f"⚠️ File already deleted. {context}")
                        if self.envelope_service.mark_envelope_as_deleted(envelope):
                            result.marked_deleted += 1
                    else:
                        result.skipped += 1
                    return

                self.blob_mover.move_to_rejected_container(
                    envelope.container, envelope.file_name, lease_id=lease.lease_id
                )
                result.deleted += 1

            if self.envelope_service.mark_envelope_as_deleted(envelope):
                result.marked_deleted += 1
            logger.info(f"✅ Rejected file successfully handled. {context}")
        except Exception as e:
            logger.error(f"❌ Error handling rejected file. {context}: {e}")
            result.failed += 1
            result.errors.append(f"{envelope.container}/{envelope.file_name}: {e}")


__all__ = ['RejectedFilesHandler']
