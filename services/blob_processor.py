# ============================================================================
# BLOB PROCESSOR
# ============================================================================
# STATUS: Service - Single blob ingestion
# PURPOSE: Lease, verify, then dispatch or reject one source blob
# EXPORTS: BlobProcessor, ProcessingOutcome
# DEPENDENCIES: infrastructure.lease, services.blob_verifier, services.blob_dispatcher
# ============================================================================
"""
Blob Processor.

Flow for one listed blob:

    1. Not old enough yet (readiness delay)     -> NOT_READY
    2. Most recent envelope is terminal          -> SKIPPED
    3. Lease the blob; Busy                      -> BUSY
    4. Under the lease re-read the last envelope:
         terminal -> SKIPPED, CREATED -> resume, none -> create
    5. Read + verify:
         ok       -> dispatch, DISPATCHED
         not ok   -> REJECTED (pending notification)
    6. Unexpected exception in 5                 -> ERROR event (HTML-escaped), stays CREATED

The terminal transition records the blob's storage last-modified as read
under the lease; cleanup and duplicate detection compare against it.

The lease is taken before an envelope is created, so two workers seeing the
same new blob cannot both create a CREATED envelope.

Exports:
    BlobProcessor: process(blob)
    ProcessingOutcome: Result of one process() call
"""

import html
import threading
from enum import Enum
from typing import Dict, List

from config import StorageConfig
from core.logic import is_envelope_terminal
from core.models import EventType
from infrastructure.blob import BlobItemInfo, IBlobRepository
from infrastructure.lease import Busy, LeaseCoordinator
from util_logger import LoggerFactory, ComponentType
from .blob_dispatcher import BlobDispatcher
from .blob_readiness import BlobReadinessChecker
from .blob_verifier import load_public_key, verify
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "BlobProcessor")


class ProcessingOutcome(str, Enum):
    NOT_READY = "not_ready"
    SKIPPED = "skipped"
    BUSY = "busy"
    DISPATCHED = "dispatched"
    REJECTED = "rejected"
    ERROR = "error"


class BlobProcessor:
    """
    Processes a single source blob. Safe to call from several threads.
    """

    def __init__(self, envelope_service: EnvelopeService,
                 blob_repository: IBlobRepository,
                 lease_coordinator: LeaseCoordinator,
                 dispatcher: BlobDispatcher,
                 storage_config: StorageConfig,
                 readiness_checker: BlobReadinessChecker):
        self.envelope_service = envelope_service
        self.blob_repository = blob_repository
        self.lease_coordinator = lease_coordinator
        self.dispatcher = dispatcher
        self.storage_config = storage_config
        self.readiness_checker = readiness_checker
        self._keys: Dict[str, List] = {}
        self._keys_lock = threading.Lock()

    def _public_keys(self, container: str) -> List:
        with self._keys_lock:
            if container not in self._keys:
                self._keys[container] = [
                    load_public_key(value) for value in self.storage_config.public_keys_for(container)
                ]
            return self._keys[container]

    def process(self, blob: BlobItemInfo) -> ProcessingOutcome:
        container, blob_name = blob.container, blob.name

        if not self.readiness_checker.is_ready(blob):
            logger.debug(f"Blob not ready yet: {container}/{blob_name}")
            return ProcessingOutcome.NOT_READY

        last = self.envelope_service.find_last_envelope(blob_name, container)
        if last is not None and is_envelope_terminal(last.status):
            logger.info(
                f"⏭️ Envelope already processed in system, skipping. "
                f"{container}/{blob_name} (envelope {last.id}, {last.status.value})"
            )
            return ProcessingOutcome.SKIPPED

        with self.lease_coordinator.hold(container, blob_name) as lease:
            if isinstance(lease, Busy):
                logger.info(f"🔒 Cannot lease {container}/{blob_name} ({lease.reason.value}), skipping")
                return ProcessingOutcome.BUSY

            # Another worker may have finished the blob since the first lookup
            envelope = self.envelope_service.find_last_envelope(blob_name, container)
            if envelope is not None and is_envelope_terminal(envelope.status):
                logger.info(f"⏭️ {container}/{blob_name} processed by another worker, skipping")
                return ProcessingOutcome.SKIPPED

            if envelope is None:
                envelope = self.envelope_service.create_new_envelope(
                    container, blob_name, blob.created_at, blob.size
                )
            else:
                logger.info(f"↩️ Resuming envelope {envelope.id} for {container}/{blob_name}")

            try:
                info = self.blob_repository.get_blob_info(container, blob_name)
                content = self.blob_repository.read_blob(container, blob_name)
                result = verify(content, self._public_keys(container))

                if result.ok:
                    self.dispatcher.dispatch(container, blob_name, result.envelope_content)
                    self.envelope_service.mark_as_dispatched(envelope.id, file_last_modified=info.last_modified)
                    return ProcessingOutcome.DISPATCHED

                logger.warning(
                    f"🚫 Rejecting {container}/{blob_name}: "
                    f"{result.error_code.value} ({result.error_description})"
                )
                self.envelope_service.mark_as_rejected(
                    envelope.id, result.error_code, result.error_description,
                    file_last_modified=info.last_modified,
                )
                return ProcessingOutcome.REJECTED

            except Exception as e:
                logger.error(f"❌ Error processing {container}/{blob_name} (envelope {envelope.id}): {e}")
                self.envelope_service.save_event(envelope.id, EventType.ERROR, notes=html.escape(str(e)))
                return ProcessingOutcome.ERROR


__all__ = ['BlobProcessor', 'ProcessingOutcome']
