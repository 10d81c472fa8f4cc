# ============================================================================
# ENVELOPE SERVICE
# ============================================================================
# STATUS: Service - Envelope state machine and audit trail
# PURPOSE: Validated status changes over IEnvelopeRepository
# EXPORTS: EnvelopeService
# DEPENDENCIES: core.logic.transitions, infrastructure.interface_repository
# ============================================================================
"""
Envelope Service.

Every status change is checked against core.logic.transitions first and then
applied by the repository as a conditional UPDATE, together with its audit
event in one short database transaction. A conditional UPDATE that matches
no row means another worker moved the envelope first.

Exports:
    EnvelopeService: Envelope operations used by the processors
"""

from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from core.logic import can_envelope_transition, can_mark_deleted
from core.models import (
    Envelope,
    EnvelopeEvent,
    EnvelopeStatus,
    ErrorCode,
    EventType,
    NewEnvelope,
    NewEnvelopeEvent,
    RejectedEnvelope,
)
from exceptions import EnvelopeNotFoundError, InvalidStateTransitionError
from infrastructure.interface_repository import IEnvelopeRepository
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "EnvelopeService")


class EnvelopeService:
    """
    Envelope store operations.

    Usage:
        service = EnvelopeService(repository)
        envelope = service.create_new_envelope("bulkscan", "1.zip", created_at, 1024)
        service.mark_as_dispatched(envelope.id)
    """

    def __init__(self, repository: IEnvelopeRepository):
        self.repository = repository

    # ========================================================================
    # QUERIES
    # ========================================================================

    def find_last_envelope(self, file_name: str, container: str) -> Optional[Envelope]:
        return self.repository.find_last(file_name, container)

    def get_envelope(self, envelope_id: UUID) -> Optional[Envelope]:
        return self.repository.find(envelope_id)

    def get_ready_to_delete_dispatches(self, container: str) -> List[Envelope]:
        """DISPATCHED envelopes whose source blob has not been cleaned up."""
        return self.repository.find_by_status(EnvelopeStatus.DISPATCHED, container=container, is_deleted=False)

    def get_ready_to_delete_rejections(self) -> List[Envelope]:
        """REJECTED envelopes whose source blob has not been moved away yet."""
        return self.repository.find_by_status(EnvelopeStatus.REJECTED, is_deleted=False)

    def get_envelopes(self, file_name: Optional[str] = None, container: Optional[str] = None,
                      created_on: Optional[date] = None) -> List[Envelope]:
        return self.repository.find_all(file_name=file_name, container=container, created_on=created_on)

    def get_envelope_events(self, envelope_id: UUID) -> List[EnvelopeEvent]:
        return self.repository.find_events(envelope_id)

    def get_rejected_pending_notification(self) -> List[RejectedEnvelope]:
        return self.repository.find_rejected_pending_notification()

    def get_incomplete_envelopes(self, created_before: datetime) -> List[Envelope]:
        return self.repository.find_incomplete_before(created_before)

    # ========================================================================
    # STATE CHANGES
    # ========================================================================

    def create_new_envelope(self, container: str, file_name: str,
                            file_created_at: datetime, file_size: int) -> Envelope:
        """
        Insert a CREATED envelope with its FILE_PROCESSING_STARTED event.
        """
        envelope = self.repository.insert(
            NewEnvelope(
                container=container,
                file_name=file_name,
                file_created_at=file_created_at,
                file_size=file_size,
            ),
            NewEnvelopeEvent(type=EventType.FILE_PROCESSING_STARTED),
        )
        logger.info(f"📨 Envelope {envelope.id} created for {container}/{file_name}")
        return envelope

    def _transition(self, envelope_id: UUID, target: EnvelopeStatus, event: NewEnvelopeEvent,
                    dispatched_at: Optional[datetime] = None,
                    pending_notification: Optional[bool] = None,
                    file_last_modified: Optional[datetime] = None) -> None:
        envelope = self.repository.find(envelope_id)
        if envelope is None:
            raise EnvelopeNotFoundError(f"Envelope {envelope_id} not found")

        if not can_envelope_transition(envelope.status, target):
            raise InvalidStateTransitionError(
                f"Envelope {envelope_id} cannot move from {envelope.status.value} to {target.value}"
            )

        applied = self.repository.update_status(
            envelope_id,
            expected=envelope.status,
            status=target,
            event=event,
            dispatched_at=dispatched_at,
            pending_notification=pending_notification,
            file_last_modified=file_last_modified,
        )
        if not applied:
            # Lost the compare-and-set to another worker
            raise InvalidStateTransitionError(
                f"Envelope {envelope_id} is no longer {envelope.status.value}"
            )
        logger.info(f"🔄 Envelope {envelope_id}: {envelope.status.value} -> {target.value}")

    def mark_as_dispatched(self, envelope_id: UUID,
                           file_last_modified: Optional[datetime] = None) -> None:
        """
        CREATED -> DISPATCHED.

        Args:
            file_last_modified: Storage last-modified of the blob content
                that was dispatched; later writes to the blob are re-uploads.
        """
        self._transition(
            envelope_id,
            EnvelopeStatus.DISPATCHED,
            NewEnvelopeEvent(type=EventType.DISPATCHED),
            dispatched_at=datetime.now(timezone.utc),
            file_last_modified=file_last_modified,
        )

    def mark_as_rejected(self, envelope_id: UUID, error_code: ErrorCode, description: str,
                         file_last_modified: Optional[datetime] = None) -> None:
        """
        CREATED -> REJECTED, flagged for a rejection notification.
        """
        self._transition(
            envelope_id,
            EnvelopeStatus.REJECTED,
            NewEnvelopeEvent(type=EventType.REJECTED, error_code=error_code, notes=description),
            pending_notification=True,
            file_last_modified=file_last_modified,
        )

    def mark_envelope_as_deleted(self, envelope: Envelope, event_type: EventType = EventType.DELETED) -> bool:
        """
        Record that the source blob is gone.

        Returns:
            False when the envelope was already marked deleted.

        Raises:
            InvalidStateTransitionError: Envelope is still CREATED
        """
        if not can_mark_deleted(envelope.status):
            raise InvalidStateTransitionError(
                f"Envelope {envelope.id} is {envelope.status.value}; only terminal envelopes can be deleted"
            )
        marked = self.repository.mark_as_deleted(envelope.id, NewEnvelopeEvent(type=event_type))
        if marked:
            logger.info(f"🗑️ Envelope {envelope.id} marked as deleted ({envelope.container}/{envelope.file_name})")
        else:
            logger.debug(f"Envelope {envelope.id} already marked as deleted")
        return marked

    def mark_pending_notification_as_sent(self, envelope_id: UUID) -> bool:
        return self.repository.update_pending_notification(
            envelope_id,
            pending=False,
            event=NewEnvelopeEvent(type=EventType.NOTIFICATION_SENT),
        )

    def save_event(self, envelope_id: UUID, event_type: EventType,
                   notes: Optional[str] = None, error_code: Optional[ErrorCode] = None) -> EnvelopeEvent:
        return self.repository.insert_event(
            envelope_id,
            NewEnvelopeEvent(type=event_type, error_code=error_code, notes=notes),
        )


__all__ = ['EnvelopeService']
