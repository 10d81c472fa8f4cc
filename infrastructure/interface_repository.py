"""
Repository Abstract Base Classes - Single Point of Truth.

Enforces exact method signatures across all repository implementations
(PostgreSQL in production, in-memory doubles in tests).

Exports:
    IEnvelopeRepository: Envelope store (envelopes + envelope_events)
    IClusterLockRepository: Scheduled-job mutual exclusion rows
    INotificationPublisher: Rejection notice transport
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from core.models import (
    Envelope,
    EnvelopeEvent,
    EnvelopeStatus,
    NewEnvelope,
    NewEnvelopeEvent,
    NotificationMessage,
    RejectedEnvelope,
)


# ============================================================================
# ENVELOPE STORE
# ============================================================================

class IEnvelopeRepository(ABC):
    """
    Envelope persistence and audit trail.

    Mutating calls are conditional (compare-and-set on the current state)
    and write their audit event in the same short transaction. They return
    False when the condition did not hold, so a lost race writes nothing.
    """

    # --- reads --------------------------------------------------------

    @abstractmethod
    def find(self, envelope_id: UUID) -> Optional[Envelope]:
        pass

    @abstractmethod
    def find_last(self, file_name: str, container: str) -> Optional[Envelope]:
        """Most recently created envelope for (container, file_name)."""
        pass

    @abstractmethod
    def find_by_status(self, status: EnvelopeStatus, container: Optional[str] = None,
                       is_deleted: Optional[bool] = None) -> List[Envelope]:
        pass

    @abstractmethod
    def find_all(self, file_name: Optional[str] = None, container: Optional[str] = None,
                 created_on: Optional[date] = None) -> List[Envelope]:
        """Query surface for reporting. Newest first."""
        pass

    @abstractmethod
    def find_incomplete_before(self, cutoff: datetime) -> List[Envelope]:
        """CREATED envelopes created before cutoff."""
        pass

    @abstractmethod
    def find_events(self, envelope_id: UUID) -> List[EnvelopeEvent]:
        """Audit trail in creation order."""
        pass

    @abstractmethod
    def find_rejected_pending_notification(self) -> List[RejectedEnvelope]:
        pass

    # --- writes -------------------------------------------------------

    @abstractmethod
    def insert(self, envelope: NewEnvelope, event: NewEnvelopeEvent) -> Envelope:
        pass

    @abstractmethod
    def update_status(self, envelope_id: UUID, expected: EnvelopeStatus, status: EnvelopeStatus,
                      event: NewEnvelopeEvent, dispatched_at: Optional[datetime] = None,
                      pending_notification: Optional[bool] = None,
                      file_last_modified: Optional[datetime] = None) -> bool:
        pass

    @abstractmethod
    def mark_as_deleted(self, envelope_id: UUID, event: NewEnvelopeEvent) -> bool:
        """Set is_deleted on a terminal, not yet deleted envelope."""
        pass

    @abstractmethod
    def update_pending_notification(self, envelope_id: UUID, pending: bool,
                                    event: Optional[NewEnvelopeEvent] = None) -> bool:
        pass

    @abstractmethod
    def insert_event(self, envelope_id: UUID, event: NewEnvelopeEvent) -> EnvelopeEvent:
        pass


# ============================================================================
# CLUSTER LOCK
# ============================================================================

class IClusterLockRepository(ABC):
    """
    One row per scheduled job name; a replica owns the job while
    locked_until is in the future.
    """

    @abstractmethod
    def try_acquire(self, name: str, lock_seconds: int, owner: str) -> bool:
        pass

    @abstractmethod
    def release(self, name: str, owner: str) -> None:
        pass


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class INotificationPublisher(ABC):
    """
    Message transport for rejection notices. At-least-once: the caller
    supplies message_id so the transport can de-duplicate.
    """

    @abstractmethod
    def publish(self, message: NotificationMessage, message_id: str) -> None:
        pass
