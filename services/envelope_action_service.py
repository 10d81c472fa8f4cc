"""
Envelope Action Service - operator actions on stuck envelopes.

An envelope that stays CREATED (e.g. its blob keeps failing to dispatch or
was removed by the supplier) can be completed manually once nothing has
happened to it for the stale threshold. Completion rejects it with
`stale-envelope`; the rejected-files handler and notification job pick it up
from there.

Exports:
    EnvelopeActionService: complete_stale_envelope(), get_incomplete_envelopes()
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List
from uuid import UUID

from config.defaults import SchedulerDefaults
from core.logic import is_envelope_terminal
from core.models import Envelope, ErrorCode
from exceptions import EnvelopeCompletedOrNotStaleError, EnvelopeNotFoundError
from util_logger import LoggerFactory, ComponentType
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "EnvelopeActionService")

STALE_REJECTION_MESSAGE = "Manually marked as rejected due to stale state"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnvelopeActionService:

    def __init__(self, envelope_service: EnvelopeService,
                 stale_envelope_hours: int = SchedulerDefaults.STALE_ENVELOPE_HOURS,
                 clock: Callable[[], datetime] = _utcnow):
        self.envelope_service = envelope_service
        self.stale_after = timedelta(hours=stale_envelope_hours)
        self.clock = clock

    def complete_stale_envelope(self, envelope_id: UUID) -> Envelope:
        """
        Reject a stale CREATED envelope.

        Raises:
            EnvelopeNotFoundError: No envelope with this id
            EnvelopeCompletedOrNotStaleError: Envelope is terminal, or had
                activity within the stale threshold
        """
        envelope = self.envelope_service.get_envelope(envelope_id)
        if envelope is None:
            raise EnvelopeNotFoundError(f"Envelope with id {envelope_id} not found")

        if is_envelope_terminal(envelope.status):
            raise EnvelopeCompletedOrNotStaleError(
                f"Envelope with id {envelope_id} is completed ({envelope.status.value})"
            )

        events = self.envelope_service.get_envelope_events(envelope_id)
        last_activity = max([event.created_at for event in events], default=envelope.created_at)
        if self.clock() - last_activity < self.stale_after:
            raise EnvelopeCompletedOrNotStaleError(
                f"Envelope with id {envelope_id} is not stale (last activity {last_activity.isoformat()})"
            )

        self.envelope_service.mark_as_rejected(envelope_id, ErrorCode.STALE_ENVELOPE, STALE_REJECTION_MESSAGE)
        logger.warning(f"🛠️ Stale envelope {envelope_id} manually completed as REJECTED")
        return self.envelope_service.get_envelope(envelope_id)

    def get_incomplete_envelopes(self) -> List[Envelope]:
        """CREATED envelopes older than the stale threshold."""
        return self.envelope_service.get_incomplete_envelopes(self.clock() - self.stale_after)


__all__ = ['EnvelopeActionService', 'STALE_REJECTION_MESSAGE']
