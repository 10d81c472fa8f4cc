# ============================================================================
# NOTIFICATION SERVICE
# ============================================================================
# STATUS: Service - Rejection notifications
# PURPOSE: Publish pending rejection notices, then clear the pending flag
# EXPORTS: NotificationService, NotificationRunResult
# DEPENDENCIES: infrastructure.interface_repository.INotificationPublisher
# ============================================================================
"""
Notification Service.

Delivery is at-least-once: the pending flag is cleared only after a
successful publish. A crash between the two steps re-sends the message on
the next run; the envelope id is used as the Service Bus message id so
duplicate detection on the queue can collapse the re-send.

Exports:
    NotificationService: send_notifications()
    NotificationRunResult: Sent / failed counters
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from config.defaults import QueueDefaults
from core.models import NotificationMessage, RejectedEnvelope
from infrastructure.interface_repository import INotificationPublisher
from util_logger import LoggerFactory, ComponentType
from .envelope_service import EnvelopeService

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "NotificationService")


@dataclass
class NotificationRunResult:
    pending: int = 0
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pending": self.pending,
            "sent": self.sent,
            "failed": self.failed,
            "errors": self.errors[:10],
        }


class NotificationService:

    def __init__(self, publisher: INotificationPublisher,
                 envelope_service: EnvelopeService,
                 service_name: str = QueueDefaults.SERVICE_NAME):
        self.publisher = publisher
        self.envelope_service = envelope_service
        self.service_name = service_name

    def _to_message(self, envelope: RejectedEnvelope) -> NotificationMessage:
        return NotificationMessage(
            zip_file_name=envelope.file_name,
            container=envelope.container,
            error_code=envelope.error_code,
            error_description=envelope.error_description,
            service=self.service_name,
        )

    def send_notifications(self) -> NotificationRunResult:
        result = NotificationRunResult()
        envelopes = self.envelope_service.get_rejected_pending_notification()
        result.pending = len(envelopes)

        for envelope in envelopes:
            logger.info(
                f"📨 Send message to notifications queue. "
                f"File name: {envelope.file_name} Container: {envelope.container}"
            )
            try:
                self.publisher.publish(self._to_message(envelope), str(envelope.envelope_id))
                self.envelope_service.mark_pending_notification_as_sent(envelope.envelope_id)
                result.sent += 1
            except Exception as e:
                # Flag stays set; retried on the next run
                logger.error(f"❌ Failed to send notification for envelope {envelope.envelope_id}: {e}")
                result.failed += 1
                result.errors.append(f"{envelope.envelope_id}: {e}")

        return result


__all__ = ['NotificationService', 'NotificationRunResult']
