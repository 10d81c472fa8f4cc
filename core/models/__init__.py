"""
Core Data Models Package.

Contains pure data structures without business logic.
All business logic is in the core.logic package.

Exports:
    EnvelopeStatus, EventType, ErrorCode: Enums
    Envelope, NewEnvelope: Envelope rows
    EnvelopeEvent, NewEnvelopeEvent: Audit trail rows
    RejectedEnvelope: Envelope awaiting notification
    NotificationMessage: Service Bus message body
"""

from .enums import EnvelopeStatus, EventType, ErrorCode
from .envelope import (
    Envelope,
    NewEnvelope,
    EnvelopeEvent,
    NewEnvelopeEvent,
    RejectedEnvelope,
)
from .notification import NotificationMessage

__all__ = [
    'EnvelopeStatus',
    'EventType',
    'ErrorCode',
    'Envelope',
    'NewEnvelope',
    'EnvelopeEvent',
    'NewEnvelopeEvent',
    'RejectedEnvelope',
    'NotificationMessage',
]
