"""
Pure Enumeration Types for the Envelope Pipeline.

Defines envelope states, audit event types and rejection error codes.
No business logic - pure type definitions only.

Exports:
    EnvelopeStatus: Envelope state enumeration
    EventType: Envelope audit event enumeration
    ErrorCode: Closed set of rejection reasons
"""

from enum import Enum


class EnvelopeStatus(str, Enum):
    """
    Valid status values for envelopes.

    State transitions:
    - CREATED -> DISPATCHED (verified and copied to target)
    - CREATED -> REJECTED (verification failed, or stale completion)
    """

    CREATED = "CREATED"
    DISPATCHED = "DISPATCHED"
    REJECTED = "REJECTED"


class EventType(str, Enum):
    """
    Audit trail entries appended to an envelope.

    ERROR is an annotation on a still-CREATED envelope, not a state.
    """

    FILE_PROCESSING_STARTED = "FILE_PROCESSING_STARTED"
    DISPATCHED = "DISPATCHED"
    REJECTED = "REJECTED"
    DELETED = "DELETED"
    DELETED_FROM_REJECTED = "DELETED_FROM_REJECTED"
    DUPLICATE_REJECTED = "DUPLICATE_REJECTED"
    ERROR = "ERROR"
    NOTIFICATION_SENT = "NOTIFICATION_SENT"


class ErrorCode(str, Enum):
    """
    Rejection reasons. Stored and published by value.
    """

    FILE_SIZE_EXCEEDED = "file-size-exceeded"
    INVALID_METAFILE = "invalid-metafile"
    SERVICE_DISABLED = "service-disabled"
    ANTIVIRUS_FAILURE = "antivirus-failure"
    SIGNATURE_VERIFICATION_FAILURE = "signature-verification-failure"
    RESCAN_REQUIRED = "rescan-required"
    ZIP_PROCESSING_FAILURE = "zip-processing-failure"
    STALE_ENVELOPE = "stale-envelope"
