"""
Custom Exception Hierarchy

All pipeline failures derive from BusinessLogicError (expected runtime
issues). Programming bugs surface as the builtin exceptions.

Verification outcomes (bad archive, bad signature) are not raised past the
verifier: they become REJECTED envelopes. The exceptions below cover what
the pipeline itself must surface or log.
"""


class BusinessLogicError(Exception):
    """
    Base class for expected runtime business logic failures.

    These are normal failures that occur during system operation
    and should be handled gracefully without crashing.
    """
    pass


class ConfigurationError(BusinessLogicError):
    """
    Invalid or missing configuration.

    Examples:
        - Routing table JSON cannot be parsed
        - Source container routed to an unknown target account
        - Public key reference not defined
    """
    pass


class DatabaseError(BusinessLogicError):
    """
    Database operation failures (connection lost, constraint violation, timeout).
    """
    pass


class BlobStorageError(BusinessLogicError):
    """
    Blob storage operation failed (network, permissions, throttling).
    """
    pass


class BlobStreamingError(BlobStorageError):
    """
    Upload of verified content to the target container failed.

    The target blob is not left committed in a half-written state.
    """
    pass


class InvalidZipArchiveError(BusinessLogicError):
    """Archive is not a zip or does not contain exactly envelope.zip + signature."""
    pass


class SignatureValidationError(BusinessLogicError):
    """Signature does not verify against any configured public key."""
    pass


class InvalidStateTransitionError(BusinessLogicError):
    """
    Envelope status change not allowed by the state machine.

    Examples:
        - DISPATCHED -> REJECTED
        - Marking a CREATED envelope as deleted
    """
    pass


class EnvelopeNotFoundError(BusinessLogicError):
    """Requested envelope id does not exist."""
    pass


class EnvelopeCompletedOrNotStaleError(BusinessLogicError):
    """
    Stale-envelope completion refused.

    The envelope is already terminal, or its most recent event is newer
    than the stale threshold.
    """
    pass


class NotificationPublishingError(BusinessLogicError):
    """
    Service Bus publish failures.

    Examples:
        - Service Bus unavailable
        - Queue not found
        - Authentication failure
    """
    pass
