"""
State Transition Logic for Envelopes.

Contains business rules for valid envelope state transitions.
Separated from data models for clean architecture.

Exports:
    can_envelope_transition: Check if an envelope status change is valid
    get_envelope_terminal_states: Terminal statuses
    is_envelope_terminal: Check if a status is terminal
    can_mark_deleted: Check if is_deleted may be set

Dependencies:
    core.models.enums: EnvelopeStatus
"""

from typing import List

from ..models.enums import EnvelopeStatus


_TRANSITIONS = {
    EnvelopeStatus.CREATED: [EnvelopeStatus.DISPATCHED, EnvelopeStatus.REJECTED],
    EnvelopeStatus.DISPATCHED: [],  # Terminal state
    EnvelopeStatus.REJECTED: [],    # Terminal state
}


def can_envelope_transition(current: EnvelopeStatus, target: EnvelopeStatus) -> bool:
    """
    Check if an envelope can transition from current to target status.

    Unlike job status updates, a same-status write is NOT a no-op here:
    DISPATCHED -> DISPATCHED would record a second dispatch.

    Args:
        current: Current envelope status
        target: Target envelope status

    Returns:
        True if transition is valid, False otherwise
    """
    return target in _TRANSITIONS.get(current, [])


def get_envelope_terminal_states() -> List[EnvelopeStatus]:
    """Get list of terminal envelope states."""
    return [EnvelopeStatus.DISPATCHED, EnvelopeStatus.REJECTED]


def is_envelope_terminal(status: EnvelopeStatus) -> bool:
    """Check if envelope status is terminal."""
    return status in get_envelope_terminal_states()


def can_mark_deleted(status: EnvelopeStatus) -> bool:
    """Source blob cleanup is only recorded for terminal envelopes."""
    return is_envelope_terminal(status)
