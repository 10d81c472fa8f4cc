"""
Core Business Logic Package.

Contains business logic that operates on pure data models.

Exports:
    State transitions: can_envelope_transition, is_envelope_terminal,
    get_envelope_terminal_states, can_mark_deleted
"""

from .transitions import (
    can_envelope_transition,
    get_envelope_terminal_states,
    is_envelope_terminal,
    can_mark_deleted,
)

__all__ = [
    'can_envelope_transition',
    'get_envelope_terminal_states',
    'is_envelope_terminal',
    'can_mark_deleted',
]
