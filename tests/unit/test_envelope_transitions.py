"""
Envelope state machine - exhaustive transition checks.
"""

import itertools

import pytest

from core.logic import (
    can_envelope_transition,
    can_mark_deleted,
    get_envelope_terminal_states,
    is_envelope_terminal,
)
from core.models import EnvelopeStatus

_VALID = {
    (EnvelopeStatus.CREATED, EnvelopeStatus.DISPATCHED),
    (EnvelopeStatus.CREATED, EnvelopeStatus.REJECTED),
}


class TestEnvelopeTransitions:

    @pytest.mark.parametrize("current,target", list(itertools.product(EnvelopeStatus, EnvelopeStatus)))
    def test_transition_table(self, current, target):
        assert can_envelope_transition(current, target) == ((current, target) in _VALID)

    @pytest.mark.parametrize("status", list(EnvelopeStatus))
    def test_same_status_is_not_a_transition(self, status):
        assert not can_envelope_transition(status, status)

    def test_terminal_states(self):
        assert set(get_envelope_terminal_states()) == {EnvelopeStatus.DISPATCHED, EnvelopeStatus.REJECTED}

    @pytest.mark.parametrize("status,terminal", [
        (EnvelopeStatus.CREATED, False),
        (EnvelopeStatus.DISPATCHED, True),
        (EnvelopeStatus.REJECTED, True),
    ])
    def test_terminal_and_deletable(self, status, terminal):
        assert is_envelope_terminal(status) == terminal
        assert can_mark_deleted(status) == terminal

    @pytest.mark.parametrize("status", list(EnvelopeStatus))
    def test_terminal_states_have_no_exits(self, status):
        if is_envelope_terminal(status):
            assert not any(can_envelope_transition(status, target) for target in EnvelopeStatus)
