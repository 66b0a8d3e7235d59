"""Unit tests for the registration status state machine"""

import pytest

from enrollflow.domain.registrations.status import (
    ALLOWED_TRANSITIONS,
    RegistrationStatus,
    StateTransitionError,
    can_transition,
    get_allowed_transitions,
    is_rollback,
    validate_transition,
)

S = RegistrationStatus


class TestRegistrationStatusGraph:

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(RegistrationStatus)

    def test_completed_is_terminal(self):
        assert get_allowed_transitions(S.COMPLETED) == []

    @pytest.mark.parametrize("current,target", [
        (S.PENDING, S.DATA_VERIFIED),
        (S.DATA_VERIFIED, S.CONTRACT_GENERATED),
        (S.CONTRACT_GENERATED, S.CONTRACT_SIGNED),
        (S.CONTRACT_SIGNED, S.DOCUMENTS_UPLOADED),
        (S.DOCUMENTS_UPLOADED, S.AWAITING_DISCOVERY_APPROVAL),
        (S.AWAITING_DISCOVERY_APPROVAL, S.ENROLLED),
        (S.ENROLLED, S.DOCUMENTS_APPROVED),
        (S.ENROLLED, S.CNRED_RELEASED),
        (S.CNRED_RELEASED, S.FINAL_EXAM),
        (S.FINAL_EXAM, S.RECOGNITION_REQUEST),
        (S.RECOGNITION_REQUEST, S.COMPLETED),
    ])
    def test_forward_edges_allowed(self, current, target):
        assert can_transition(current, target) is True
        validate_transition(current, target)

    def test_discovery_rejection_is_the_only_rollback(self):
        assert can_transition(S.AWAITING_DISCOVERY_APPROVAL, S.DOCUMENTS_UPLOADED) is True
        assert is_rollback(S.AWAITING_DISCOVERY_APPROVAL, S.DOCUMENTS_UPLOADED) is True
        assert is_rollback(S.DOCUMENTS_UPLOADED, S.AWAITING_DISCOVERY_APPROVAL) is False

    @pytest.mark.parametrize("current,target", [
        (S.ENROLLED, S.DOCUMENTS_UPLOADED),
        (S.DOCUMENTS_APPROVED, S.ENROLLED),
        (S.COMPLETED, S.PENDING),
        (S.PENDING, S.ENROLLED),
        (S.DOCUMENTS_UPLOADED, S.DOCUMENTS_UPLOADED),
    ])
    def test_invalid_edges_rejected(self, current, target):
        assert can_transition(current, target) is False
        with pytest.raises(StateTransitionError, match="Invalid transition"):
            validate_transition(current, target)
