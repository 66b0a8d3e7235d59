"""Registration status state machine.

State Flow:
    PENDING → DATA_VERIFIED → CONTRACT_GENERATED → CONTRACT_SIGNED
        → DOCUMENTS_UPLOADED → AWAITING_DISCOVERY_APPROVAL → ENROLLED
        → CNRED_RELEASED → FINAL_EXAM → RECOGNITION_REQUEST → COMPLETED

CERTIFICATION registrations reach ENROLLED straight after the contract is
signed and then move ENROLLED → DOCUMENTS_APPROVED once documents and
payments are complete.

The only backward edge is AWAITING_DISCOVERY_APPROVAL → DOCUMENTS_UPLOADED,
taken when Discovery rejects the document set.

Terminal State: COMPLETED
"""

from enum import Enum
from typing import List


class OfferType(str, Enum):
    """Product category of an enrollment; selects the required document set."""
    TFA_ROMANIA = "TFA_ROMANIA"
    CERTIFICATION = "CERTIFICATION"


class RegistrationStatus(str, Enum):
    """Registration lifecycle status."""
    PENDING = "PENDING"
    DATA_VERIFIED = "DATA_VERIFIED"
    CONTRACT_GENERATED = "CONTRACT_GENERATED"
    CONTRACT_SIGNED = "CONTRACT_SIGNED"
    DOCUMENTS_UPLOADED = "DOCUMENTS_UPLOADED"
    AWAITING_DISCOVERY_APPROVAL = "AWAITING_DISCOVERY_APPROVAL"
    DOCUMENTS_APPROVED = "DOCUMENTS_APPROVED"
    ENROLLED = "ENROLLED"
    CNRED_RELEASED = "CNRED_RELEASED"
    FINAL_EXAM = "FINAL_EXAM"
    RECOGNITION_REQUEST = "RECOGNITION_REQUEST"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


ALLOWED_TRANSITIONS = {
    RegistrationStatus.PENDING: [RegistrationStatus.DATA_VERIFIED],
    RegistrationStatus.DATA_VERIFIED: [RegistrationStatus.CONTRACT_GENERATED],
    RegistrationStatus.CONTRACT_GENERATED: [RegistrationStatus.CONTRACT_SIGNED],
    RegistrationStatus.CONTRACT_SIGNED: [
        RegistrationStatus.DOCUMENTS_UPLOADED,
        RegistrationStatus.ENROLLED,  # CERTIFICATION
    ],
    RegistrationStatus.DOCUMENTS_UPLOADED: [
        RegistrationStatus.AWAITING_DISCOVERY_APPROVAL,
        RegistrationStatus.ENROLLED,  # Discovery approval ahead of partner review
    ],
    RegistrationStatus.AWAITING_DISCOVERY_APPROVAL: [
        RegistrationStatus.ENROLLED,
        RegistrationStatus.DOCUMENTS_UPLOADED,  # Discovery rejection rollback
    ],
    RegistrationStatus.ENROLLED: [
        RegistrationStatus.DOCUMENTS_APPROVED,  # CERTIFICATION
        RegistrationStatus.CNRED_RELEASED,      # TFA_ROMANIA
    ],
    RegistrationStatus.DOCUMENTS_APPROVED: [RegistrationStatus.FINAL_EXAM],
    RegistrationStatus.CNRED_RELEASED: [RegistrationStatus.FINAL_EXAM],
    RegistrationStatus.FINAL_EXAM: [
        RegistrationStatus.RECOGNITION_REQUEST,
        RegistrationStatus.COMPLETED,
    ],
    RegistrationStatus.RECOGNITION_REQUEST: [RegistrationStatus.COMPLETED],
    RegistrationStatus.COMPLETED: [],  # Terminal state
}

ROLLBACK_TRANSITIONS = {
    (RegistrationStatus.AWAITING_DISCOVERY_APPROVAL, RegistrationStatus.DOCUMENTS_UPLOADED),
}


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def validate_transition(
    current_status: RegistrationStatus,
    new_status: RegistrationStatus
) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current registration status
        new_status: Target status to transition to

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{[s.value for s in allowed]}"
        )


def can_transition(
    current_status: RegistrationStatus,
    new_status: RegistrationStatus
) -> bool:
    """Check if a state transition is allowed without raising exception."""
    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])


def is_rollback(
    current_status: RegistrationStatus,
    new_status: RegistrationStatus
) -> bool:
    """True for the single backward edge of the graph."""
    return (current_status, new_status) in ROLLBACK_TRANSITIONS


def get_allowed_transitions(status: RegistrationStatus) -> List[RegistrationStatus]:
    return ALLOWED_TRANSITIONS.get(status, [])
