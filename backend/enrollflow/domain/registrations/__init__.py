"""Registrations domain module - offer types, status graph, progression rules.

The progression check lives in ``progression`` and is imported from there
directly; this package only re-exports the enumerations and graph helpers.
"""

from .status import (
    OfferType,
    RegistrationStatus,
    PaymentStatus,
    ALLOWED_TRANSITIONS,
    StateTransitionError,
    validate_transition,
    can_transition,
    is_rollback,
    get_allowed_transitions,
)

__all__ = [
    "OfferType",
    "RegistrationStatus",
    "PaymentStatus",
    "ALLOWED_TRANSITIONS",
    "StateTransitionError",
    "validate_transition",
    "can_transition",
    "is_rollback",
    "get_allowed_transitions",
]
