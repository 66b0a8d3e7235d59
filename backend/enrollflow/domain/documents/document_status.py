"""UserDocument review status and the action vocabulary of the document log.

Review flow:
    PENDING → APPROVED_BY_PARTNER | REJECTED_BY_PARTNER   (partner-company registrations)
    PENDING → APPROVED | REJECTED                          (single-tier review)
    any → APPROVED                                         (Discovery bulk approval)

A re-upload replaces the document with a fresh PENDING one, so there is no
transition out of REJECTED* other than replacement or a new review.
"""

from enum import Enum
from typing import FrozenSet


class UserDocumentStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    APPROVED_BY_PARTNER = "APPROVED_BY_PARTNER"
    REJECTED_BY_PARTNER = "REJECTED_BY_PARTNER"


APPROVED_STATUSES: FrozenSet[UserDocumentStatus] = frozenset({
    UserDocumentStatus.APPROVED,
    UserDocumentStatus.APPROVED_BY_PARTNER,
})

REJECTED_STATUSES: FrozenSet[UserDocumentStatus] = frozenset({
    UserDocumentStatus.REJECTED,
    UserDocumentStatus.REJECTED_BY_PARTNER,
})


class DocumentAction(str, Enum):
    """Actions recorded in the append-only document action log."""
    UPLOAD = "UPLOAD"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CHECK = "CHECK"
    REPLACE = "REPLACE"
    DELETE = "DELETE"
    DOWNLOAD = "DOWNLOAD"
    NOTIFY_PARTNER = "NOTIFY_PARTNER"


class UploadSource(str, Enum):
    """Where an upload originated."""
    ENROLLMENT = "ENROLLMENT"
    USER_DASHBOARD = "USER_DASHBOARD"
    PARTNER_PANEL = "PARTNER_PANEL"


def is_approved(status) -> bool:
    """True for APPROVED and APPROVED_BY_PARTNER (accepts enum members or raw strings)."""
    try:
        return UserDocumentStatus(status) in APPROVED_STATUSES
    except ValueError:
        return False


def is_rejected(status) -> bool:
    try:
        return UserDocumentStatus(status) in REJECTED_STATUSES
    except ValueError:
        return False
