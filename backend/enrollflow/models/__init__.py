"""SQLAlchemy Models for EnrollFlow"""

from .base import Base
from .user import User, Partner
from .registration import Registration, PaymentDeadline
from .user_document import UserDocument
from .document_action_log import DocumentActionLog
from .audit_log import AuditLog

__all__ = [
    "Base",
    "User",
    "Partner",
    "Registration",
    "PaymentDeadline",
    "UserDocument",
    "DocumentActionLog",
    "AuditLog",
]
