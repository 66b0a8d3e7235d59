"""Notification Sink Port - domain interface for outbound notifications.

Delivery is fire-and-forget: the domain never depends on a notification
having been delivered. Adapters (SMTP, log-only, in-memory for tests)
implement send() and report success with a boolean.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict


class NotificationKind(str, Enum):
    DOCUMENT_APPROVED = "DOCUMENT_APPROVED"
    DOCUMENT_REJECTED = "DOCUMENT_REJECTED"
    PARTNER_NEW_DOCUMENT = "PARTNER_NEW_DOCUMENT"
    ENROLLMENT_CONFIRMED = "ENROLLMENT_CONFIRMED"
    DISCOVERY_REJECTED = "DISCOVERY_REJECTED"
    CERTIFICATION_DOCUMENTS_APPROVED = "CERTIFICATION_DOCUMENTS_APPROVED"


class NotificationSink(ABC):
    """Port interface for sending notifications to users and partners."""

    @abstractmethod
    def send(self, kind: NotificationKind, recipient: str, payload: Dict[str, Any]) -> bool:
        """Send a notification.

        Args:
            kind: What happened
            recipient: Email address of the recipient
            payload: Template context (names, document type, reasons, ...)

        Returns:
            True if the notification was accepted for delivery

        Implementations may raise on transport failures; callers go through
        dispatch.deliver() which converts any exception into False.
        """
