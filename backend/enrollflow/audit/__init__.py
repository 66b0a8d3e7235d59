"""Audit logging for document actions and admin events."""

from .service import (
    log_document_action,
    log_audit_event,
    list_document_actions,
    list_audit_events,
)

__all__ = [
    "log_document_action",
    "log_audit_event",
    "list_document_actions",
    "list_audit_events",
]
