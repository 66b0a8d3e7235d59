"""Audit logging service for document actions and administrative events.

Two append-only logs are written here:

- DocumentActionLog: per-document actions (UPLOAD, APPROVE, REJECT, CHECK,
  REPLACE, DELETE, DOWNLOAD, NOTIFY_PARTNER)
- AuditLog: registration-level admin actions (DISCOVERY_APPROVED,
  DISCOVERY_REJECTED, REGISTRATION_STATUS_CHANGED, PAYMENT_RECORDED)

Writes are best-effort. Pending primary changes are flushed first so their
errors still reach the caller; the audit row is then inserted inside a
SAVEPOINT, and a failure there is logged and rolled back to the savepoint
without affecting the surrounding transaction.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.documents.document_status import DocumentAction
from ..models.audit_log import AuditLog
from ..models.document_action_log import DocumentActionLog

logger = logging.getLogger(__name__)


def _write_best_effort(db: Session, entry) -> bool:
    db.flush()
    try:
        with db.begin_nested():
            db.add(entry)
    except SQLAlchemyError as e:
        logger.warning(f"Audit write failed for {type(entry).__name__} '{entry.action}': {e}")
        return False
    return True


def log_document_action(
    db: Session,
    document_id: UUID,
    action: DocumentAction,
    performed_by: Optional[UUID] = None,
    performed_role: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[DocumentActionLog]:
    """Append an entry to the document action log.

    Args:
        db: Database session
        document_id: Document the action applies to (kept after deletion)
        action: DocumentAction value
        performed_by: Actor ID (None for system actions)
        performed_role: Actor role (USER, PARTNER, ADMIN)
        details: Additional context as JSON

    Returns:
        The entry, or None if the write failed
    """
    entry = DocumentActionLog(
        document_id=document_id,
        action=DocumentAction(action).value,
        performed_by=performed_by,
        performed_role=performed_role,
        details=details,
    )
    return entry if _write_best_effort(db, entry) else None


def log_audit_event(
    db: Session,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Create a registration-level audit log entry.

    Example:
        log_audit_event(
            db=db,
            action="DISCOVERY_APPROVED",
            actor_id=admin.id,
            entity_type="registration",
            entity_id=registration.id,
            metadata={"documents": 8},
        )
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=metadata,
    )
    return entry if _write_best_effort(db, entry) else None


def list_document_actions(db: Session, document_id: UUID) -> List[DocumentActionLog]:
    """Document action log entries, oldest first."""
    return (
        db.query(DocumentActionLog)
        .filter(DocumentActionLog.document_id == document_id)
        .order_by(DocumentActionLog.created_at.asc())
        .all()
    )


def list_audit_events(
    db: Session,
    entity_type: str,
    entity_id: UUID,
) -> List[AuditLog]:
    """Audit log entries for one entity, oldest first."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )
