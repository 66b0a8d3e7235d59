"""Discovery (second-tier) review of a registration's full document set.

Discovery is the central admin team. It approves or rejects all documents
of a registration at once after the partner review is complete. Each bulk
operation runs in one transaction and rolls back entirely on failure; the
email is sent only after commit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..audit.service import log_audit_event, log_document_action
from ..domain.documents.document_status import DocumentAction, UserDocumentStatus
from ..domain.errors import ConflictError, UnauthorizedError, ValidationError
from ..domain.notifications import NotificationKind, NotificationSink, deliver
from ..domain.registrations.status import RegistrationStatus, can_transition
from ..domain.roles import UserRole
from ..models.registration import Registration
from ..models.user import User
from ..registrations.service import RegistrationProgressionService

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryOutcome:
    registration: Registration
    documents_count: int
    status_changed: bool
    email_sent: bool


def _require_admin(db: Session, admin_id: UUID) -> User:
    admin = db.get(User, admin_id)
    if admin is None or admin.role != UserRole.ADMIN.value:
        raise UnauthorizedError(f"User {admin_id} is not an administrator")
    return admin


def _move_if_allowed(
    progression: RegistrationProgressionService,
    registration: Registration,
    target: RegistrationStatus,
    admin_id: UUID,
    reason: str,
) -> bool:
    current = RegistrationStatus(registration.status)
    if not can_transition(current, target):
        logger.warning(
            f"Registration {registration.id} left at {current.value}: "
            f"{current.value} -> {target.value} not allowed",
            extra={"registration_id": str(registration.id), "from_status": current.value},
        )
        return False
    progression.apply_transition(registration, target, actor_id=admin_id, reason=reason)
    return True


def bulk_approve_registration(
    db: Session,
    registration_id: UUID,
    admin_id: UUID,
    notes: Optional[str] = None,
    notifier: Optional[NotificationSink] = None,
) -> DiscoveryOutcome:
    """Approve every document of a registration and enroll the student.

    All documents become APPROVED with discovery_approved_at/by stamped and
    any earlier Discovery rejection cleared. The registration moves to
    ENROLLED when the graph allows it from its current status.

    Raises:
        NotFoundError: If the registration does not exist
        UnauthorizedError: If admin_id is not an administrator
        ConflictError: If the registration has no documents
    """
    progression = RegistrationProgressionService(db, notifier)
    registration = progression.get_registration(registration_id)
    _require_admin(db, admin_id)

    documents = progression.list_documents(registration)
    if not documents:
        raise ConflictError(f"Registration {registration_id} has no documents to approve")

    now = datetime.now(timezone.utc)
    try:
        for document in documents:
            previous_status = UserDocumentStatus(document.status).value
            document.status = UserDocumentStatus.APPROVED
            document.discovery_approved_at = now
            document.discovery_approved_by = admin_id
            document.discovery_rejected_at = None
            document.discovery_rejection_reason = None
            log_document_action(
                db,
                document_id=document.id,
                action=DocumentAction.APPROVE,
                performed_by=admin_id,
                performed_role=UserRole.ADMIN.value,
                details={"discovery": True, "previous_status": previous_status, "notes": notes},
            )

        log_audit_event(
            db=db,
            action="DISCOVERY_APPROVED",
            actor_id=admin_id,
            entity_type="registration",
            entity_id=registration.id,
            metadata={"documents": len(documents), "notes": notes},
        )

        status_changed = _move_if_allowed(
            progression, registration, RegistrationStatus.ENROLLED, admin_id,
            reason="Discovery approved all documents",
        )
        progression_result = progression.reevaluate(
            registration, event="discovery_approved", actor_id=admin_id
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    user = registration.user
    email_sent = deliver(
        notifier,
        NotificationKind.ENROLLMENT_CONFIRMED,
        user.email if user else None,
        {
            "first_name": user.first_name if user else None,
            "course_name": registration.course_name,
            "notes": notes,
        },
    )
    progression.send_transition_notifications(progression_result)

    return DiscoveryOutcome(
        registration=registration,
        documents_count=len(documents),
        status_changed=status_changed or progression_result.transitioned,
        email_sent=email_sent,
    )


def bulk_reject_registration(
    db: Session,
    registration_id: UUID,
    admin_id: UUID,
    reason: str,
    notifier: Optional[NotificationSink] = None,
) -> DiscoveryOutcome:
    """Flag every document of a registration as rejected by Discovery.

    Only discovery_rejected_at/reason are stamped; the partner review status
    of each document is left untouched. The registration rolls back to
    DOCUMENTS_UPLOADED when the graph allows it.

    Raises:
        ValidationError: If reason is blank
        NotFoundError: If the registration does not exist
        UnauthorizedError: If admin_id is not an administrator
    """
    if not reason or not reason.strip():
        raise ValidationError("Rejection reason is required")
    reason = reason.strip()

    progression = RegistrationProgressionService(db, notifier)
    registration = progression.get_registration(registration_id)
    _require_admin(db, admin_id)

    documents = progression.list_documents(registration)

    now = datetime.now(timezone.utc)
    try:
        for document in documents:
            document.discovery_rejected_at = now
            document.discovery_rejection_reason = reason
            log_document_action(
                db,
                document_id=document.id,
                action=DocumentAction.REJECT,
                performed_by=admin_id,
                performed_role=UserRole.ADMIN.value,
                details={"discovery": True, "reason": reason},
            )

        log_audit_event(
            db=db,
            action="DISCOVERY_REJECTED",
            actor_id=admin_id,
            entity_type="registration",
            entity_id=registration.id,
            metadata={"documents": len(documents), "reason": reason},
        )

        status_changed = _move_if_allowed(
            progression, registration, RegistrationStatus.DOCUMENTS_UPLOADED, admin_id,
            reason=f"Discovery rejected documents: {reason}",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    user = registration.user
    email_sent = deliver(
        notifier,
        NotificationKind.DISCOVERY_REJECTED,
        user.email if user else None,
        {
            "first_name": user.first_name if user else None,
            "course_name": registration.course_name,
            "reason": reason,
        },
    )

    return DiscoveryOutcome(
        registration=registration,
        documents_count=len(documents),
        status_changed=status_changed,
        email_sent=email_sent,
    )
