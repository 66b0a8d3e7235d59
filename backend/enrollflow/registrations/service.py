"""Registration progression service - applies the auto-advance check to stored registrations.

The pure decision lives in domain.registrations.progression; this service
loads the inputs, applies the resulting transition, writes the audit trail
and sends the post-commit notification.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..audit.service import log_audit_event
from ..domain.errors import ConflictError, NotFoundError, UnauthorizedError
from ..domain.notifications import NotificationKind, NotificationSink, deliver
from ..domain.registrations.progression import (
    CompletenessCheck,
    determine_status_from_check,
    run_completeness_check,
)
from ..domain.registrations.status import (
    PaymentStatus,
    RegistrationStatus,
    StateTransitionError,
    is_rollback,
    validate_transition,
)
from ..domain.roles import UserRole
from ..models.registration import PaymentDeadline, Registration
from ..models.user import User
from ..models.user_document import UserDocument

logger = logging.getLogger(__name__)


@dataclass
class ProgressionResult:
    """Outcome of one evaluation of a registration."""
    registration_id: UUID
    previous_status: RegistrationStatus
    new_status: Optional[RegistrationStatus]
    check: CompletenessCheck

    @property
    def transitioned(self) -> bool:
        return self.new_status is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registration_id": str(self.registration_id),
            "previous_status": self.previous_status.value,
            "new_status": self.new_status.value if self.new_status else None,
            "transitioned": self.transitioned,
            "check": self.check.to_dict(),
        }


class RegistrationProgressionService:
    """Service for registration status progression."""

    def __init__(self, db: Session, notifier: Optional[NotificationSink] = None):
        self.db = db
        self.notifier = notifier

    def get_registration(self, registration_id: UUID) -> Registration:
        registration = self.db.get(Registration, registration_id)
        if registration is None:
            raise NotFoundError(f"Registration {registration_id} not found")
        return registration

    def check_can_view(self, registration: Registration, requester_id: UUID, role: UserRole) -> None:
        """Owner, the registration's partner, or a stored ADMIN user.

        Raises:
            UnauthorizedError: Otherwise
        """
        role = UserRole(role)
        if role == UserRole.ADMIN:
            user = self.db.get(User, requester_id)
            if user is not None and user.role == UserRole.ADMIN.value:
                return
        elif role == UserRole.USER and registration.user_id == requester_id:
            return
        elif role == UserRole.PARTNER and registration.partner_id == requester_id:
            return
        raise UnauthorizedError(f"Not allowed to view registration {registration.id}")

    def get_registration_for(self, registration_id: UUID, requester_id: UUID, role: UserRole) -> Registration:
        registration = self.get_registration(registration_id)
        self.check_can_view(registration, requester_id, role)
        return registration

    def list_documents(self, registration: Registration) -> List[UserDocument]:
        """Documents of a registration, most recently uploaded first."""
        return (
            self.db.query(UserDocument)
            .filter(UserDocument.registration_id == registration.id)
            .order_by(UserDocument.uploaded_at.desc(), UserDocument.id)
            .all()
        )

    def run_check(self, registration: Registration) -> CompletenessCheck:
        self.db.flush()
        documents = self.list_documents(registration)
        return run_completeness_check(
            offer_type=registration.offer_type,
            documents=documents,
            deadlines=registration.deadlines,
        )

    def reevaluate(
        self,
        registration: Registration,
        event: str = "manual",
        actor_id: Optional[UUID] = None,
    ) -> ProgressionResult:
        """Recompute the check and apply the implied transition, without committing.

        Used inside the transactions of document review and payment recording.
        """
        previous_status = RegistrationStatus(registration.status)
        check = self.run_check(registration)
        new_status = determine_status_from_check(
            offer_type=registration.offer_type,
            current_status=previous_status,
            check=check,
        )

        applied = None
        if new_status is not None:
            try:
                self.apply_transition(
                    registration,
                    new_status,
                    actor_id=actor_id,
                    reason=f"Auto-advance triggered by {event}",
                )
                applied = new_status
            except StateTransitionError as e:
                logger.warning(
                    f"Auto-advance skipped: {e}",
                    extra={"registration_id": str(registration.id)},
                )

        self.db.flush()
        return ProgressionResult(
            registration_id=registration.id,
            previous_status=previous_status,
            new_status=applied,
            check=check,
        )

    def evaluate_progression(
        self,
        registration_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> ProgressionResult:
        """Evaluate a registration, commit any transition and notify.

        Idempotent: a second call without intervening changes finds the
        registration already advanced and returns new_status=None.

        Raises:
            NotFoundError: If the registration does not exist
        """
        registration = self.get_registration(registration_id)
        result = self.reevaluate(registration, event="manual", actor_id=actor_id)
        self.db.commit()
        self.send_transition_notifications(result)
        return result

    def apply_transition(
        self,
        registration: Registration,
        new_status: RegistrationStatus,
        actor_id: Optional[UUID] = None,
        reason: Optional[str] = None,
    ) -> Registration:
        """Validate and apply a status change, with audit entry. Flushes, never commits.

        Raises:
            StateTransitionError: If the edge is not in the graph
        """
        old_status = RegistrationStatus(registration.status)
        new_status = RegistrationStatus(new_status)
        validate_transition(old_status, new_status)

        registration.status = new_status
        registration.updated_at = datetime.now(timezone.utc)

        log_audit_event(
            db=self.db,
            action="REGISTRATION_STATUS_CHANGED",
            actor_id=actor_id,
            entity_type="registration",
            entity_id=registration.id,
            metadata={
                "from_status": old_status.value,
                "to_status": new_status.value,
                "reason": reason,
                "rollback": is_rollback(old_status, new_status),
            },
        )

        logger.info(
            f"Registration {registration.id}: {old_status.value} -> {new_status.value}",
            extra={
                "registration_id": str(registration.id),
                "offer_type": registration.offer_type,
                "from_status": old_status.value,
                "to_status": new_status.value,
                "actor_id": str(actor_id) if actor_id else None,
            },
        )
        return registration

    def transition_status(
        self,
        registration_id: UUID,
        new_status: RegistrationStatus,
        actor_id: Optional[UUID] = None,
        reason: Optional[str] = None,
    ) -> Registration:
        """Manual (admin) status change validated against the graph.

        Raises:
            NotFoundError: If the registration does not exist
            ConflictError: If the transition is not allowed
        """
        registration = self.get_registration(registration_id)
        try:
            self.apply_transition(registration, new_status, actor_id=actor_id, reason=reason)
        except StateTransitionError as e:
            raise ConflictError(str(e))
        self.db.commit()
        return registration

    def record_deadline_payment(
        self,
        deadline_id: UUID,
        actor_id: Optional[UUID] = None,
    ) -> ProgressionResult:
        """Mark a payment deadline PAID and re-evaluate its registration.

        Recording an already-paid deadline is a no-op apart from the
        re-evaluation.

        Raises:
            NotFoundError: If the deadline does not exist
        """
        deadline = self.db.get(PaymentDeadline, deadline_id)
        if deadline is None:
            raise NotFoundError(f"Payment deadline {deadline_id} not found")

        if PaymentStatus(deadline.payment_status) != PaymentStatus.PAID:
            deadline.payment_status = PaymentStatus.PAID
            deadline.paid_at = datetime.now(timezone.utc)
            log_audit_event(
                db=self.db,
                action="PAYMENT_RECORDED",
                actor_id=actor_id,
                entity_type="registration",
                entity_id=deadline.registration_id,
                metadata={
                    "deadline_id": str(deadline.id),
                    "amount": str(deadline.amount),
                },
            )

        result = self.reevaluate(deadline.registration, event="payment_recorded", actor_id=actor_id)
        self.db.commit()
        self.send_transition_notifications(result)
        return result

    def send_transition_notifications(self, result: ProgressionResult) -> bool:
        """Notify the student about an automatic advance. Call after commit.

        Only the CERTIFICATION advance has a student-facing message; the TFA
        advance waits for Discovery, which notifies on its own decision.
        """
        if result.new_status != RegistrationStatus.DOCUMENTS_APPROVED:
            return False

        registration = self.get_registration(result.registration_id)
        user = registration.user
        return deliver(
            self.notifier,
            NotificationKind.CERTIFICATION_DOCUMENTS_APPROVED,
            user.email if user else None,
            {
                "first_name": user.first_name if user else None,
                "course_name": registration.course_name,
            },
        )
