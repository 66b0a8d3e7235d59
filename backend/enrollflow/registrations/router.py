"""Registrations API Router - progression, manual transitions, payments, Discovery review."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import Actor, get_actor, get_notifier, require_admin
from ..documents.discovery import bulk_approve_registration, bulk_reject_registration
from ..domain.notifications.ports import NotificationSink
from .schemas import (
    DiscoveryApproveRequest,
    DiscoveryRejectRequest,
    DiscoveryResponse,
    ProgressionResponse,
    RegistrationResponse,
    StatusTransitionRequest,
)
from .service import RegistrationProgressionService

router = APIRouter(prefix="/registrations", tags=["registrations"])


@router.get("/{registration_id}", response_model=RegistrationResponse)
def get_registration(
    registration_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Registration with its payment plan. Visible to the owner, its partner and admins."""
    return RegistrationProgressionService(db).get_registration_for(registration_id, actor.id, actor.role)


@router.post("/{registration_id}/evaluate", response_model=ProgressionResponse)
def evaluate(
    registration_id: UUID,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Re-run the auto-advance check and apply any resulting transition.

    Safe to call repeatedly: without intervening changes the second call
    reports transitioned=false.
    """
    service = RegistrationProgressionService(db, notifier)
    return service.evaluate_progression(registration_id, actor_id=actor.id).to_dict()


@router.post("/{registration_id}/status", response_model=RegistrationResponse)
def change_status(
    registration_id: UUID,
    body: StatusTransitionRequest,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Manual status change, validated against the registration status graph (409 if not allowed)."""
    service = RegistrationProgressionService(db)
    return service.transition_status(
        registration_id, body.status, actor_id=actor.id, reason=body.reason
    )


@router.post("/deadlines/{deadline_id}/pay", response_model=ProgressionResponse)
def record_payment(
    deadline_id: UUID,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Mark an installment PAID and re-evaluate the registration."""
    service = RegistrationProgressionService(db, notifier)
    return service.record_deadline_payment(deadline_id, actor_id=actor.id).to_dict()


@router.post("/{registration_id}/discovery/approve", response_model=DiscoveryResponse)
def discovery_approve(
    registration_id: UUID,
    body: DiscoveryApproveRequest,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Approve all documents of a registration and enroll the student."""
    outcome = bulk_approve_registration(
        db, registration_id, actor.id, notes=body.notes, notifier=notifier
    )
    return DiscoveryResponse(
        registration_id=outcome.registration.id,
        status=outcome.registration.status,
        documents_count=outcome.documents_count,
        status_changed=outcome.status_changed,
        email_sent=outcome.email_sent,
    )


@router.post("/{registration_id}/discovery/reject", response_model=DiscoveryResponse)
def discovery_reject(
    registration_id: UUID,
    body: DiscoveryRejectRequest,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
):
    """Flag all documents as rejected by Discovery and send the registration back."""
    outcome = bulk_reject_registration(
        db, registration_id, actor.id, reason=body.reason, notifier=notifier
    )
    return DiscoveryResponse(
        registration_id=outcome.registration.id,
        status=outcome.registration.status,
        documents_count=outcome.documents_count,
        status_changed=outcome.status_changed,
        email_sent=outcome.email_sent,
    )
