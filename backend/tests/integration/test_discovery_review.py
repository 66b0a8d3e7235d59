"""Integration tests for Discovery bulk approval and rejection"""

from uuid import uuid4

import pytest

from enrollflow.audit.service import list_audit_events, list_document_actions
from enrollflow.documents import discovery
from enrollflow.documents.discovery import bulk_approve_registration, bulk_reject_registration
from enrollflow.domain.documents.document_status import UserDocumentStatus
from enrollflow.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from enrollflow.domain.notifications import NotificationKind
from enrollflow.domain.registrations.status import RegistrationStatus
from enrollflow.models import UserDocument

from fixtures.fakes import FailingNotificationSink


def registration_documents(db_session, registration):
    return (
        db_session.query(UserDocument)
        .filter(UserDocument.registration_id == registration.id)
        .all()
    )


@pytest.fixture
def awaiting_registration(make_registration, fill_required_documents):
    registration = make_registration(status=RegistrationStatus.AWAITING_DISCOVERY_APPROVAL)
    fill_required_documents(registration)
    return registration


class TestBulkApprove:

    def test_enrolls_and_approves_every_document(
        self, db_session, awaiting_registration, admin_user, notifier, student
    ):
        outcome = bulk_approve_registration(
            db_session, awaiting_registration.id, admin_user.id, notes="Tutto in ordine", notifier=notifier
        )

        assert outcome.documents_count == 8
        assert outcome.status_changed is True
        assert outcome.email_sent is True
        db_session.refresh(awaiting_registration)
        assert awaiting_registration.status == RegistrationStatus.ENROLLED

        for document in registration_documents(db_session, awaiting_registration):
            assert document.status == UserDocumentStatus.APPROVED
            assert document.discovery_approved_by == admin_user.id
            assert document.discovery_approved_at is not None

        assert notifier.kinds() == [NotificationKind.ENROLLMENT_CONFIRMED]
        assert notifier.sent[0][1] == student.email

        actions = {e.action for e in list_audit_events(db_session, "registration", awaiting_registration.id)}
        assert actions == {"DISCOVERY_APPROVED", "REGISTRATION_STATUS_CHANGED"}

    def test_clears_earlier_discovery_rejection(self, db_session, awaiting_registration, admin_user):
        bulk_reject_registration(db_session, awaiting_registration.id, admin_user.id, reason="Foto sfocate")

        bulk_approve_registration(db_session, awaiting_registration.id, admin_user.id)

        for document in registration_documents(db_session, awaiting_registration):
            assert document.discovery_rejected_at is None
            assert document.discovery_rejection_reason is None
            assert document.status == UserDocumentStatus.APPROVED
        db_session.refresh(awaiting_registration)
        assert awaiting_registration.status == RegistrationStatus.ENROLLED

    def test_status_outside_graph_is_left_alone(
        self, db_session, make_registration, fill_required_documents, admin_user
    ):
        registration = make_registration(status=RegistrationStatus.PENDING)
        fill_required_documents(registration, status=UserDocumentStatus.PENDING, reviewed=False)

        outcome = bulk_approve_registration(db_session, registration.id, admin_user.id)

        assert outcome.status_changed is False
        db_session.refresh(registration)
        assert registration.status == RegistrationStatus.PENDING
        assert all(
            d.status == UserDocumentStatus.APPROVED
            for d in registration_documents(db_session, registration)
        )

    def test_no_documents_is_conflict(self, db_session, make_registration, admin_user):
        registration = make_registration(status=RegistrationStatus.AWAITING_DISCOVERY_APPROVAL)

        with pytest.raises(ConflictError):
            bulk_approve_registration(db_session, registration.id, admin_user.id)

    def test_requires_admin(self, db_session, awaiting_registration, student):
        with pytest.raises(UnauthorizedError):
            bulk_approve_registration(db_session, awaiting_registration.id, student.id)

    def test_unknown_registration(self, db_session, admin_user):
        with pytest.raises(NotFoundError):
            bulk_approve_registration(db_session, uuid4(), admin_user.id)

    def test_failure_rolls_back_every_document(self, db_session, awaiting_registration, admin_user, monkeypatch):
        def broken_audit(*args, **kwargs):
            raise RuntimeError("audit store down")

        monkeypatch.setattr(discovery, "log_audit_event", broken_audit)

        with pytest.raises(RuntimeError):
            bulk_approve_registration(db_session, awaiting_registration.id, admin_user.id)

        db_session.refresh(awaiting_registration)
        assert awaiting_registration.status == RegistrationStatus.AWAITING_DISCOVERY_APPROVAL
        for document in registration_documents(db_session, awaiting_registration):
            assert document.status == UserDocumentStatus.APPROVED_BY_PARTNER
            assert document.discovery_approved_at is None


class TestBulkReject:

    def test_flags_documents_and_rolls_registration_back(
        self, db_session, awaiting_registration, admin_user, notifier
    ):
        outcome = bulk_reject_registration(
            db_session, awaiting_registration.id, admin_user.id, reason="Traduzioni mancanti", notifier=notifier
        )

        assert outcome.status_changed is True
        db_session.refresh(awaiting_registration)
        assert awaiting_registration.status == RegistrationStatus.DOCUMENTS_UPLOADED

        for document in registration_documents(db_session, awaiting_registration):
            # Partner review status is untouched
            assert document.status == UserDocumentStatus.APPROVED_BY_PARTNER
            assert document.discovery_rejected_at is not None
            assert document.discovery_rejection_reason == "Traduzioni mancanti"
            assert list_document_actions(db_session, document.id)[-1].action == "REJECT"

        assert notifier.kinds() == [NotificationKind.DISCOVERY_REJECTED]
        assert notifier.sent[0][2]["reason"] == "Traduzioni mancanti"

        events = list_audit_events(db_session, "registration", awaiting_registration.id)
        rollback = next(e for e in events if e.action == "REGISTRATION_STATUS_CHANGED")
        assert rollback.metadata_json["rollback"] is True

    def test_registration_already_enrolled_keeps_status(
        self, db_session, make_registration, fill_required_documents, admin_user
    ):
        registration = make_registration(status=RegistrationStatus.ENROLLED)
        fill_required_documents(registration)

        outcome = bulk_reject_registration(db_session, registration.id, admin_user.id, reason="Verifica")

        assert outcome.status_changed is False
        db_session.refresh(registration)
        assert registration.status == RegistrationStatus.ENROLLED

    @pytest.mark.parametrize("reason", ["", "  "])
    def test_blank_reason(self, db_session, awaiting_registration, admin_user, reason):
        with pytest.raises(ValidationError):
            bulk_reject_registration(db_session, awaiting_registration.id, admin_user.id, reason=reason)

    def test_requires_admin(self, db_session, awaiting_registration, partner):
        with pytest.raises(UnauthorizedError):
            bulk_reject_registration(db_session, awaiting_registration.id, partner.id, reason="No")

    def test_failing_sink_is_not_fatal(self, db_session, awaiting_registration, admin_user):
        outcome = bulk_reject_registration(
            db_session, awaiting_registration.id, admin_user.id, reason="Scadute",
            notifier=FailingNotificationSink(),
        )

        assert outcome.email_sent is False
        db_session.refresh(awaiting_registration)
        assert awaiting_registration.status == RegistrationStatus.DOCUMENTS_UPLOADED