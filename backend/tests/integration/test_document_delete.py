"""Integration tests for document deletion, download links and the action log"""

from io import BytesIO
from uuid import uuid4

import pytest
import pytest_asyncio

from enrollflow.audit.service import list_document_actions
from enrollflow.documents.service import DocumentService
from enrollflow.domain.documents.document_status import UserDocumentStatus
from enrollflow.domain.errors import ConflictError, NotFoundError, UnauthorizedError
from enrollflow.domain.roles import UserRole
from enrollflow.models import UserDocument


@pytest.fixture
def service(db_session, storage, notifier):
    return DocumentService(db_session, storage, notifier, download_url_ttl=600)


@pytest_asyncio.fixture
async def uploaded(service, tfa_registration):
    outcome = await service.upload_document(
        user_id=tfa_registration.user_id,
        file=BytesIO(b"%PDF-1.4 transcript"),
        filename="libretto.pdf",
        mime_type="application/pdf",
        document_type="TRANSCRIPT",
        registration_id=tfa_registration.id,
    )
    return outcome.document


class TestDelete:

    @pytest.mark.asyncio
    async def test_owner_deletes_pending_document(self, service, db_session, uploaded, storage, student):
        document_id = uploaded.id
        storage_key = uploaded.storage_key

        outcome = await service.delete_document(document_id, requester_id=student.id, role=UserRole.USER)

        assert outcome.blob_deleted is True
        assert db_session.get(UserDocument, document_id) is None
        assert storage_key not in storage.objects

    @pytest.mark.asyncio
    async def test_delete_entry_survives_the_row(self, service, db_session, uploaded, student):
        document_id = uploaded.id

        await service.delete_document(document_id, requester_id=student.id)

        trail = service.get_document_audit_trail(document_id, requester_id=student.id)
        assert trail[-1].action == "DELETE"
        assert trail[-1].performed_by == student.id
        assert trail[-1].details["type"] == "TRANSCRIPT"

    @pytest.mark.asyncio
    async def test_approved_document_cannot_be_deleted(self, service, db_session, uploaded, student, partner, storage):
        service.approve_document(uploaded.id, reviewer_id=partner.id)

        with pytest.raises(ConflictError):
            await service.delete_document(uploaded.id, requester_id=student.id)

        assert db_session.get(UserDocument, uploaded.id) is not None
        assert uploaded.storage_key in storage.objects

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_approved_document_either(
        self, service, db_session, tfa_registration, make_document, admin_user
    ):
        document = make_document(tfa_registration, "DIPLOMA", status=UserDocumentStatus.APPROVED_BY_PARTNER, reviewed=True)

        with pytest.raises(ConflictError):
            await service.delete_document(document.id, requester_id=admin_user.id, role=UserRole.ADMIN)

    @pytest.mark.asyncio
    async def test_admin_deletes_rejected_document(
        self, service, db_session, tfa_registration, make_document, admin_user
    ):
        document = make_document(tfa_registration, "DIPLOMA", status=UserDocumentStatus.REJECTED_BY_PARTNER, reviewed=True)

        outcome = await service.delete_document(document.id, requester_id=admin_user.id, role=UserRole.ADMIN)

        # make_document never stored a blob
        assert outcome.blob_deleted is False
        assert db_session.get(UserDocument, document.id) is None

    @pytest.mark.asyncio
    async def test_other_student_cannot_delete(self, service, uploaded, other_student):
        with pytest.raises(UnauthorizedError):
            await service.delete_document(uploaded.id, requester_id=other_student.id)

    @pytest.mark.asyncio
    async def test_partner_cannot_delete(self, service, uploaded, partner):
        with pytest.raises(UnauthorizedError):
            await service.delete_document(uploaded.id, requester_id=partner.id, role=UserRole.PARTNER)

    @pytest.mark.asyncio
    async def test_claimed_admin_role_is_checked(self, service, uploaded, other_student):
        with pytest.raises(UnauthorizedError):
            await service.delete_document(uploaded.id, requester_id=other_student.id, role=UserRole.ADMIN)

    @pytest.mark.asyncio
    async def test_blob_failure_still_removes_row(self, service, db_session, uploaded, storage, student):
        storage.fail_on_delete = True
        document_id = uploaded.id

        outcome = await service.delete_document(document_id, requester_id=student.id)

        assert outcome.blob_deleted is False
        assert db_session.get(UserDocument, document_id) is None

    @pytest.mark.asyncio
    async def test_unknown_document(self, service, student):
        with pytest.raises(NotFoundError):
            await service.delete_document(uuid4(), requester_id=student.id)


class TestDownload:

    @pytest.mark.asyncio
    async def test_owner_gets_url_and_download_is_logged(self, service, db_session, uploaded, student):
        url = await service.get_download_url(uploaded.id, requester_id=student.id)

        assert url == f"https://storage.test/{uploaded.storage_key}?expires=600"
        assert list_document_actions(db_session, uploaded.id)[-1].action == "DOWNLOAD"

    @pytest.mark.asyncio
    async def test_partner_of_registration_may_download(self, service, uploaded, partner):
        url = await service.get_download_url(uploaded.id, requester_id=partner.id, role=UserRole.PARTNER)

        assert url.startswith("https://storage.test/")

    @pytest.mark.asyncio
    async def test_other_partner_may_not_download(self, service, uploaded, other_partner):
        with pytest.raises(UnauthorizedError):
            await service.get_download_url(uploaded.id, requester_id=other_partner.id, role=UserRole.PARTNER)

    @pytest.mark.asyncio
    async def test_missing_blob_is_not_found(self, service, tfa_registration, make_document, student):
        document = make_document(tfa_registration, "DIPLOMA")

        with pytest.raises(NotFoundError):
            await service.get_download_url(document.id, requester_id=student.id)


class TestAuditTrail:

    def test_unknown_document_without_history(self, service, student):
        with pytest.raises(NotFoundError):
            service.get_document_audit_trail(uuid4(), requester_id=student.id)

    @pytest.mark.asyncio
    async def test_trail_visible_to_owner_and_partner_only(self, service, uploaded, student, partner, other_partner, other_student):
        assert service.get_document_audit_trail(uploaded.id, requester_id=student.id)[0].action == "UPLOAD"
        assert service.get_document_audit_trail(uploaded.id, requester_id=partner.id, role=UserRole.PARTNER)

        with pytest.raises(UnauthorizedError):
            service.get_document_audit_trail(uploaded.id, requester_id=other_partner.id, role=UserRole.PARTNER)
        with pytest.raises(UnauthorizedError):
            service.get_document_audit_trail(uploaded.id, requester_id=other_student.id)
        with pytest.raises(UnauthorizedError):
            service.get_document_audit_trail(uploaded.id, requester_id=other_student.id, role=UserRole.ADMIN)

    @pytest.mark.asyncio
    async def test_trail_of_deleted_document(self, service, uploaded, student, other_student, admin_user):
        document_id = uploaded.id
        await service.delete_document(document_id, requester_id=student.id)

        assert service.get_document_audit_trail(document_id, requester_id=admin_user.id, role=UserRole.ADMIN)
        with pytest.raises(UnauthorizedError):
            service.get_document_audit_trail(document_id, requester_id=other_student.id)
        with pytest.raises(UnauthorizedError):
            service.get_document_audit_trail(document_id, requester_id=other_student.id, role=UserRole.ADMIN)

    def test_failed_audit_write_does_not_block_review(
        self, service, db_session, tfa_registration, make_document, partner, monkeypatch
    ):
        from sqlalchemy.exc import OperationalError

        from enrollflow.audit import service as audit_service

        document = make_document(tfa_registration, "DIPLOMA")

        def failing_begin_nested():
            raise OperationalError("INSERT INTO document_action_log", {}, Exception("disk full"))

        monkeypatch.setattr(db_session, "begin_nested", failing_begin_nested)

        outcome = service.approve_document(document.id, reviewer_id=partner.id)

        assert outcome.document.status == UserDocumentStatus.APPROVED_BY_PARTNER
        assert audit_service.list_document_actions(db_session, document.id) == []
