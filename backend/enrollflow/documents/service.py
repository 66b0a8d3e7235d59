"""Document service - upload, partner review, deletion and download of user documents.

Each operation mutates the database first, commits, and only then talks to
the notification sink or deletes superseded blobs. Failures of those
side effects are logged and reported through flags on the returned
outcome, never raised.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..audit.service import list_document_actions, log_document_action
from ..domain.documents.catalog import get_required_documents
from ..domain.documents.document_status import (
    DocumentAction,
    UploadSource,
    UserDocumentStatus,
    is_approved,
)
from ..domain.documents.document_type import document_type_label, parse_document_type
from ..domain.documents.ports.object_storage_port import ObjectStoragePort, StorageError
from ..domain.documents.validation import (
    DEFAULT_MAX_FILE_SIZE,
    is_supported_mime_type,
    sanitize_filename,
    validate_file_size,
    validate_filename,
)
from ..domain.errors import (
    ConflictError,
    DependencyFailure,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..domain.notifications import NotificationKind, NotificationSink, deliver
from ..domain.roles import UserRole
from ..models.document_action_log import DocumentActionLog
from ..models.registration import Registration
from ..models.user import User
from ..models.user_document import UserDocument
from ..registrations.service import ProgressionResult, RegistrationProgressionService

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReviewOutcome:
    document: UserDocument
    email_sent: bool
    progression: Optional[ProgressionResult] = None


@dataclass
class ChecklistItem:
    type: str
    name: str
    description: str
    required: bool
    uploaded: bool
    document_id: Optional[UUID] = None
    status: Optional[str] = None
    reviewed_by_partner: bool = False
    rejection_reason: Optional[str] = None
    uploaded_at: Optional[datetime] = None


@dataclass
class RegistrationChecklist:
    """Per-type view of a registration's required documents."""
    registration_id: UUID
    offer_type: Optional[str]
    items: List[ChecklistItem] = field(default_factory=list)

    @property
    def missing_types(self) -> List[str]:
        return [item.type for item in self.items if not item.uploaded]

    @property
    def uploaded_count(self) -> int:
        return sum(1 for item in self.items if item.uploaded)


@dataclass
class UploadOutcome:
    document: UserDocument
    replaced: bool
    replaced_document_ids: List[UUID] = field(default_factory=list)
    partner_notified: bool = False
    checklist: Optional[RegistrationChecklist] = None


@dataclass
class DeleteOutcome:
    document_id: UUID
    blob_deleted: bool


class DocumentService:
    """Service for user document operations."""

    def __init__(
        self,
        db: Session,
        storage: ObjectStoragePort,
        notifier: Optional[NotificationSink] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        download_url_ttl: int = 3600,
    ):
        self.db = db
        self.storage = storage
        self.notifier = notifier
        self.max_file_size = max_file_size
        self.download_url_ttl = download_url_ttl
        self.progression = RegistrationProgressionService(db, notifier)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_document(self, document_id: UUID) -> UserDocument:
        document = self.db.get(UserDocument, document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    def _get_user(self, user_id: UUID) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def _is_admin(self, user_id: Optional[UUID]) -> bool:
        if user_id is None:
            return False
        user = self.db.get(User, user_id)
        return user is not None and user.role == UserRole.ADMIN.value

    def _blob_still_referenced(self, storage_key: str) -> bool:
        return (
            self.db.query(UserDocument.id)
            .filter(UserDocument.storage_key == storage_key)
            .first()
            is not None
        )

    def _document_payload(self, document: UserDocument) -> Dict[str, Any]:
        user = document.user
        registration = document.registration
        return {
            "first_name": user.first_name if user else None,
            "student_name": user.full_name if user else None,
            "document_type": document.type,
            "document_label": document_type_label(document.type),
            "course_name": registration.course_name if registration else None,
        }

    # ------------------------------------------------------------------
    # Checklist / audit trail
    # ------------------------------------------------------------------

    def get_registration_checklist(self, registration_id: UUID) -> RegistrationChecklist:
        """One entry per required type, showing the current document if any.

        Raises:
            NotFoundError: If the registration does not exist
        """
        registration = self.progression.get_registration(registration_id)
        check = self.progression.run_check(registration)

        checklist = RegistrationChecklist(
            registration_id=registration.id,
            offer_type=registration.offer_type,
        )
        for required in get_required_documents(registration.offer_type):
            document = check.current_documents.get(required.type)
            item = ChecklistItem(
                type=required.type.value,
                name=required.name,
                description=required.description,
                required=required.required,
                uploaded=document is not None,
            )
            if document is not None:
                item.document_id = document.id
                item.status = UserDocumentStatus(document.status).value
                item.reviewed_by_partner = bool(document.reviewed_by_partner)
                item.rejection_reason = document.rejection_reason
                item.uploaded_at = document.uploaded_at
            checklist.items.append(item)
        return checklist

    def get_document_audit_trail(
        self,
        document_id: UUID,
        requester_id: UUID,
        role: UserRole = UserRole.USER,
    ) -> List[DocumentActionLog]:
        """Action log of a document, oldest first. Available after deletion too.

        While the document exists, its owner, the registration's partner and
        admins may read the trail. Once it is deleted only admins and actors
        that appear in the trail may.

        Raises:
            NotFoundError: If neither the document nor any log entry exists
            UnauthorizedError: If requester may not read the trail
        """
        entries = list_document_actions(self.db, document_id)
        document = self.db.get(UserDocument, document_id)
        if document is None and not entries:
            raise NotFoundError(f"Document {document_id} not found")

        if document is not None:
            self._check_can_access(document, requester_id, role, allow_partner=True)
        elif UserRole(role) == UserRole.ADMIN:
            if not self._is_admin(requester_id):
                raise UnauthorizedError(f"User {requester_id} is not an administrator")
        elif not any(entry.performed_by == requester_id for entry in entries):
            raise UnauthorizedError(f"Not allowed to access document {document_id}")
        return entries

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def _validate_upload(self, file: BinaryIO, filename: str, mime_type: Optional[str], document_type):
        ok, error = validate_filename(filename)
        if not ok:
            raise ValidationError(error)

        if not is_supported_mime_type(mime_type):
            raise ValidationError(
                f"Unsupported file type: {mime_type}. Allowed: PDF, JPEG, PNG"
            )

        try:
            doc_type = parse_document_type(document_type)
        except ValueError as e:
            raise ValidationError(str(e))

        file.seek(0, os.SEEK_END)
        size_bytes = file.tell()
        file.seek(0)
        ok, error = validate_file_size(size_bytes, self.max_file_size)
        if not ok:
            raise ValidationError(error)

        return doc_type

    def _check_can_upload(
        self,
        owner: User,
        registration: Optional[Registration],
        uploaded_by: UUID,
        uploaded_by_role: UserRole,
    ) -> None:
        if uploaded_by_role == UserRole.USER:
            if uploaded_by != owner.id:
                raise UnauthorizedError("Users may only upload their own documents")
        elif uploaded_by_role == UserRole.PARTNER:
            if registration is None or registration.partner_id != uploaded_by:
                raise UnauthorizedError("Partner is not associated with this registration")
        elif not self._is_admin(uploaded_by):
            raise UnauthorizedError("Only administrators may upload on behalf of users")

    async def upload_document(
        self,
        user_id: UUID,
        file: BinaryIO,
        filename: str,
        mime_type: Optional[str],
        document_type: str,
        registration_id: Optional[UUID] = None,
        source: UploadSource = UploadSource.USER_DASHBOARD,
        uploaded_by: Optional[UUID] = None,
        uploaded_by_role: UserRole = UserRole.USER,
    ) -> UploadOutcome:
        """Store a document, replacing the current one of the same type.

        The new row is inserted and the previous row(s) for the same
        (user, registration, type) are deleted in one transaction. Superseded
        blobs are removed after commit unless another row still references
        the same key.

        Raises:
            ValidationError: Bad filename, MIME type, size or document type
            NotFoundError: Unknown user or registration
            UnauthorizedError: Uploader may not act for this user/registration
            DependencyFailure: Blob store failed; nothing was written
        """
        doc_type = self._validate_upload(file, filename, mime_type, document_type)
        uploaded_by_role = UserRole(uploaded_by_role)
        uploaded_by = uploaded_by or user_id

        owner = self._get_user(user_id)
        registration = None
        if registration_id is not None:
            registration = self.progression.get_registration(registration_id)
            if registration.user_id != owner.id:
                raise ValidationError(
                    f"Registration {registration_id} does not belong to user {user_id}"
                )
        self._check_can_upload(owner, registration, uploaded_by, uploaded_by_role)

        try:
            stored = await self.storage.store_file(
                file=file,
                owner_id=owner.id,
                filename=sanitize_filename(filename),
                mime_type=mime_type.lower(),
            )
        except ValueError as e:
            raise ValidationError(str(e))
        except StorageError as e:
            logger.error(f"Document store unavailable during upload: {e}")
            raise DependencyFailure(f"Document storage unavailable: {e}")

        previous_query = self.db.query(UserDocument).filter(
            UserDocument.user_id == owner.id,
            UserDocument.type == doc_type.value,
        )
        if registration_id is None:
            previous_query = previous_query.filter(UserDocument.registration_id.is_(None))
        else:
            previous_query = previous_query.filter(UserDocument.registration_id == registration_id)
        previous = previous_query.all()

        document = UserDocument(
            user_id=owner.id,
            registration_id=registration_id,
            type=doc_type.value,
            status=UserDocumentStatus.PENDING,
            reviewed_by_partner=False,
            original_name=filename,
            mime_type=stored.mime_type,
            size_bytes=stored.size_bytes,
            storage_key=stored.storage_key,
            checksum=stored.sha256,
            upload_source=UploadSource(source).value,
            uploaded_by=uploaded_by,
            uploaded_by_role=uploaded_by_role.value,
            uploaded_at=_now(),
        )

        superseded_keys = [old.storage_key for old in previous]
        replaced_ids = [old.id for old in previous]
        try:
            self.db.add(document)
            self.db.flush()
            for old in previous:
                self.db.delete(old)
            self.db.flush()

            log_document_action(
                self.db,
                document_id=document.id,
                action=DocumentAction.REPLACE if previous else DocumentAction.UPLOAD,
                performed_by=uploaded_by,
                performed_role=uploaded_by_role.value,
                details={
                    "type": doc_type.value,
                    "original_name": filename,
                    "checksum": stored.sha256,
                    "size_bytes": stored.size_bytes,
                    "source": UploadSource(source).value,
                    "replaced_document_ids": [str(i) for i in replaced_ids],
                },
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Document {'replaced' if previous else 'uploaded'}: type={doc_type.value}",
            extra={
                "document_id": str(document.id),
                "registration_id": str(registration_id) if registration_id else None,
                "actor_id": str(uploaded_by),
            },
        )

        for key in superseded_keys:
            if key != document.storage_key:
                await self._delete_blob_best_effort(key)

        partner_notified = False
        if uploaded_by_role == UserRole.USER and registration is not None and registration.partner is not None:
            partner_notified = self._notify_partner(document, registration)

        checklist = None
        if registration is not None:
            checklist = self.get_registration_checklist(registration.id)

        return UploadOutcome(
            document=document,
            replaced=bool(previous),
            replaced_document_ids=replaced_ids,
            partner_notified=partner_notified,
            checklist=checklist,
        )

    def _notify_partner(self, document: UserDocument, registration: Registration) -> bool:
        partner = registration.partner
        payload = self._document_payload(document)
        payload["partner_name"] = partner.name

        sent = deliver(self.notifier, NotificationKind.PARTNER_NEW_DOCUMENT, partner.email, payload)
        if sent:
            document.partner_notified_at = _now()
            log_document_action(
                self.db,
                document_id=document.id,
                action=DocumentAction.NOTIFY_PARTNER,
                performed_role="SYSTEM",
                details={"partner_id": str(partner.id)},
            )
            self.db.commit()
        return sent

    async def _delete_blob_best_effort(self, storage_key: str) -> bool:
        if self._blob_still_referenced(storage_key):
            return False
        try:
            return await self.storage.delete_file(storage_key)
        except StorageError as e:
            logger.warning(f"Failed to delete blob {storage_key}: {e}")
            return False

    # ------------------------------------------------------------------
    # Partner review
    # ------------------------------------------------------------------

    def _review_tier(self, document: UserDocument, reviewer_id: UUID) -> str:
        """'partner' for partner-company registrations, 'admin' otherwise.

        Raises:
            UnauthorizedError: If the reviewer may not review this document
        """
        registration = document.registration
        if registration is not None and registration.partner_id is not None:
            if registration.partner_id != reviewer_id:
                raise UnauthorizedError(
                    f"Reviewer {reviewer_id} is not the partner of registration {registration.id}"
                )
            return "partner"

        if not self._is_admin(reviewer_id):
            raise UnauthorizedError(f"Reviewer {reviewer_id} may not review document {document.id}")
        return "admin"

    def _finish_review(
        self,
        document: UserDocument,
        kind: NotificationKind,
        payload: Dict[str, Any],
        progression: Optional[ProgressionResult],
    ) -> ReviewOutcome:
        user = document.user
        email_sent = deliver(self.notifier, kind, user.email if user else None, payload)
        if email_sent:
            document.email_sent_at = _now()
            self.db.commit()

        if progression is not None:
            self.progression.send_transition_notifications(progression)

        return ReviewOutcome(document=document, email_sent=email_sent, progression=progression)

    def approve_document(
        self,
        document_id: UUID,
        reviewer_id: UUID,
        notes: Optional[str] = None,
    ) -> ReviewOutcome:
        """Approve a document and re-evaluate its registration.

        Approving an already-approved document changes nothing but still
        re-runs the check and the notification.

        Raises:
            NotFoundError: If the document does not exist
            UnauthorizedError: If the reviewer is not associated with it
        """
        document = self.get_document(document_id)
        tier = self._review_tier(document, reviewer_id)
        target = (
            UserDocumentStatus.APPROVED_BY_PARTNER if tier == "partner"
            else UserDocumentStatus.APPROVED
        )

        try:
            if not is_approved(document.status) or not document.reviewed_by_partner:
                document.status = target
                document.reviewed_by_partner = True
                document.partner_checked_at = _now()
                document.partner_checked_by = reviewer_id
                document.rejection_reason = None
                document.rejection_details = None
                log_document_action(
                    self.db,
                    document_id=document.id,
                    action=DocumentAction.APPROVE,
                    performed_by=reviewer_id,
                    performed_role=UserRole.PARTNER.value if tier == "partner" else UserRole.ADMIN.value,
                    details={"status": target.value, "notes": notes},
                )

            progression = None
            if document.registration is not None:
                progression = self.progression.reevaluate(
                    document.registration, event="document_approved", actor_id=reviewer_id
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Document approved ({tier})",
            extra={
                "document_id": str(document.id),
                "registration_id": str(document.registration_id) if document.registration_id else None,
                "actor_id": str(reviewer_id),
            },
        )

        payload = self._document_payload(document)
        payload["notes"] = notes
        return self._finish_review(document, NotificationKind.DOCUMENT_APPROVED, payload, progression)

    def reject_document(
        self,
        document_id: UUID,
        reviewer_id: UUID,
        reason: str,
        details: Optional[str] = None,
    ) -> ReviewOutcome:
        """Reject a document; the student is expected to re-upload.

        Raises:
            ValidationError: If reason is blank
            NotFoundError: If the document does not exist
            UnauthorizedError: If the reviewer is not associated with it
        """
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required")
        reason = reason.strip()

        document = self.get_document(document_id)
        tier = self._review_tier(document, reviewer_id)
        target = (
            UserDocumentStatus.REJECTED_BY_PARTNER if tier == "partner"
            else UserDocumentStatus.REJECTED
        )

        try:
            document.status = target
            document.reviewed_by_partner = True
            document.partner_checked_at = _now()
            document.partner_checked_by = reviewer_id
            document.rejection_reason = reason
            document.rejection_details = details
            document.user_notified_at = _now()
            log_document_action(
                self.db,
                document_id=document.id,
                action=DocumentAction.REJECT,
                performed_by=reviewer_id,
                performed_role=UserRole.PARTNER.value if tier == "partner" else UserRole.ADMIN.value,
                details={"status": target.value, "reason": reason, "details": details},
            )

            progression = None
            if document.registration is not None:
                progression = self.progression.reevaluate(
                    document.registration, event="document_rejected", actor_id=reviewer_id
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Document rejected ({tier}): {reason}",
            extra={
                "document_id": str(document.id),
                "registration_id": str(document.registration_id) if document.registration_id else None,
                "actor_id": str(reviewer_id),
            },
        )

        payload = self._document_payload(document)
        payload.update({"reason": reason, "details": details})
        return self._finish_review(document, NotificationKind.DOCUMENT_REJECTED, payload, progression)

    # ------------------------------------------------------------------
    # Delete / download
    # ------------------------------------------------------------------

    def _check_can_access(self, document: UserDocument, requester_id: UUID, role: UserRole, allow_partner: bool):
        role = UserRole(role)
        if role == UserRole.ADMIN:
            if not self._is_admin(requester_id):
                raise UnauthorizedError(f"User {requester_id} is not an administrator")
            return
        if role == UserRole.USER and requester_id == document.user_id:
            return
        registration = document.registration
        if (
            allow_partner
            and role == UserRole.PARTNER
            and registration is not None
            and registration.partner_id == requester_id
        ):
            return
        raise UnauthorizedError(f"Not allowed to access document {document.id}")

    async def delete_document(
        self,
        document_id: UUID,
        requester_id: UUID,
        role: UserRole = UserRole.USER,
    ) -> DeleteOutcome:
        """Delete a document row, then its blob.

        Approved documents (APPROVED or APPROVED_BY_PARTNER) cannot be
        deleted by anyone. The DELETE log entry is written before the row
        goes away and survives it.

        Raises:
            NotFoundError: If the document does not exist
            UnauthorizedError: If requester is neither owner nor admin
            ConflictError: If the document is approved
        """
        document = self.get_document(document_id)
        self._check_can_access(document, requester_id, role, allow_partner=False)

        if is_approved(document.status):
            raise ConflictError(
                f"Document {document_id} is {UserDocumentStatus(document.status).value} and cannot be deleted"
            )

        storage_key = document.storage_key
        doc_type = document.type
        try:
            log_document_action(
                self.db,
                document_id=document.id,
                action=DocumentAction.DELETE,
                performed_by=requester_id,
                performed_role=UserRole(role).value,
                details={
                    "type": document.type,
                    "original_name": document.original_name,
                    "checksum": document.checksum,
                    "storage_key": storage_key,
                },
            )
            self.db.delete(document)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Document deleted: type={doc_type}",
            extra={"document_id": str(document_id), "actor_id": str(requester_id)},
        )

        blob_deleted = await self._delete_blob_best_effort(storage_key)
        return DeleteOutcome(document_id=document_id, blob_deleted=blob_deleted)

    async def get_download_url(
        self,
        document_id: UUID,
        requester_id: UUID,
        role: UserRole = UserRole.USER,
    ) -> str:
        """Time-limited download URL for the owner, the registration's partner or an admin.

        Raises:
            NotFoundError: If the document or its blob does not exist
            UnauthorizedError: If requester may not access the document
            DependencyFailure: If the blob store fails
        """
        document = self.get_document(document_id)
        self._check_can_access(document, requester_id, role, allow_partner=True)

        try:
            url = await self.storage.generate_presigned_url(
                document.storage_key,
                expires_in_seconds=self.download_url_ttl,
            )
        except FileNotFoundError:
            raise NotFoundError(f"File for document {document_id} is missing from storage")
        except StorageError as e:
            raise DependencyFailure(f"Document storage unavailable: {e}")

        log_document_action(
            self.db,
            document_id=document.id,
            action=DocumentAction.DOWNLOAD,
            performed_by=requester_id,
            performed_role=UserRole(role).value,
        )
        self.db.commit()
        return url
