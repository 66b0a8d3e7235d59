"""Documents API Router - upload, review, download, delete and checklist endpoints."""

import logging
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..dependencies import Actor, get_actor, get_notifier, get_storage
from ..domain.documents.catalog import get_required_documents
from ..domain.documents.document_status import UploadSource
from ..domain.documents.ports.object_storage_port import ObjectStoragePort
from ..domain.notifications.ports import NotificationSink
from ..domain.roles import UserRole
from .schemas import (
    ApproveDocumentRequest,
    ChecklistResponse,
    DocumentActionResponse,
    DownloadUrlResponse,
    RejectDocumentRequest,
    RequiredDocumentResponse,
    ReviewResponse,
    UploadResponse,
    UserDocumentResponse,
)
from .service import DocumentService, ReviewOutcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def get_document_service(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[ObjectStoragePort, Depends(get_storage)],
    notifier: Annotated[NotificationSink, Depends(get_notifier)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DocumentService:
    return DocumentService(
        db,
        storage,
        notifier,
        max_file_size=settings.MAX_UPLOAD_SIZE_BYTES,
        download_url_ttl=settings.DOWNLOAD_URL_TTL_SECONDS,
    )


def _review_response(outcome: ReviewOutcome) -> ReviewResponse:
    registration = outcome.document.registration
    return ReviewResponse(
        document=UserDocumentResponse.model_validate(outcome.document),
        email_sent=outcome.email_sent,
        registration_status=registration.status.value if registration else None,
        registration_transitioned=bool(outcome.progression and outcome.progression.transitioned),
    )


@router.get("/required/{offer_type}", response_model=List[RequiredDocumentResponse])
def required_documents(offer_type: str):
    """Required document set for an offer type (unknown types get the CERTIFICATION set)."""
    return [doc.to_dict() for doc in get_required_documents(offer_type)]


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: Annotated[UploadFile, File(...)],
    document_type: Annotated[str, Form(...)],
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
    registration_id: Annotated[Optional[UUID], Form()] = None,
    user_id: Annotated[Optional[UUID], Form()] = None,
    source: Annotated[Optional[UploadSource], Form()] = None,
):
    """Upload a document (PDF, JPEG or PNG, at most 10 MB).

    Students upload for themselves; partners and admins pass the owning
    user_id. A new upload replaces the current document of the same type.
    The response includes the registration checklist so the client can show
    what is still missing.
    """
    owner_id = user_id if user_id and actor.role != UserRole.USER else actor.id
    if source is None:
        source = UploadSource.PARTNER_PANEL if actor.role == UserRole.PARTNER else UploadSource.USER_DASHBOARD

    outcome = await service.upload_document(
        user_id=owner_id,
        file=file.file,
        filename=file.filename,
        mime_type=file.content_type,
        document_type=document_type,
        registration_id=registration_id,
        source=source,
        uploaded_by=actor.id,
        uploaded_by_role=actor.role,
    )
    return UploadResponse.model_validate(outcome)


@router.get("/registrations/{registration_id}/checklist", response_model=ChecklistResponse)
def registration_checklist(
    registration_id: UUID,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    """One entry per required document type with upload and review state."""
    service.progression.get_registration_for(registration_id, actor.id, actor.role)
    return ChecklistResponse.model_validate(service.get_registration_checklist(registration_id))


@router.post("/{document_id}/approve", response_model=ReviewResponse)
def approve_document(
    document_id: UUID,
    body: ApproveDocumentRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    """Partner (or admin, for registrations without a partner) approves a document."""
    outcome = service.approve_document(document_id, actor.id, notes=body.notes)
    return _review_response(outcome)


@router.post("/{document_id}/reject", response_model=ReviewResponse)
def reject_document(
    document_id: UUID,
    body: RejectDocumentRequest,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    """Reject a document with a reason; the student is notified to re-upload."""
    outcome = service.reject_document(document_id, actor.id, body.reason, details=body.details)
    return _review_response(outcome)


@router.get("/{document_id}/download", response_model=DownloadUrlResponse)
async def download_url(
    document_id: UUID,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    url = await service.get_download_url(document_id, actor.id, actor.role)
    return DownloadUrlResponse(url=url, expires_in_seconds=service.download_url_ttl)


@router.get("/{document_id}/actions", response_model=List[DocumentActionResponse])
def document_actions(
    document_id: UUID,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    """Action log of a document, oldest first (also for deleted documents)."""
    return service.get_document_audit_trail(document_id, actor.id, actor.role)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    actor: Annotated[Actor, Depends(get_actor)],
    service: Annotated[DocumentService, Depends(get_document_service)],
):
    """Delete a document. Approved documents cannot be deleted (409)."""
    await service.delete_document(document_id, actor.id, actor.role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
