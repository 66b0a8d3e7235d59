"""Pydantic schemas for the Documents API"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..domain.documents.document_status import UserDocumentStatus


class UserDocumentResponse(BaseModel):
    """Stored document metadata (no file content)"""
    id: UUID
    user_id: UUID
    registration_id: Optional[UUID] = None
    type: str
    status: UserDocumentStatus
    reviewed_by_partner: bool
    rejection_reason: Optional[str] = None
    rejection_details: Optional[str] = None
    discovery_rejected_at: Optional[datetime] = None
    discovery_rejection_reason: Optional[str] = None
    original_name: str
    mime_type: str
    size_bytes: int
    checksum: str
    upload_source: str
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChecklistItemResponse(BaseModel):
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

    model_config = ConfigDict(from_attributes=True)


class ChecklistResponse(BaseModel):
    """Required documents of a registration and what has been uploaded"""
    registration_id: UUID
    offer_type: Optional[str] = None
    items: List[ChecklistItemResponse]
    missing_types: List[str]
    uploaded_count: int

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    document: UserDocumentResponse
    replaced: bool
    replaced_document_ids: List[UUID] = Field(default_factory=list)
    partner_notified: bool
    checklist: Optional[ChecklistResponse] = None

    model_config = ConfigDict(from_attributes=True)


class ApproveDocumentRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class RejectDocumentRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)
    details: Optional[str] = Field(None, max_length=4000)


class ReviewResponse(BaseModel):
    """Result of a partner review action"""
    document: UserDocumentResponse
    email_sent: bool
    registration_status: Optional[str] = None
    registration_transitioned: bool = False


class DownloadUrlResponse(BaseModel):
    url: str
    expires_in_seconds: int


class DocumentActionResponse(BaseModel):
    id: UUID
    document_id: UUID
    action: str
    performed_by: Optional[UUID] = None
    performed_role: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RequiredDocumentResponse(BaseModel):
    type: str
    name: str
    description: str
    required: bool
