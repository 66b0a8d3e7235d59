"""UserDocument SQLAlchemy model

One uploaded identity/academic document of a student. At most one current
document exists per (user_id, registration_id, type): a re-upload inserts
the new row and deletes the previous one in the same transaction.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, BigInteger, ForeignKey, DateTime, Enum as SQLEnum, Index, Uuid
from sqlalchemy.orm import relationship
import enum

from .base import Base, utcnow, isoformat_or_none
from ..domain.documents.document_status import UserDocumentStatus


class UserDocument(Base):
    """Uploaded document with its two-tier review state.

    type is stored as text holding a DocumentType value. Partner review sets
    reviewed_by_partner / partner_checked_*; Discovery review stamps the
    discovery_* columns.
    """
    __tablename__ = "user_document"
    __table_args__ = (
        Index("ix_user_document_registration_id", "registration_id"),
        Index("ix_user_document_user_type", "user_id", "registration_id", "type"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    registration_id = Column(
        Uuid,
        ForeignKey("registration.id", ondelete="CASCADE"),
        nullable=True,
    )
    type = Column(Text, nullable=False)
    status = Column(
        SQLEnum(UserDocumentStatus, name="userdocumentstatus", native_enum=False, length=30),
        nullable=False,
        default=UserDocumentStatus.PENDING,
    )

    # Partner (first-tier) review
    reviewed_by_partner = Column(Boolean, nullable=False, default=False)
    partner_checked_at = Column(DateTime(timezone=True), nullable=True)
    partner_checked_by = Column(Uuid, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    rejection_details = Column(Text, nullable=True)

    # Discovery (second-tier) review
    discovery_approved_at = Column(DateTime(timezone=True), nullable=True)
    discovery_approved_by = Column(Uuid, nullable=True)
    discovery_rejected_at = Column(DateTime(timezone=True), nullable=True)
    discovery_rejection_reason = Column(Text, nullable=True)

    # Notifications
    user_notified_at = Column(DateTime(timezone=True), nullable=True)
    partner_notified_at = Column(DateTime(timezone=True), nullable=True)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)

    # File
    original_name = Column(Text, nullable=False)
    mime_type = Column(Text, nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    storage_key = Column(Text, nullable=False)
    checksum = Column(Text, nullable=False)  # SHA256 hex

    # Upload provenance
    upload_source = Column(Text, nullable=False, default="USER_DASHBOARD")
    uploaded_by = Column(Uuid, nullable=True)
    uploaded_by_role = Column(Text, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    user = relationship("User")
    registration = relationship("Registration")

    def to_dict(self):
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "registration_id": str(self.registration_id) if self.registration_id else None,
            "type": self.type,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
            "reviewed_by_partner": self.reviewed_by_partner,
            "partner_checked_at": isoformat_or_none(self.partner_checked_at),
            "partner_checked_by": str(self.partner_checked_by) if self.partner_checked_by else None,
            "rejection_reason": self.rejection_reason,
            "rejection_details": self.rejection_details,
            "discovery_approved_at": isoformat_or_none(self.discovery_approved_at),
            "discovery_rejected_at": isoformat_or_none(self.discovery_rejected_at),
            "discovery_rejection_reason": self.discovery_rejection_reason,
            "original_name": self.original_name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "checksum": self.checksum,
            "upload_source": self.upload_source,
            "uploaded_by_role": self.uploaded_by_role,
            "uploaded_at": isoformat_or_none(self.uploaded_at),
        }
