"""DocumentActionLog SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, Index, Uuid

from .base import Base, PortableJSONB, utcnow, isoformat_or_none


class DocumentActionLog(Base):
    """Append-only log of actions on user documents.

    document_id is deliberately not a foreign key: DELETE entries must
    outlive the row they describe.
    """
    __tablename__ = "document_action_log"
    __table_args__ = (
        Index("ix_document_action_log_document_id_created_at", "document_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    document_id = Column(Uuid, nullable=False)
    action = Column(Text, nullable=False)
    performed_by = Column(Uuid, nullable=True)
    performed_role = Column(Text, nullable=True)
    details = Column(PortableJSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": str(self.id),
            "document_id": str(self.document_id),
            "action": self.action,
            "performed_by": str(self.performed_by) if self.performed_by else None,
            "performed_role": self.performed_role,
            "details": self.details,
            "created_at": isoformat_or_none(self.created_at),
        }
