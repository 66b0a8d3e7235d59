"""Registration and PaymentDeadline SQLAlchemy models

A Registration is one student's enrollment into one offer (TFA_ROMANIA or
CERTIFICATION). Its status is advanced by the progression engine; it is
never deleted by the document subsystem.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, Numeric, Date, DateTime, Enum as SQLEnum, Index, Uuid
from sqlalchemy.orm import relationship
import enum

from .base import Base, utcnow, isoformat_or_none
from ..domain.registrations.status import RegistrationStatus, PaymentStatus


class Registration(Base):
    """Registration model.

    offer_type is stored as plain text: unknown values are tolerated and
    resolved to the fallback document set by the catalog.
    """
    __tablename__ = "registration"
    __table_args__ = (
        Index("ix_registration_user_id", "user_id"),
        Index("ix_registration_partner_id", "partner_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="RESTRICT"), nullable=False)
    partner_id = Column(Uuid, ForeignKey("partner.id", ondelete="SET NULL"), nullable=True)
    offer_type = Column(Text, nullable=True)
    course_name = Column(Text, nullable=True)
    status = Column(
        SQLEnum(RegistrationStatus, name="registrationstatus", native_enum=False, length=40),
        nullable=False,
        default=RegistrationStatus.PENDING,
    )
    original_amount = Column(Numeric(12, 2), nullable=True)
    final_amount = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User")
    partner = relationship("Partner")
    deadlines = relationship(
        "PaymentDeadline",
        back_populates="registration",
        cascade="all, delete-orphan",
        order_by="PaymentDeadline.due_date",
    )

    def to_dict(self):
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "partner_id": str(self.partner_id) if self.partner_id else None,
            "offer_type": self.offer_type,
            "course_name": self.course_name,
            "status": self.status.value if isinstance(self.status, enum.Enum) else self.status,
            "original_amount": float(self.original_amount) if self.original_amount is not None else None,
            "final_amount": float(self.final_amount) if self.final_amount is not None else None,
            "created_at": isoformat_or_none(self.created_at),
            "updated_at": isoformat_or_none(self.updated_at),
        }


class PaymentDeadline(Base):
    """One installment of a registration's payment plan."""
    __tablename__ = "payment_deadline"
    __table_args__ = (
        Index("ix_payment_deadline_registration_id", "registration_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    registration_id = Column(
        Uuid,
        ForeignKey("registration.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=False)
    payment_status = Column(
        SQLEnum(PaymentStatus, name="paymentstatus", native_enum=False, length=20),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )
    paid_at = Column(DateTime(timezone=True), nullable=True)

    registration = relationship("Registration", back_populates="deadlines")

    def to_dict(self):
        return {
            "id": str(self.id),
            "registration_id": str(self.registration_id),
            "amount": float(self.amount),
            "due_date": self.due_date.isoformat(),
            "payment_status": (
                self.payment_status.value
                if isinstance(self.payment_status, enum.Enum)
                else self.payment_status
            ),
            "paid_at": isoformat_or_none(self.paid_at),
        }
