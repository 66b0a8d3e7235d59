"""User and Partner SQLAlchemy models"""

from uuid import uuid4

from sqlalchemy import Column, Text, DateTime, CheckConstraint, Uuid
from sqlalchemy.orm import validates
import re

from .base import Base, utcnow


class User(Base):
    """A person acting on the platform: student, partner reviewer or admin.

    Students own documents and registrations. Admins perform the Discovery
    (second-tier) review.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(Text, nullable=False, unique=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    role = Column(Text, nullable=False, default="USER")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('USER', 'PARTNER', 'ADMIN')",
            name='ck_user_role'
        ),
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self):
        return {
            "id": str(self.id),
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
        }


class Partner(Base):
    """Referring partner organization. Partners perform first-tier document review."""
    __tablename__ = "partner"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
        }
