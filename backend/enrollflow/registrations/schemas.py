"""Pydantic schemas for the Registrations API"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..domain.registrations.status import PaymentStatus, RegistrationStatus


class PaymentDeadlineResponse(BaseModel):
    id: UUID
    amount: Decimal
    due_date: date
    payment_status: PaymentStatus
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationResponse(BaseModel):
    """Registration with its payment plan"""
    id: UUID
    user_id: UUID
    partner_id: Optional[UUID] = None
    offer_type: Optional[str] = None
    course_name: Optional[str] = None
    status: RegistrationStatus
    final_amount: Optional[Decimal] = None
    deadlines: List[PaymentDeadlineResponse] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CompletenessCheckResponse(BaseModel):
    offer_type: str
    required_types: List[str]
    missing_types: List[str]
    unreviewed_types: List[str]
    rejected_types: List[str]
    all_present: bool
    all_reviewed: bool
    all_approved: bool
    payments_complete: Optional[bool] = None


class ProgressionResponse(BaseModel):
    """Result of evaluating a registration"""
    registration_id: UUID
    previous_status: RegistrationStatus
    new_status: Optional[RegistrationStatus] = None
    transitioned: bool
    check: CompletenessCheckResponse


class StatusTransitionRequest(BaseModel):
    """Manual status change (admin)"""
    status: RegistrationStatus
    reason: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(extra='forbid')


class DiscoveryApproveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class DiscoveryRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)


class DiscoveryResponse(BaseModel):
    registration_id: UUID
    status: RegistrationStatus
    documents_count: int
    status_changed: bool
    email_sent: bool
