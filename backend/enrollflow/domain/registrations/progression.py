"""Auto-advance logic for registrations.

Decides, from the current documents (and for CERTIFICATION the payment
deadlines) of a registration, whether its status should advance:

- TFA_ROMANIA: DOCUMENTS_UPLOADED → AWAITING_DISCOVERY_APPROVAL when every
  required document is present, reviewed by the partner and approved.
- CERTIFICATION: ENROLLED → DOCUMENTS_APPROVED when the same holds and every
  payment deadline is PAID.

The check is recomputed from the full document set on every call; nothing
is counted incrementally. Running it twice without intervening changes
yields the same decision, and the second call finds no transition because
the status has already moved.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..documents.catalog import required_document_types, resolve_offer_type
from ..documents.document_status import is_approved, is_rejected
from ..documents.document_type import DocumentType, parse_document_type
from .status import OfferType, PaymentStatus, RegistrationStatus


@dataclass
class CompletenessCheck:
    """Outcome of the completeness/approval check for one registration."""
    offer_type: OfferType
    required_types: Tuple[DocumentType, ...]
    current_documents: Dict[DocumentType, Any] = field(default_factory=dict)
    missing_types: List[DocumentType] = field(default_factory=list)
    unreviewed_types: List[DocumentType] = field(default_factory=list)
    rejected_types: List[DocumentType] = field(default_factory=list)
    all_present: bool = False
    all_reviewed: bool = False
    all_approved: bool = False
    payments_complete: Optional[bool] = None  # Only evaluated for CERTIFICATION

    @property
    def ready_for_review_decision(self) -> bool:
        """All required documents are present and have been looked at by the partner."""
        return self.all_present and self.all_reviewed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offer_type": self.offer_type.value,
            "required_types": [t.value for t in self.required_types],
            "missing_types": [t.value for t in self.missing_types],
            "unreviewed_types": [t.value for t in self.unreviewed_types],
            "rejected_types": [t.value for t in self.rejected_types],
            "all_present": self.all_present,
            "all_reviewed": self.all_reviewed,
            "all_approved": self.all_approved,
            "payments_complete": self.payments_complete,
        }


def resolve_current_documents(
    documents: Iterable[Any],
    required_types: Sequence[DocumentType],
) -> Dict[DocumentType, Any]:
    """Pick the most recent document for each required type.

    Args:
        documents: UserDocument-like objects ordered by uploaded_at, newest first
        required_types: Types to resolve

    Returns:
        Mapping of type to its current document; missing types are absent
    """
    wanted = set(required_types)
    current: Dict[DocumentType, Any] = {}
    for document in documents:
        try:
            doc_type = parse_document_type(document.type)
        except ValueError:
            continue
        if doc_type in wanted and doc_type not in current:
            current[doc_type] = document
    return current


def payments_complete(deadlines: Iterable[Any]) -> bool:
    """At least one deadline exists and every deadline is PAID."""
    deadlines = list(deadlines)
    if not deadlines:
        return False
    return all(
        PaymentStatus(deadline.payment_status) == PaymentStatus.PAID
        for deadline in deadlines
    )


def run_completeness_check(
    offer_type: Optional[str],
    documents: Iterable[Any],
    deadlines: Optional[Iterable[Any]] = None,
) -> CompletenessCheck:
    """Evaluate presence, partner review and approval of the required documents.

    Args:
        offer_type: Registration offer type (unknown values use the fallback set)
        documents: Registration documents ordered newest first
        deadlines: Payment deadlines (consulted for CERTIFICATION only)

    Returns:
        CompletenessCheck describing the aggregate state
    """
    resolved_offer = resolve_offer_type(offer_type)
    required = required_document_types(resolved_offer)
    current = resolve_current_documents(documents, required)

    missing = [t for t in required if t not in current]
    unreviewed = [t for t, doc in current.items() if not doc.reviewed_by_partner]
    rejected = [t for t, doc in current.items() if is_rejected(doc.status)]

    check = CompletenessCheck(
        offer_type=resolved_offer,
        required_types=required,
        current_documents=current,
        missing_types=missing,
        unreviewed_types=[t for t in required if t in unreviewed],
        rejected_types=[t for t in required if t in rejected],
        all_present=len(current) == len(required),
        all_reviewed=all(doc.reviewed_by_partner for doc in current.values()),
        all_approved=all(is_approved(doc.status) for doc in current.values()),
    )

    if resolved_offer == OfferType.CERTIFICATION:
        check.payments_complete = payments_complete(deadlines or [])

    return check


def determine_status_from_check(
    offer_type: Optional[str],
    current_status: RegistrationStatus,
    check: CompletenessCheck,
) -> Optional[RegistrationStatus]:
    """Determine the new status implied by a completeness check.

    Returns:
        Target status, or None if no status change is needed. Rejected or
        missing documents never produce a backward move.
    """
    if not check.ready_for_review_decision or not check.all_approved:
        return None

    current_status = RegistrationStatus(current_status)
    resolved_offer = resolve_offer_type(offer_type)

    if (
        resolved_offer == OfferType.TFA_ROMANIA
        and current_status == RegistrationStatus.DOCUMENTS_UPLOADED
    ):
        return RegistrationStatus.AWAITING_DISCOVERY_APPROVAL

    if (
        resolved_offer == OfferType.CERTIFICATION
        and current_status == RegistrationStatus.ENROLLED
        and check.payments_complete
    ):
        return RegistrationStatus.DOCUMENTS_APPROVED

    return None

