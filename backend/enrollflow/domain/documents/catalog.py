"""Document catalog: required document types per offer type.

Pure and deterministic. Offer types that are unknown, misspelled or missing
fall back to the CERTIFICATION set so a registration never ends up with an
empty checklist.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..registrations.status import OfferType
from .document_type import (
    DocumentType,
    document_type_label,
    document_type_description,
)

FALLBACK_OFFER_TYPE = OfferType.CERTIFICATION

_REQUIRED_DOCUMENT_TYPES: Dict[OfferType, Tuple[DocumentType, ...]] = {
    OfferType.TFA_ROMANIA: (
        DocumentType.IDENTITY_CARD,
        DocumentType.TESSERA_SANITARIA,
        DocumentType.DIPLOMA,
        DocumentType.BACHELOR_DEGREE,
        DocumentType.MASTER_DEGREE,
        DocumentType.TRANSCRIPT,
        DocumentType.MEDICAL_CERT,
        DocumentType.BIRTH_CERT,
    ),
    OfferType.CERTIFICATION: (
        DocumentType.IDENTITY_CARD,
        DocumentType.TESSERA_SANITARIA,
    ),
}


@dataclass(frozen=True)
class RequiredDocument:
    """One entry of a registration's required document set."""
    type: DocumentType
    name: str
    description: str
    required: bool = True

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }


def resolve_offer_type(offer_type: Optional[str]) -> OfferType:
    """Map a stored offer type onto a catalog key, applying the fallback."""
    if isinstance(offer_type, OfferType):
        return offer_type
    try:
        return OfferType(offer_type)
    except ValueError:
        return FALLBACK_OFFER_TYPE


def required_document_types(offer_type: Optional[str]) -> Tuple[DocumentType, ...]:
    """Ordered required document types for an offer type.

    Example:
        >>> required_document_types("CERTIFICATION")
        (<DocumentType.IDENTITY_CARD: 'IDENTITY_CARD'>, <DocumentType.TESSERA_SANITARIA: 'TESSERA_SANITARIA'>)
    """
    return _REQUIRED_DOCUMENT_TYPES[resolve_offer_type(offer_type)]


def get_required_documents(offer_type: Optional[str]) -> List[RequiredDocument]:
    """Required document set with display metadata, in catalog order."""
    return [
        RequiredDocument(
            type=doc_type,
            name=document_type_label(doc_type),
            description=document_type_description(doc_type),
        )
        for doc_type in required_document_types(offer_type)
    ]
