"""Document type enumeration.

Single definition consumed by the catalog (required sets per offer type),
the ORM model and the record manager.
"""

from enum import Enum


class DocumentType(str, Enum):
    IDENTITY_CARD = "IDENTITY_CARD"
    PASSPORT = "PASSPORT"
    TESSERA_SANITARIA = "TESSERA_SANITARIA"
    DIPLOMA = "DIPLOMA"
    BACHELOR_DEGREE = "BACHELOR_DEGREE"
    MASTER_DEGREE = "MASTER_DEGREE"
    TRANSCRIPT = "TRANSCRIPT"
    MEDICAL_CERT = "MEDICAL_CERT"
    BIRTH_CERT = "BIRTH_CERT"
    CV = "CV"
    PHOTO = "PHOTO"
    RESIDENCE_CERT = "RESIDENCE_CERT"
    CONTRACT_SIGNED = "CONTRACT_SIGNED"
    SUBSTITUTE_DECLARATION = "SUBSTITUTE_DECLARATION"
    LANGUAGE_CERT = "LANGUAGE_CERT"
    OTHER = "OTHER"


# Labels shown to students and partners
DOCUMENT_TYPE_LABELS = {
    DocumentType.IDENTITY_CARD: "Carta d'Identità",
    DocumentType.PASSPORT: "Passaporto",
    DocumentType.TESSERA_SANITARIA: "Tessera Sanitaria",
    DocumentType.DIPLOMA: "Diploma di Laurea",
    DocumentType.BACHELOR_DEGREE: "Certificato Laurea Triennale",
    DocumentType.MASTER_DEGREE: "Certificato Laurea Magistrale",
    DocumentType.TRANSCRIPT: "Piano di Studio",
    DocumentType.MEDICAL_CERT: "Certificato Medico",
    DocumentType.BIRTH_CERT: "Certificato di Nascita",
    DocumentType.CV: "Curriculum Vitae",
    DocumentType.PHOTO: "Foto Tessera",
    DocumentType.RESIDENCE_CERT: "Certificato di Residenza",
    DocumentType.CONTRACT_SIGNED: "Contratto Firmato",
    DocumentType.SUBSTITUTE_DECLARATION: "Dichiarazione Sostitutiva",
    DocumentType.LANGUAGE_CERT: "Certificazione Linguistica",
    DocumentType.OTHER: "Altri Documenti",
}

DOCUMENT_TYPE_DESCRIPTIONS = {
    DocumentType.IDENTITY_CARD: "Fronte e retro della carta d'identità o passaporto in corso di validità",
    DocumentType.TESSERA_SANITARIA: "Tessera sanitaria o documento che attesti il codice fiscale",
    DocumentType.DIPLOMA: "Diploma di laurea (cartaceo o digitale)",
    DocumentType.BACHELOR_DEGREE: "Certificato di laurea triennale o diploma universitario",
    DocumentType.MASTER_DEGREE: "Certificato di laurea magistrale, specialistica o vecchio ordinamento",
    DocumentType.TRANSCRIPT: "Piano di studio con lista esami sostenuti",
    DocumentType.MEDICAL_CERT: "Certificato medico attestante la sana e robusta costituzione fisica e psichica",
    DocumentType.BIRTH_CERT: "Certificato di nascita o estratto di nascita dal Comune",
    DocumentType.SUBSTITUTE_DECLARATION: "Dichiarazione sostitutiva per titoli non italiani",
    DocumentType.LANGUAGE_CERT: "Certificazione linguistica di livello B2 o superiore",
    DocumentType.OTHER: "Altri documenti rilevanti",
}


def parse_document_type(value) -> DocumentType:
    """Coerce a raw value into a DocumentType.

    Raises:
        ValueError: If the value is not a known document type
    """
    if isinstance(value, DocumentType):
        return value
    return DocumentType(str(value).strip().upper())


def document_type_label(document_type) -> str:
    """Human readable label; falls back to the raw value for unknown types."""
    try:
        return DOCUMENT_TYPE_LABELS[parse_document_type(document_type)]
    except (KeyError, ValueError):
        return str(document_type)


def document_type_description(document_type) -> str:
    try:
        return DOCUMENT_TYPE_DESCRIPTIONS.get(parse_document_type(document_type), "")
    except ValueError:
        return ""
