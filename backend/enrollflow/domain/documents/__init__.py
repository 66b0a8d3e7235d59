"""Documents domain module - document types, review status, catalog, upload validation."""

from .document_type import (
    DocumentType,
    DOCUMENT_TYPE_LABELS,
    parse_document_type,
    document_type_label,
    document_type_description,
)
from .document_status import (
    UserDocumentStatus,
    DocumentAction,
    UploadSource,
    APPROVED_STATUSES,
    REJECTED_STATUSES,
    is_approved,
    is_rejected,
)
from .catalog import (
    RequiredDocument,
    required_document_types,
    get_required_documents,
    resolve_offer_type,
)
from .validation import (
    is_supported_mime_type,
    validate_file_size,
    validate_filename,
    sanitize_filename,
    SUPPORTED_MIME_TYPES,
    DEFAULT_MAX_FILE_SIZE,
)

__all__ = [
    "DocumentType",
    "DOCUMENT_TYPE_LABELS",
    "parse_document_type",
    "document_type_label",
    "document_type_description",
    "UserDocumentStatus",
    "DocumentAction",
    "UploadSource",
    "APPROVED_STATUSES",
    "REJECTED_STATUSES",
    "is_approved",
    "is_rejected",
    "RequiredDocument",
    "required_document_types",
    "get_required_documents",
    "resolve_offer_type",
    "is_supported_mime_type",
    "validate_file_size",
    "validate_filename",
    "sanitize_filename",
    "SUPPORTED_MIME_TYPES",
    "DEFAULT_MAX_FILE_SIZE",
]
