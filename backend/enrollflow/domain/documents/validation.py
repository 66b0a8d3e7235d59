"""File validation utilities for enrollment document uploads."""

import os
import re
from typing import Optional, Tuple


# Scans and photos of identity/academic documents
SUPPORTED_MIME_TYPES = {
    'application/pdf',
    'image/jpeg',
    'image/jpg',
    'image/png',
}

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    """Check if MIME type is accepted for enrollment documents

    Example:
        >>> is_supported_mime_type('image/png')
        True
        >>> is_supported_mime_type('application/msword')
        False
    """
    if not mime_type:
        return False
    return mime_type.lower() in SUPPORTED_MIME_TYPES


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size (defaults to DEFAULT_MAX_FILE_SIZE)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size is None:
        max_size = DEFAULT_MAX_FILE_SIZE

    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate an uploaded filename

    Rules: not empty, at most 255 characters, no directory separators or
    path traversal, no null bytes or control characters.

    Example:
        >>> validate_filename('carta_identita.pdf')
        (True, None)
        >>> validate_filename('../../etc/passwd')
        (False, 'Filename contains path traversal or directory separators')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if '\x00' in filename:
        return False, "Filename contains null bytes"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage

    Example:
        >>> sanitize_filename('diploma (copia).pdf')
        'diploma_copia_.pdf'
    """
    filename = os.path.basename(filename)
    filename = re.sub(r'[^\w\s.-]', '_', filename)
    filename = re.sub(r'[\s_]+', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename
