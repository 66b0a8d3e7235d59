"""Unit tests for upload file validation utilities"""

import pytest

from enrollflow.domain.documents.validation import (
    DEFAULT_MAX_FILE_SIZE,
    SUPPORTED_MIME_TYPES,
    is_supported_mime_type,
    sanitize_filename,
    validate_file_size,
    validate_filename,
)


class TestMimeTypeValidation:

    def test_supported_mime_types_constant(self):
        assert SUPPORTED_MIME_TYPES == {'application/pdf', 'image/jpeg', 'image/jpg', 'image/png'}

    @pytest.mark.parametrize("mime_type", ['application/pdf', 'image/jpeg', 'image/jpg', 'IMAGE/PNG'])
    def test_supported(self, mime_type):
        assert is_supported_mime_type(mime_type) is True

    @pytest.mark.parametrize("mime_type", [
        'application/msword',
        'text/csv',
        'image/gif',
        'application/x-msdownload',
        '',
        None,
    ])
    def test_unsupported(self, mime_type):
        assert is_supported_mime_type(mime_type) is False


class TestFileSizeValidation:

    def test_default_limit_is_10mb(self):
        assert DEFAULT_MAX_FILE_SIZE == 10 * 1024 * 1024

    def test_exactly_at_limit_is_valid(self):
        assert validate_file_size(DEFAULT_MAX_FILE_SIZE) == (True, None)

    def test_over_limit(self):
        ok, error = validate_file_size(DEFAULT_MAX_FILE_SIZE + 1)
        assert ok is False
        assert "exceeds maximum size" in error

    def test_empty_file(self):
        assert validate_file_size(0) == (False, "File is empty (0 bytes)")

    def test_custom_limit(self):
        assert validate_file_size(2048, max_size=1024)[0] is False


class TestFilenameValidation:

    def test_valid(self):
        assert validate_filename('carta_identita.pdf') == (True, None)

    @pytest.mark.parametrize("filename", ['', '   ', None])
    def test_empty(self, filename):
        assert validate_filename(filename) == (False, "Filename cannot be empty")

    @pytest.mark.parametrize("filename", ['../../etc/passwd', 'dir/file.pdf', 'dir\\file.pdf'])
    def test_path_traversal(self, filename):
        ok, error = validate_filename(filename)
        assert ok is False
        assert "path traversal" in error

    def test_too_long(self):
        assert validate_filename('a' * 252 + '.pdf')[0] is False

    def test_control_characters(self):
        assert validate_filename('file\x07.pdf') == (False, "Filename contains control characters")


class TestSanitizeFilename:

    def test_replaces_special_characters(self):
        assert sanitize_filename('diploma (copia).pdf') == 'diploma_copia_.pdf'

    def test_keeps_extension_when_truncating(self):
        result = sanitize_filename('x' * 300 + '.png')
        assert len(result) == 255
        assert result.endswith('.png')
