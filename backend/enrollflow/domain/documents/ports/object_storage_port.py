"""Object Storage Port - domain interface for the document blob store.

The database is the source of truth for which documents exist; the blob
store only holds their bytes. Adapters implement this interface for S3,
MinIO, Cloudflare R2 or an in-memory store in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID


class StorageError(Exception):
    """Raised when the blob store is unreachable or rejects an operation."""
    pass


@dataclass
class StoredFile:
    """Metadata for a file stored in object storage.

    Attributes:
        storage_key: Unique key in object storage (format: {owner_id}/{year}/{month}/{sha256}.{ext})
        sha256: SHA256 hash of file content (hex format)
        size_bytes: File size in bytes
        mime_type: MIME type of the file (e.g., 'application/pdf')
    """
    storage_key: str
    sha256: str
    size_bytes: int
    mime_type: str


class ObjectStoragePort(ABC):
    """Port interface for the content-addressable document store.

    Keys are derived from the owner and the content hash, so storing the
    same bytes twice for one owner yields the same key. Callers replacing a
    document must not delete the old key when it equals the new one.
    """

    @abstractmethod
    async def store_file(
        self,
        file: BinaryIO,
        owner_id: UUID,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Store a file, returning the existing object when the content is already stored.

        Raises:
            StorageError: If upload fails or storage is unavailable
            ValueError: If file is empty
        """

    @abstractmethod
    async def delete_file(self, storage_key: str) -> bool:
        """Delete a file. Idempotent: returns False when the key did not exist.

        Raises:
            StorageError: If deletion fails
        """

    @abstractmethod
    async def file_exists(self, storage_key: str) -> bool:
        """Check whether a key exists (HEAD request, no download)."""

    @abstractmethod
    async def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 3600,
    ) -> str:
        """Generate a time-limited download URL.

        Raises:
            FileNotFoundError: If file doesn't exist
            StorageError: If URL generation fails
        """
