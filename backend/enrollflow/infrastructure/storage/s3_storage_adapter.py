"""S3 Storage Adapter - ObjectStoragePort implementation using boto3.

Works against AWS S3, MinIO and Cloudflare R2. Objects are addressed by
owner and content hash, so uploading identical bytes twice for the same
student reuses the existing object.
"""

import hashlib
import logging
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional
from uuid import UUID

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StorageError,
    StoredFile,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def build_storage_key(owner_id: UUID, sha256: str, filename: str, now: Optional[datetime] = None) -> str:
    """Storage key in format: {owner_id}/{year}/{month}/{sha256}{ext}

    Example:
        >>> build_storage_key(UUID('a1b2c3d4-e5f6-7890-abcd-ef1234567890'), 'abc123', 'diploma.PDF',
        ...                   now=datetime(2025, 3, 1))
        'a1b2c3d4-e5f6-7890-abcd-ef1234567890/2025/03/abc123.pdf'
    """
    now = now or datetime.now(timezone.utc)
    ext = Path(filename).suffix.lower()
    return f"{owner_id}/{now.year}/{now.month:02d}/{sha256}{ext}"


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible document store.

    Example:
        config = load_storage_config(get_settings())
        storage = S3StorageAdapter.from_config(config)

        with open('carta_identita.pdf', 'rb') as f:
            stored = await storage.store_file(
                file=f,
                owner_id=user.id,
                filename='carta_identita.pdf',
                mime_type='application/pdf',
            )
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.bucket_name = bucket_name
        self.region = region
        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    @classmethod
    def from_config(cls, config) -> "S3StorageAdapter":
        return cls(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )

    async def store_file(
        self,
        file: BinaryIO,
        owner_id: UUID,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Hash the stream in 8KB chunks, then upload unless the key already exists.

        Raises:
            StorageError: If upload fails
            ValueError: If file is empty
        """
        sha256_hash = hashlib.sha256()
        buffer = BytesIO()
        while True:
            chunk = file.read(CHUNK_SIZE)
            if not chunk:
                break
            sha256_hash.update(chunk)
            buffer.write(chunk)

        size_bytes = buffer.tell()
        if size_bytes == 0:
            raise ValueError("Cannot store empty file")

        sha256_hex = sha256_hash.hexdigest()
        storage_key = build_storage_key(owner_id, sha256_hex, filename)
        stored = StoredFile(
            storage_key=storage_key,
            sha256=sha256_hex,
            size_bytes=size_bytes,
            mime_type=mime_type,
        )

        if await self.file_exists(storage_key):
            logger.info(f"File already stored (dedup): storage_key={storage_key}")
            return stored

        buffer.seek(0)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=buffer,
                ContentType=mime_type,
                Metadata={
                    "sha256": sha256_hex,
                    "owner_id": str(owner_id),
                },
            )
        except ClientError as e:
            logger.error(f"S3 upload failed: storage_key={storage_key}, error={_error_code(e)}")
            raise StorageError(f"Failed to upload file: {_error_code(e)}")
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to upload file: {e}")

        logger.info(
            f"Uploaded file: storage_key={storage_key}, size={size_bytes}, mime_type={mime_type}"
        )
        return stored

    async def delete_file(self, storage_key: str) -> bool:
        """Delete an object. Returns False when it did not exist.

        Raises:
            StorageError: If deletion fails
        """
        if not await self.file_exists(storage_key):
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=storage_key)
        except ClientError as e:
            logger.error(f"S3 deletion failed: storage_key={storage_key}, error={_error_code(e)}")
            raise StorageError(f"Failed to delete file: {_error_code(e)}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to delete file: {e}")

        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    async def file_exists(self, storage_key: str) -> bool:
        """HEAD the object.

        Raises:
            StorageError: For errors other than a missing key
        """
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=storage_key)
            return True
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check file: {_error_code(e)}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file: {e}")

    async def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 3600,
    ) -> str:
        """Presigned GET URL for direct download.

        Raises:
            FileNotFoundError: If file doesn't exist
            StorageError: If URL generation fails
        """
        if not await self.file_exists(storage_key):
            raise FileNotFoundError(f"File not found: {storage_key}")

        try:
            url = self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": storage_key},
                ExpiresIn=expires_in_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Presigned URL generation failed: storage_key={storage_key}, error={e}")
            raise StorageError(f"Failed to generate presigned URL: {e}")

        return url

    async def verify_bucket_exists(self) -> bool:
        """Fail fast on startup if the bucket is missing.

        Raises:
            StorageError: If bucket check fails or bucket doesn't exist
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchBucket"):
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update S3_BUCKET_NAME."
                )
            raise StorageError(f"Failed to verify bucket: {_error_code(e)}")
        except BotoCoreError as e:
            raise StorageError(f"Failed to verify bucket: {e}")

        logger.info(f"Verified bucket exists: {self.bucket_name}")
        return True
