"""S3-compatible document store adapter."""

from .s3_storage_adapter import S3StorageAdapter, StorageError, build_storage_key
from .storage_config import StorageConfig, load_storage_config, validate_storage_config

__all__ = [
    "S3StorageAdapter",
    "StorageError",
    "build_storage_key",
    "StorageConfig",
    "load_storage_config",
    "validate_storage_config",
]
