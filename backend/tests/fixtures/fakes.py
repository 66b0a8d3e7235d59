"""In-memory stand-ins for the document store and notification sink ports."""

import hashlib
from typing import Any, BinaryIO, Dict, List, Tuple
from uuid import UUID

from enrollflow.domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StorageError,
    StoredFile,
)
from enrollflow.domain.notifications.ports import NotificationKind, NotificationSink
from enrollflow.infrastructure.storage.s3_storage_adapter import build_storage_key


class InMemoryObjectStorage(ObjectStoragePort):
    """Dict-backed content-addressed store. Flip the fail_* flags to simulate outages."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_on_store = False
        self.fail_on_delete = False

    async def store_file(self, file: BinaryIO, owner_id: UUID, filename: str, mime_type: str) -> StoredFile:
        if self.fail_on_store:
            raise StorageError("store unavailable")
        content = file.read()
        if not content:
            raise ValueError("Cannot store empty file")
        sha256 = hashlib.sha256(content).hexdigest()
        key = build_storage_key(owner_id, sha256, filename)
        self.objects[key] = content
        return StoredFile(storage_key=key, sha256=sha256, size_bytes=len(content), mime_type=mime_type)

    async def delete_file(self, storage_key: str) -> bool:
        if self.fail_on_delete:
            raise StorageError("delete unavailable")
        if storage_key not in self.objects:
            return False
        del self.objects[storage_key]
        self.deleted.append(storage_key)
        return True

    async def file_exists(self, storage_key: str) -> bool:
        return storage_key in self.objects

    async def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        if storage_key not in self.objects:
            raise FileNotFoundError(storage_key)
        return f"https://storage.test/{storage_key}?expires={expires_in_seconds}"


class RecordingNotificationSink(NotificationSink):
    """Records every notification; accepts all of them."""

    def __init__(self):
        self.sent: List[Tuple[NotificationKind, str, Dict[str, Any]]] = []

    def send(self, kind: NotificationKind, recipient: str, payload: Dict[str, Any]) -> bool:
        self.sent.append((kind, recipient, payload))
        return True

    def kinds(self) -> List[NotificationKind]:
        return [kind for kind, _, _ in self.sent]


class FailingNotificationSink(NotificationSink):
    """Raises on every send, like an unreachable SMTP relay."""

    def __init__(self):
        self.attempts = 0

    def send(self, kind: NotificationKind, recipient: str, payload: Dict[str, Any]) -> bool:
        self.attempts += 1
        raise ConnectionError("SMTP relay unreachable")
