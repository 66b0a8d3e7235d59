"""FastAPI dependencies: actor identity and external adapters.

Authentication happens upstream (API gateway / session service); it
forwards the authenticated principal in the X-Actor-Id and X-Actor-Role
headers. Partner actors are identified by their partner id.
"""

from dataclasses import dataclass
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db
from .domain.documents.ports.object_storage_port import ObjectStoragePort
from .domain.notifications.ports import NotificationSink
from .domain.roles import UserRole
from .infrastructure.notifications.email_sink import EmailNotificationSink
from .infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from .infrastructure.storage.storage_config import load_storage_config
from .models.user import User


@dataclass
class Actor:
    id: UUID
    role: UserRole


def get_actor(
    x_actor_id: str = Header(..., alias="X-Actor-Id"),
    x_actor_role: str = Header(UserRole.USER.value, alias="X-Actor-Role"),
) -> Actor:
    """Principal of the current request.

    Raises:
        HTTPException 401: If the headers are missing or malformed
    """
    try:
        return Actor(id=UUID(x_actor_id), role=UserRole(x_actor_role.strip().upper()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor headers",
        )


@lru_cache()
def get_storage() -> ObjectStoragePort:
    """Process-wide S3 adapter built from settings."""
    return S3StorageAdapter.from_config(load_storage_config(get_settings()))


@lru_cache()
def get_notifier() -> NotificationSink:
    """Process-wide email sink (log-only when MAIL_SERVER is unset)."""
    return EmailNotificationSink.from_settings(get_settings())


def require_admin(
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> Actor:
    """Actor must claim ADMIN and be stored as an ADMIN user.

    Raises:
        HTTPException 403: Otherwise
    """
    user = db.get(User, actor.id) if actor.role == UserRole.ADMIN else None
    if user is None or user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return actor
