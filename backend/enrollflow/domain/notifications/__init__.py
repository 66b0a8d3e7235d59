"""Notification port and best-effort dispatch."""

from .ports import NotificationKind, NotificationSink
from .dispatch import deliver

__all__ = [
    "NotificationKind",
    "NotificationSink",
    "deliver",
]
