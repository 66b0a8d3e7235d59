"""Best-effort notification delivery."""

import logging
from typing import Any, Dict, Optional

from .ports import NotificationKind, NotificationSink

logger = logging.getLogger(__name__)


def deliver(
    sink: Optional[NotificationSink],
    kind: NotificationKind,
    recipient: Optional[str],
    payload: Dict[str, Any],
) -> bool:
    """Send a notification, never raising.

    Returns False when there is no sink, no recipient, or the sink failed.
    """
    if sink is None or not recipient:
        logger.info(
            "Notification skipped (no sink or recipient)",
            extra={"notification_kind": kind.value},
        )
        return False

    try:
        sent = bool(sink.send(kind, recipient, payload))
    except Exception as e:
        logger.warning(
            f"Notification {kind.value} to {recipient} failed: {e}",
            extra={"notification_kind": kind.value},
        )
        return False

    if not sent:
        logger.warning(
            f"Notification {kind.value} to {recipient} was not accepted",
            extra={"notification_kind": kind.value},
        )
    return sent
