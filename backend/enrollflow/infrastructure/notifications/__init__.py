"""Email adapter for the notification sink port."""

from .email_sink import EmailNotificationSink, render_notification

__all__ = ["EmailNotificationSink", "render_notification"]
