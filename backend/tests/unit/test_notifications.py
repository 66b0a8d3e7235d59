"""Unit tests for notification dispatch and the email sink"""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from enrollflow.config import Settings
from enrollflow.domain.notifications import NotificationKind, deliver
from enrollflow.infrastructure.notifications.email_sink import (
    EmailNotificationSink,
    render_notification,
)

from fixtures.fakes import FailingNotificationSink, RecordingNotificationSink


class TestDeliver:

    def test_returns_sink_result(self):
        sink = RecordingNotificationSink()
        assert deliver(sink, NotificationKind.DOCUMENT_APPROVED, "a@example.com", {"x": 1}) is True
        assert sink.sent == [(NotificationKind.DOCUMENT_APPROVED, "a@example.com", {"x": 1})]

    def test_exception_becomes_false(self):
        sink = FailingNotificationSink()
        assert deliver(sink, NotificationKind.DOCUMENT_REJECTED, "a@example.com", {}) is False
        assert sink.attempts == 1

    def test_missing_recipient_or_sink_is_skipped(self):
        sink = RecordingNotificationSink()
        assert deliver(sink, NotificationKind.DOCUMENT_APPROVED, None, {}) is False
        assert deliver(None, NotificationKind.DOCUMENT_APPROVED, "a@example.com", {}) is False
        assert sink.sent == []


class TestRenderNotification:

    def test_every_kind_has_a_template(self):
        for kind in NotificationKind:
            rendered = render_notification(kind, {})
            assert rendered["subject"]
            assert rendered["html"]

    def test_placeholders_filled_and_missing_kept(self):
        rendered = render_notification(
            NotificationKind.DOCUMENT_REJECTED,
            {"document_label": "Diploma di Laurea", "reason": "Illeggibile", "details": None},
        )
        assert rendered["subject"] == "Documento da ricaricare: Diploma di Laurea"
        assert "Illeggibile" in rendered["html"]
        assert "{first_name}" in rendered["html"]
        assert "None" not in rendered["html"]


class TestEmailNotificationSink:

    def test_log_only_mode_without_server(self):
        sink = EmailNotificationSink(server=None)
        with patch("enrollflow.infrastructure.notifications.email_sink.smtplib.SMTP") as smtp:
            assert sink.send(NotificationKind.ENROLLMENT_CONFIRMED, "a@example.com", {}) is True
            smtp.assert_not_called()

    def test_sends_via_smtp_with_tls_and_login(self):
        sink = EmailNotificationSink(
            server="smtp.example.com", port=2525, use_tls=True,
            username="user", password="secret", sender="noreply@example.com",
        )
        with patch("enrollflow.infrastructure.notifications.email_sink.smtplib.SMTP") as smtp_cls:
            smtp = MagicMock()
            smtp_cls.return_value.__enter__.return_value = smtp

            assert sink.send(NotificationKind.DOCUMENT_APPROVED, "a@example.com", {"first_name": "Mario"}) is True

            smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=30)
            smtp.starttls.assert_called_once()
            smtp.login.assert_called_once_with("user", "secret")
            message = smtp.send_message.call_args[0][0]
            assert message["To"] == "a@example.com"
            assert message["From"] == "noreply@example.com"

    def test_smtp_failure_returns_false(self):
        sink = EmailNotificationSink(server="smtp.example.com")
        with patch("enrollflow.infrastructure.notifications.email_sink.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = smtplib.SMTPConnectError(421, "unavailable")
            assert sink.send(NotificationKind.DOCUMENT_APPROVED, "a@example.com", {}) is False

    def test_from_settings(self):
        settings = Settings(MAIL_SERVER="mail.example.com", MAIL_PORT=465, MAIL_USE_TLS=False)
        sink = EmailNotificationSink.from_settings(settings)
        assert sink.is_configured()
        assert sink.port == 465
        assert sink.use_tls is False
