"""Email Notification Sink - NotificationSink implementation over SMTP.

When MAIL_SERVER is not configured the sink runs in log-only mode: the
message is rendered and logged, and send() reports success, so development
and test environments exercise the same code path without an SMTP relay.

Configuration (Settings):
    MAIL_SERVER          SMTP host (None -> log-only mode)
    MAIL_PORT            SMTP port (default: 587)
    MAIL_USE_TLS         STARTTLS (default: true)
    MAIL_USERNAME        SMTP username
    MAIL_PASSWORD        SMTP password
    MAIL_DEFAULT_SENDER  From address
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

from ...config import Settings
from ...domain.notifications.ports import NotificationKind, NotificationSink

logger = logging.getLogger(__name__)


_TEMPLATES: Dict[NotificationKind, Dict[str, str]] = {
    NotificationKind.DOCUMENT_APPROVED: {
        "subject": "Documento approvato: {document_label}",
        "html": """
        <p>Gentile {first_name},</p>
        <p>il documento <strong>{document_label}</strong> che hai caricato per
        <strong>{course_name}</strong> è stato approvato.</p>
        <p>{notes}</p>
        """,
    },
    NotificationKind.DOCUMENT_REJECTED: {
        "subject": "Documento da ricaricare: {document_label}",
        "html": """
        <p>Gentile {first_name},</p>
        <p>il documento <strong>{document_label}</strong> non è stato accettato.</p>
        <p><strong>Motivo:</strong> {reason}</p>
        <p>{details}</p>
        <p>Accedi alla tua area personale per caricarne una nuova versione.</p>
        """,
    },
    NotificationKind.PARTNER_NEW_DOCUMENT: {
        "subject": "Nuovo documento da verificare: {student_name}",
        "html": """
        <p>{partner_name},</p>
        <p><strong>{student_name}</strong> ha caricato il documento
        <strong>{document_label}</strong> per <strong>{course_name}</strong>.</p>
        <p>Il documento è in attesa della vostra verifica.</p>
        """,
    },
    NotificationKind.ENROLLMENT_CONFIRMED: {
        "subject": "Iscrizione confermata: {course_name}",
        "html": """
        <p>Gentile {first_name},</p>
        <p>tutti i tuoi documenti sono stati verificati e la tua iscrizione a
        <strong>{course_name}</strong> è confermata.</p>
        <p>{notes}</p>
        """,
    },
    NotificationKind.DISCOVERY_REJECTED: {
        "subject": "Documenti da integrare: {course_name}",
        "html": """
        <p>Gentile {first_name},</p>
        <p>la verifica finale dei documenti per <strong>{course_name}</strong>
        ha evidenziato dei problemi.</p>
        <p><strong>Motivo:</strong> {reason}</p>
        <p>Accedi alla tua area personale per aggiornare i documenti.</p>
        """,
    },
    NotificationKind.CERTIFICATION_DOCUMENTS_APPROVED: {
        "subject": "Documenti approvati: {course_name}",
        "html": """
        <p>Gentile {first_name},</p>
        <p>i documenti e i pagamenti per <strong>{course_name}</strong> risultano
        completi. Riceverai a breve le indicazioni per l'esame finale.</p>
        """,
    },
}


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"


def render_notification(kind: NotificationKind, payload: Dict[str, Any]) -> Dict[str, str]:
    """Render subject and HTML body for a notification kind.

    Placeholders with no value in payload are left as-is; None values
    render as empty strings.
    """
    template = _TEMPLATES[NotificationKind(kind)]
    context = _SafeDict({k: ("" if v is None else v) for k, v in payload.items()})
    return {
        "subject": template["subject"].format_map(context),
        "html": template["html"].format_map(context),
    }


class EmailNotificationSink(NotificationSink):
    """Sends notifications as HTML email, or logs them when SMTP is unset."""

    def __init__(
        self,
        server: Optional[str],
        port: int = 587,
        use_tls: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = "noreply@enrollflow.local",
        timeout: int = 30,
    ):
        self.server = server
        self.port = port
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailNotificationSink":
        return cls(
            server=settings.MAIL_SERVER,
            port=settings.MAIL_PORT,
            use_tls=settings.MAIL_USE_TLS,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            sender=settings.MAIL_DEFAULT_SENDER,
            timeout=settings.MAIL_TIMEOUT_SECONDS,
        )

    def is_configured(self) -> bool:
        return bool(self.server)

    def send(self, kind: NotificationKind, recipient: str, payload: Dict[str, Any]) -> bool:
        rendered = render_notification(kind, payload)

        if not self.is_configured():
            logger.info(
                "Email (log-only): to=%s subject='%s'",
                recipient, rendered["subject"],
                extra={"notification_kind": NotificationKind(kind).value},
            )
            return True

        try:
            self._send_smtp(recipient, rendered["subject"], rendered["html"])
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email failed: to=%s error=%s", recipient, exc)
            return False

        logger.info("Email sent: to=%s subject='%s'", recipient, rendered["subject"])
        return True

    def _send_smtp(self, recipient: str, subject: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)
