"""
Mail transport for outgoing invoice emails.

SMTPTransport builds a standard EmailMessage and sends it with smtplib in a
worker thread so the event loop is never blocked. Each send opens its own
connection.

Design Decisions:
- Implicit TLS (SMTP_SSL) when configured secure, STARTTLS otherwise
- Login only when a user is configured
- Message-ID generated locally so callers always get an identifier back
"""

import asyncio
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import make_msgid

from licenseshop.config import SMTPConfig
from licenseshop.domain.models import OutgoingMessage

logger = logging.getLogger(__name__)


class MailTransport(ABC):
    """Abstract interface for message dispatch."""

    @abstractmethod
    async def send(self, message: OutgoingMessage) -> str:
        """Send a message and return its message id. Raises on failure."""
        pass


def build_email_message(message: OutgoingMessage, message_id: str) -> EmailMessage:
    """Convert an OutgoingMessage into a MIME message with attachments."""
    msg = EmailMessage()
    msg["From"] = message.sender
    msg["To"] = message.to
    msg["Subject"] = message.subject
    msg["Message-ID"] = message_id
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(message.html, subtype="html")

    for attachment in message.attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        msg.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return msg


class SMTPTransport(MailTransport):
    """SMTP transport driven by an SMTPConfig."""

    def __init__(self, config: SMTPConfig, timeout: float = 30.0) -> None:
        self.config = config
        self.timeout = timeout

    async def send(self, message: OutgoingMessage) -> str:
        """Send via SMTP in a worker thread."""
        domain = self.config.from_address.rsplit("@", 1)[-1]
        message_id = make_msgid(domain=domain)
        mime = build_email_message(message, message_id)
        await asyncio.to_thread(self._deliver, mime)
        logger.info(f"Sent email to {message.to} ({message_id})")
        return message_id

    def _deliver(self, mime: EmailMessage) -> None:
        cfg = self.config
        context = ssl.create_default_context()

        if cfg.secure:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                cfg.host, cfg.port, timeout=self.timeout, context=context
            )
        else:
            smtp = smtplib.SMTP(cfg.host, cfg.port, timeout=self.timeout)

        with smtp:
            if not cfg.secure:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=context)
                    smtp.ehlo()
            if cfg.auth_user:
                smtp.login(cfg.auth_user, cfg.auth_pass or "")
            smtp.send_message(mime)


def create_transport(config: SMTPConfig | None) -> SMTPTransport | None:
    """Return an SMTP transport, or None for no-op mode."""
    if config is None:
        logger.warning("SMTP not configured - emails will not be sent")
        return None
    return SMTPTransport(config)
