"""
Verified email delivery.

Every send verifies the recipient first and refuses invalid or high-risk
addresses before the transport is touched. Without a configured transport
the service runs in no-op mode: verification still happens, nothing is
dispatched, and the caller gets sent=False.

Design Decisions:
- Single sends raise (DeliveryRejectedError, TransportError)
- Bulk sends never raise; each recipient gets its own entry
- Bulk verifications and dispatches run concurrently, output keeps input order
"""

import asyncio
import html
import logging
from collections.abc import Sequence

from licenseshop.config import Settings, get_settings
from licenseshop.domain.errors import DeliveryRejectedError, LicenseShopError, TransportError
from licenseshop.domain.models import (
    Attachment,
    BulkDeliveryEntry,
    BulkRecipient,
    DeliveryOutcome,
    DeliveryStatus,
    InvoiceData,
    OutgoingMessage,
    RenderedInvoice,
    VerificationResult,
)
from licenseshop.infrastructure.dns_resolver import DnsMXResolver
from licenseshop.infrastructure.mail import MailTransport, create_transport
from licenseshop.services.email_verifier import EmailVerifier

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "no-reply@nk2it.com.au"
SKIPPED_REASON = "Invalid or high-risk email"


def invoice_subject(invoice_id: str) -> str:
    return f"NK2IT Invoice {invoice_id} - Symantec License Key"


def render_invoice_email(data: InvoiceData) -> str:
    """Branded HTML body for an invoice email."""
    invoice_id = html.escape(data.id)
    license_key = html.escape(data.license_key)
    total = data.totals.total_display

    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: #FF7A00; color: white; padding: 20px; text-align: center;">
    <h1 style="margin: 0;">NK2IT PTY LTD</h1>
    <p style="margin: 5px 0 0 0;">Professional Software Licensing Solutions</p>
  </div>

  <div style="padding: 30px; background: #f9f9f9;">
    <h2 style="color: #333;">Thank you for your purchase!</h2>
    <p>Your Symantec Endpoint Protection license has been processed successfully.</p>

    <div style="background: white; padding: 20px; border-radius: 8px; margin: 20px 0;">
      <h3 style="color: #FF7A00; margin-top: 0;">Order Details</h3>
      <p><strong>Invoice ID:</strong> {invoice_id}</p>
      <p><strong>License Key:</strong> <code style="background: #f0f0f0; padding: 4px 8px; border-radius: 4px;">{license_key}</code></p>
      <p><strong>Total Amount:</strong> {total} AUD (inc. GST)</p>
    </div>

    <p>Your invoice PDF is attached to this email for your records.</p>

    <div style="background: #e8f5e8; padding: 15px; border-radius: 8px; border-left: 4px solid #00A65A;">
      <p style="margin: 0;"><strong>Next Steps:</strong></p>
      <p style="margin: 5px 0 0 0;">Use the license key above to activate your Symantec Endpoint Protection software. If you need assistance, contact our support team.</p>
    </div>
  </div>

  <div style="background: #00A65A; color: white; padding: 20px; text-align: center;">
    <p style="margin: 0; font-weight: bold;">Thank you for your purchase! Powered by NK2IT</p>
    <p style="margin: 10px 0 0 0; font-size: 14px;">
      Email: support@nk2it.com.au | Phone: 1300 NK2 IT | Website: nk2it.com.au
    </p>
  </div>
</div>
"""


class EmailService:
    """
    Verifies recipients and dispatches messages through a transport.
    """

    def __init__(
        self,
        verifier: EmailVerifier | None = None,
        transport: MailTransport | None = None,
        sender: str = DEFAULT_SENDER,
    ) -> None:
        """
        Initialize email service.

        Args:
            verifier: Address verifier. Default DNS-backed verifier if None.
            transport: Mail transport. None means no-op mode.
            sender: From address used on every message
        """
        self.verifier = verifier or EmailVerifier()
        self.transport = transport
        self.sender = sender

    @property
    def transport_configured(self) -> bool:
        return self.transport is not None

    async def send(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        attachments: Sequence[Attachment] | None = None,
    ) -> DeliveryOutcome:
        """
        Verify a recipient and send one message.

        Raises:
            DeliveryRejectedError: Recipient is invalid or high risk
            TransportError: The transport failed to send
        """
        verification = await self.verifier.verify(recipient)
        return await self._dispatch(recipient, subject, html_body, attachments, verification)

    async def send_bulk(self, recipients: Sequence[BulkRecipient]) -> list[BulkDeliveryEntry]:
        """
        Verify and send to many recipients.

        One recipient's failure is recorded in its entry and never stops
        the others.
        """
        verifications = await self.verifier.verify_batch(r.email for r in recipients)
        entries = await asyncio.gather(*(
            self._bulk_entry(recipient, verification)
            for recipient, verification in zip(recipients, verifications)
        ))

        sent = sum(1 for e in entries if e.status == DeliveryStatus.SUCCESS)
        logger.info(f"Bulk send finished: {sent}/{len(entries)} delivered")
        return list(entries)

    async def send_invoice(self, data: InvoiceData, rendered: RenderedInvoice) -> DeliveryOutcome:
        """Send the invoice email with the PDF attached."""
        attachment = Attachment(filename=rendered.filename, content=rendered.pdf)
        return await self.send(
            data.email,
            invoice_subject(data.id),
            render_invoice_email(data),
            [attachment],
        )

    async def _bulk_entry(
        self,
        recipient: BulkRecipient,
        verification: VerificationResult,
    ) -> BulkDeliveryEntry:
        if not verification.deliverable:
            return BulkDeliveryEntry(
                email=recipient.email,
                status=DeliveryStatus.SKIPPED,
                reason=SKIPPED_REASON,
                verification=verification,
            )

        try:
            outcome = await self._dispatch(
                recipient.email, recipient.subject, recipient.content, None, verification
            )
        except LicenseShopError as e:
            return BulkDeliveryEntry(
                email=recipient.email,
                status=DeliveryStatus.ERROR,
                reason=str(e),
                verification=verification,
            )

        return BulkDeliveryEntry(
            email=recipient.email,
            status=DeliveryStatus.SUCCESS,
            outcome=outcome,
            verification=verification,
        )

    async def _dispatch(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        attachments: Sequence[Attachment] | None,
        verification: VerificationResult,
    ) -> DeliveryOutcome:
        if not verification.deliverable:
            logger.info(f"Refusing delivery to {verification.email}: {verification.risk.value} risk")
            raise DeliveryRejectedError(recipient, verification)

        if self.transport is None:
            logger.info(f"Email would be sent to: {recipient} (no transport configured)")
            return DeliveryOutcome(verified=True, sent=False, verification=verification)

        message = OutgoingMessage(
            sender=self.sender,
            to=recipient,
            subject=subject,
            html=html_body,
            attachments=tuple(attachments or ()),
        )

        try:
            message_id = await self.transport.send(message)
        except Exception as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            raise TransportError(recipient, str(e)) from e

        return DeliveryOutcome(
            verified=True,
            sent=True,
            verification=verification,
            message_id=message_id,
        )


def create_email_service(settings: Settings | None = None) -> EmailService:
    """Build an EmailService from application settings."""
    settings = settings or get_settings()
    smtp = settings.smtp_config()
    return EmailService(
        verifier=EmailVerifier(DnsMXResolver(settings.dns_timeout_seconds, settings.dns_nameservers)),
        transport=create_transport(smtp),
        sender=smtp.from_address if smtp else (settings.email_from or DEFAULT_SENDER),
    )
