"""
Invoice issuing: render, build the storage record, deliver.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from licenseshop.domain.models import DeliveryOutcome, InvoiceData, InvoiceRecord, RenderedInvoice
from licenseshop.services.email_delivery import EmailService
from licenseshop.services.invoice_pdf import InvoiceRenderer

logger = logging.getLogger(__name__)


@dataclass
class IssuedInvoice:
    """Everything produced while issuing one invoice."""
    record: InvoiceRecord
    rendered: RenderedInvoice
    delivery: DeliveryOutcome | None = None


class InvoiceIssuer:
    """
    Runs the issue flow for one invoice.

    Delivery failures propagate to the caller; the record is only returned
    when every requested step succeeded.
    """

    def __init__(self, renderer: InvoiceRenderer, email: EmailService) -> None:
        self.renderer = renderer
        self.email = email

    async def issue(self, data: InvoiceData, deliver: bool = True) -> IssuedInvoice:
        rendered = await self.renderer.render_async(data)
        if rendered.degraded:
            logger.warning(f"Invoice {data.id} rendered with warnings: {rendered.warnings}")

        record = InvoiceRecord.from_invoice(data, created_at=datetime.now(timezone.utc))

        delivery = None
        if deliver:
            delivery = await self.email.send_invoice(data, rendered)

        return IssuedInvoice(record=record, rendered=rendered, delivery=delivery)
