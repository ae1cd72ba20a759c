"""
Service instances shared by the routers.

Built lazily from settings; tests replace them through
app.dependency_overrides.
"""

from functools import lru_cache

from licenseshop.services.email_delivery import EmailService, create_email_service
from licenseshop.services.invoice_pdf import InvoiceRenderer


@lru_cache
def get_email_service() -> EmailService:
    """Get or create the email service."""
    return create_email_service()


@lru_cache
def get_renderer() -> InvoiceRenderer:
    """Get or create the invoice renderer."""
    return InvoiceRenderer()
