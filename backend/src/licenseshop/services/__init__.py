"""
Services package - Invoice rendering and email delivery.

Includes the PDF renderer, address verification and verified delivery.
"""

from .email_delivery import EmailService
from .email_verifier import EmailVerifier
from .invoice_pdf import InvoiceRenderer

__all__ = ["EmailService", "EmailVerifier", "InvoiceRenderer"]
