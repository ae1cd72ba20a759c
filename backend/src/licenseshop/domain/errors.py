"""
Exception hierarchy for License Shop failure modes.

Only failures that must reach the caller are modelled here. Malformed
addresses, DNS failures and a missing logo are classified into result
objects instead of being raised.
"""

from licenseshop.domain.models import VerificationResult


class LicenseShopError(Exception):
    """Base exception for all License Shop errors."""


class ConfigurationError(LicenseShopError):
    """Settings are inconsistent. Raised once at startup."""


class RenderError(LicenseShopError):
    """The PDF document could not be encoded."""

    def __init__(self, invoice_id: str, message: str) -> None:
        super().__init__(f"Failed to render invoice {invoice_id}: {message}")
        self.invoice_id = invoice_id


class DeliveryRejectedError(LicenseShopError):
    """Recipient failed verification, so nothing was dispatched."""

    def __init__(self, recipient: str, verification: VerificationResult) -> None:
        if verification.is_valid:
            message = f"High-risk email address: {recipient}"
        else:
            code = verification.reason.value if verification.reason else "unknown"
            message = f"Invalid email address: {recipient} ({code})"
        super().__init__(message)
        self.recipient = recipient
        self.verification = verification


class TransportError(LicenseShopError):
    """The mail transport refused or failed to send a message."""

    def __init__(self, recipient: str, message: str) -> None:
        super().__init__(f"Failed to send email to {recipient}: {message}")
        self.recipient = recipient
