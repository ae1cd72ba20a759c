"""
Domain models for invoicing and license-key delivery.

These models are shared by the renderer and the email pipeline. None of
them are persisted by this package; InvoiceRecord is only the payload a
storage layer would accept.

Design Decisions:
- Frozen dataclasses for inputs so no stage can mutate them
- Derived money values exposed through InvoiceTotals, computed on demand
- Verification outcomes are values, not exceptions
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from licenseshop.domain.money import compute_gst_cents, format_cents

PRODUCT_DESCRIPTION = "Symantec Endpoint Protection License"
INVOICE_FILENAME_PREFIX = "NK2IT-Invoice"


class RiskLevel(str, Enum):
    """Deliverability confidence tier for an email address."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"


class VerificationReason(str, Enum):
    """Why an address was not classified as deliverable."""
    INVALID_FORMAT = "invalid_format"
    NO_MX_RECORDS = "no_mx_records"
    DNS_LOOKUP_FAILED = "dns_lookup_failed"


class DeliveryStatus(str, Enum):
    """Per-recipient status inside a bulk delivery."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class InvoiceTotals:
    """Money values derived from a GST-exclusive amount."""
    amount_cents: int
    gst_cents: int
    total_cents: int

    @classmethod
    def from_amount(cls, amount_cents: int) -> "InvoiceTotals":
        gst = compute_gst_cents(amount_cents)
        return cls(amount_cents=amount_cents, gst_cents=gst, total_cents=amount_cents + gst)

    @property
    def amount_display(self) -> str:
        return format_cents(self.amount_cents)

    @property
    def gst_display(self) -> str:
        return format_cents(self.gst_cents)

    @property
    def total_display(self) -> str:
        return format_cents(self.total_cents)


@dataclass(frozen=True)
class InvoiceData:
    """
    Input to the renderer and the emailer.

    The id is opaque and may be arbitrarily long. amount_cents is the
    GST-exclusive price.
    """
    id: str
    email: str
    license_key: str
    amount_cents: int

    def __post_init__(self) -> None:
        """Validate amount."""
        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise ValueError(f"amount_cents must be an integer, got {self.amount_cents!r}")
        if self.amount_cents < 0:
            raise ValueError(f"amount_cents must be non-negative, got {self.amount_cents}")

    @property
    def totals(self) -> InvoiceTotals:
        """Fresh totals for this invoice."""
        return InvoiceTotals.from_amount(self.amount_cents)

    @property
    def pdf_filename(self) -> str:
        return f"{INVOICE_FILENAME_PREFIX}-{self.id}.pdf"


@dataclass(frozen=True)
class InvoiceRecord:
    """
    Fields a storage layer needs to persist an issued invoice.
    """
    id: str
    user_email: str
    amount_cents: int
    gst_cents: int
    license_key: str
    pdf_file_name: str
    created_at: datetime

    @classmethod
    def from_invoice(cls, data: InvoiceData, created_at: datetime) -> "InvoiceRecord":
        return cls(
            id=data.id,
            user_email=data.email,
            amount_cents=data.amount_cents,
            gst_cents=data.totals.gst_cents,
            license_key=data.license_key,
            pdf_file_name=data.pdf_filename,
            created_at=created_at,
        )


@dataclass
class RenderedInvoice:
    """
    Result of rendering an invoice.

    warnings lists degraded steps (e.g. "logo_unavailable"); the PDF is
    still complete and usable when warnings are present.
    """
    pdf: bytes
    filename: str
    warnings: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


@dataclass(frozen=True)
class MXRecord:
    """A single mail-exchanger entry. Lower priority is preferred."""
    priority: int
    exchange: str


@dataclass
class VerificationResult:
    """
    Outcome of verifying one email address.

    Mutable because the verifier fills it in step by step.
    """
    email: str
    is_valid: bool = False
    risk: RiskLevel = RiskLevel.UNKNOWN
    reason: VerificationReason | None = None
    mx_records: list[str] = field(default_factory=list)
    error: str | None = None  # Resolver message on dns_lookup_failed

    @property
    def deliverable(self) -> bool:
        """True if delivery may be attempted."""
        return self.is_valid and self.risk != RiskLevel.HIGH

    def to_dict(self) -> dict[str, Any]:
        """JSON shape used at the API boundary."""
        data: dict[str, Any] = {
            "email": self.email,
            "isValid": self.is_valid,
            "risk": self.risk.value,
            "reason": self.reason.value if self.reason else None,
            "mxRecords": list(self.mx_records),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class Attachment:
    """A file attached to an outgoing email."""
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True)
class OutgoingMessage:
    """Message handed to a mail transport."""
    sender: str
    to: str
    subject: str
    html: str
    attachments: tuple[Attachment, ...] = ()


@dataclass
class DeliveryOutcome:
    """Result of a single verified send."""
    verified: bool
    sent: bool
    verification: VerificationResult
    message_id: str | None = None


@dataclass(frozen=True)
class BulkRecipient:
    """One entry of a bulk send request."""
    email: str
    subject: str
    content: str


@dataclass
class BulkDeliveryEntry:
    """Per-recipient result of a bulk send."""
    email: str
    status: DeliveryStatus
    outcome: DeliveryOutcome | None = None
    reason: str | None = None
    verification: VerificationResult | None = None
