"""
Pydantic schemas for API request/response validation.

These schemas define the contract between frontend and backend.
Money travels as integer cents plus a preformatted display string.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from licenseshop.domain.models import (
    BulkDeliveryEntry,
    DeliveryOutcome,
    InvoiceData,
    InvoiceRecord,
    RiskLevel,
    VerificationResult,
)


# =============================================================================
# Request Schemas
# =============================================================================

class VerifyEmailRequest(BaseModel):
    """Request to verify one address."""
    email: str = Field(..., description="Address to verify")


class VerifyEmailBatchRequest(BaseModel):
    """Request to verify many addresses."""
    emails: list[str] = Field(..., max_length=500)


class InvoiceRequest(BaseModel):
    """Invoice to render or issue."""
    id: str = Field(..., min_length=1, description="Opaque invoice identifier")
    email: str = Field(..., description="Payer email, printed under Bill To")
    license_key: str = Field(..., description="License key delivered with the invoice")
    amount_cents: int = Field(..., ge=0, description="GST-exclusive amount in cents")

    def to_domain(self) -> InvoiceData:
        return InvoiceData(
            id=self.id,
            email=self.email,
            license_key=self.license_key,
            amount_cents=self.amount_cents,
        )


class BulkRecipientRequest(BaseModel):
    email: str
    subject: str
    content: str


class BulkSendRequest(BaseModel):
    """Bulk delivery request."""
    recipients: list[BulkRecipientRequest] = Field(..., max_length=500)


# =============================================================================
# Response Schemas
# =============================================================================

class EmailVerificationResponse(BaseModel):
    """Verification result, camelCase on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    email: str
    is_valid: bool = Field(alias="isValid")
    risk: RiskLevel
    reason: str | None = None
    mx_records: list[str] = Field(default_factory=list, alias="mxRecords")
    error: str | None = None

    @classmethod
    def from_result(cls, result: VerificationResult) -> "EmailVerificationResponse":
        return cls.model_validate(result.to_dict())


class DeliveryResponse(BaseModel):
    """Outcome of one verified send."""
    verified: bool
    sent: bool
    message_id: str | None = None
    verification: EmailVerificationResponse

    @classmethod
    def from_outcome(cls, outcome: DeliveryOutcome) -> "DeliveryResponse":
        return cls(
            verified=outcome.verified,
            sent=outcome.sent,
            message_id=outcome.message_id,
            verification=EmailVerificationResponse.from_result(outcome.verification),
        )


class BulkEntryResponse(BaseModel):
    email: str
    status: str
    reason: str | None = None
    delivery: DeliveryResponse | None = None

    @classmethod
    def from_entry(cls, entry: BulkDeliveryEntry) -> "BulkEntryResponse":
        return cls(
            email=entry.email,
            status=entry.status.value,
            reason=entry.reason,
            delivery=DeliveryResponse.from_outcome(entry.outcome) if entry.outcome else None,
        )


class InvoiceRecordResponse(BaseModel):
    """Invoice record payload for the storage layer."""
    id: str
    user_email: str
    amount_cents: int
    gst_cents: int
    total_cents: int
    total_display: str
    license_key: str
    pdf_file_name: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: InvoiceRecord, total_display: str) -> "InvoiceRecordResponse":
        return cls(
            id=record.id,
            user_email=record.user_email,
            amount_cents=record.amount_cents,
            gst_cents=record.gst_cents,
            total_cents=record.amount_cents + record.gst_cents,
            total_display=total_display,
            license_key=record.license_key,
            pdf_file_name=record.pdf_file_name,
            created_at=record.created_at,
        )


class IssueInvoiceResponse(BaseModel):
    """Response from issuing an invoice."""
    record: InvoiceRecordResponse
    warnings: list[str] = []
    delivery: DeliveryResponse | None = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    smtp_configured: bool
