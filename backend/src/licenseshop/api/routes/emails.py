"""
Email verification and bulk delivery endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from licenseshop.api.deps import get_email_service
from licenseshop.api.schemas import (
    BulkEntryResponse,
    BulkSendRequest,
    EmailVerificationResponse,
    VerifyEmailBatchRequest,
    VerifyEmailRequest,
)
from licenseshop.domain.models import BulkRecipient
from licenseshop.services.email_delivery import EmailService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["email"])

Service = Annotated[EmailService, Depends(get_email_service)]


@router.post("/verify", response_model=EmailVerificationResponse)
async def verify_email(request: VerifyEmailRequest, service: Service) -> EmailVerificationResponse:
    """
    Classify one address.

    Always returns 200; an undeliverable address is reported through
    isValid, risk and reason.
    """
    result = await service.verifier.verify(request.email)
    return EmailVerificationResponse.from_result(result)


@router.post("/verify-batch", response_model=list[EmailVerificationResponse])
async def verify_email_batch(
    request: VerifyEmailBatchRequest,
    service: Service,
) -> list[EmailVerificationResponse]:
    """Classify many addresses. Results are in request order."""
    results = await service.verifier.verify_batch(request.emails)
    return [EmailVerificationResponse.from_result(r) for r in results]


@router.post("/send-bulk", response_model=list[BulkEntryResponse])
async def send_bulk(request: BulkSendRequest, service: Service) -> list[BulkEntryResponse]:
    """
    Verify and send to many recipients.

    Individual failures are reported per entry with status skipped or error.
    """
    logger.info(f"Bulk send requested for {len(request.recipients)} recipients")
    recipients = [BulkRecipient(email=r.email, subject=r.subject, content=r.content) for r in request.recipients]
    entries = await service.send_bulk(recipients)
    return [BulkEntryResponse.from_entry(e) for e in entries]
