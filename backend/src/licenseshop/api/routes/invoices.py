"""
Invoice endpoints.

Renders invoice PDFs and runs the full issue flow (render, record, email).
"""

import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.concurrency import run_in_threadpool

from licenseshop.api.deps import get_email_service, get_renderer
from licenseshop.api.schemas import (
    DeliveryResponse,
    InvoiceRecordResponse,
    InvoiceRequest,
    IssueInvoiceResponse,
)
from licenseshop.domain.errors import DeliveryRejectedError, TransportError
from licenseshop.services.email_delivery import EmailService
from licenseshop.services.invoice_pdf import InvoiceRenderer
from licenseshop.services.issuing import InvoiceIssuer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def content_disposition(filename: str) -> str:
    """
    Inline Content-Disposition for an arbitrary filename.

    Headers are latin-1 on the wire, so the quoted filename is reduced to
    printable ASCII and the exact name travels in the RFC 5987 filename* form.
    """
    fallback = "".join(c if " " <= c <= "~" and c not in '"\\' else "_" for c in filename)
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.post(
    "/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def render_invoice(
    request: InvoiceRequest,
    renderer: Annotated[InvoiceRenderer, Depends(get_renderer)],
) -> Response:
    """
    Render an invoice PDF.

    The document is regenerated on every request. Degraded renders carry
    an X-Invoice-Warnings header.
    """
    rendered = await run_in_threadpool(renderer.render, request.to_domain())

    headers = {"Content-Disposition": content_disposition(rendered.filename)}
    if rendered.warnings:
        headers["X-Invoice-Warnings"] = ",".join(rendered.warnings)

    return Response(content=rendered.pdf, media_type="application/pdf", headers=headers)


@router.post(
    "/issue",
    response_model=IssueInvoiceResponse,
    responses={
        422: {"description": "Recipient address rejected by verification"},
        502: {"description": "Mail transport failed"},
    },
)
async def issue_invoice(
    request: InvoiceRequest,
    renderer: Annotated[InvoiceRenderer, Depends(get_renderer)],
    email: Annotated[EmailService, Depends(get_email_service)],
    deliver: bool = True,
) -> IssueInvoiceResponse:
    """
    Render the invoice, build its record and email it to the payer.

    **Process:**
    1. Render the PDF
    2. Build the invoice record (id, amounts, license key, filename, timestamp)
    3. Verify the payer address and send the email with the PDF attached
    """
    data = request.to_domain()
    issuer = InvoiceIssuer(renderer, email)

    try:
        issued = await issuer.issue(data, deliver=deliver)
    except DeliveryRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except TransportError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    logger.info(f"Issued invoice {data.id} to {data.email}")

    return IssueInvoiceResponse(
        record=InvoiceRecordResponse.from_record(issued.record, data.totals.total_display),
        warnings=issued.rendered.warnings,
        delivery=DeliveryResponse.from_outcome(issued.delivery) if issued.delivery else None,
    )
