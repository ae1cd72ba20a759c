"""
One-page PDF invoice renderer.

Lays out a fixed invoice (logo, title, issuer, invoice number, date, bill-to,
line item, license key, totals, terms, footer) with reportlab's canvas.

Layout is computed in top-down page coordinates (points from the top edge)
and converted to reportlab's bottom-up baselines only when drawing. This
keeps the invoice-number placement testable through layout_invoice_id()
without parsing the PDF.

Design Decisions:
- Text width comes from reportlab's font metrics; a fixed character count
  per line is used only when no measurement function is available
- The logo is optional: a missing or unreadable asset becomes a warning on
  the RenderedInvoice instead of an error
- Totals are recomputed from amount_cents on every render
- An invoice id too long for the right column is cut with an ellipsis so
  the totals and terms stay above the footer on the single page
"""

import asyncio
import io
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from PIL import Image
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from licenseshop.config import get_settings
from licenseshop.domain.errors import RenderError
from licenseshop.domain.models import PRODUCT_DESCRIPTION, InvoiceData, RenderedInvoice
from licenseshop.infrastructure.assets import AssetStore, LocalAssetStore

logger = logging.getLogger(__name__)

# (text, font name, font size) -> width in points
Measure = Callable[[str, str, float], float]

ACCENT_COLOR = HexColor("#FF7A00")
SECONDARY_COLOR = HexColor("#00A65A")
TEXT_COLOR = HexColor("#000000")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
ASCENT = 0.75  # baseline offset as a fraction of font size

MARGIN = 50
HEADER_TOP = 40
LOGO_WIDTH = 140
LOGO_FALLBACK_RATIO = 0.35
LOGO_MAX_HEIGHT = 70

ID_COLUMN_WIDTH = 220
ID_LABEL_SIZE = 12
ID_DEFAULT_SIZE = 10
ID_MIN_SIZE = 6
LINE_SPACING = 1.2
ELLIPSIS = "..."

TERMS_SIZE = 9
TERMS_LEADING = 11
TERMS_BLANK_GAP = 10
FOOTER_GAP = 10

# Vertical offsets (points) of the blocks below the invoice number
DATE_LABEL_TO_VALUE = 14
BILL_BELOW_DATE = 24
TABLE_BELOW_BILL = 60
ROW_BELOW_TABLE = 30
TOTALS_BELOW_ROW = 80
TERMS_BELOW_TOTALS = 80
TERMS_BODY_OFFSET = 24
BODY_BELOW_BILL = (
    TABLE_BELOW_BILL + ROW_BELOW_TABLE + TOTALS_BELOW_ROW + TERMS_BELOW_TOTALS + TERMS_BODY_OFFSET
)
TABLE_MIN_TOP = 280

ISSUER_NAME = "NK2IT PTY LTD"
ISSUER_ADDRESS = (
    "222, 20B Lexington Drive",
    "Norwest Business Park",
    "Baulkham Hills NSW 2153",
)

TERMS = (
    "Payment Terms: Once the payment is processed, a license key will be sent to "
    "the registered email address.",
    "",
    "Refund Policy: All sales are final. No refunds will be issued after the software "
    "has been purchased or delivered. If the software is defective or an incorrect "
    "product is delivered, please contact customer support within 7 days.",
    "",
    "License Terms: The purchase provides a non-transferable license to use the "
    "Symantec Endpoint Agent software. Ownership remains with Symantec and is subject "
    "to the terms of the EULA (End-User License Agreement).",
    "",
    "Support: Basic customer support is available through support@nk2it.com.au. If you "
    "require extended support, you must coordinate with respective vendors.",
    "",
    "Limitation of Liability: Our liability is limited to the purchase price of the "
    "software. We are not responsible for any consequential, incidental, or indirect "
    "damages arising from the use or inability to use the software.",
)

FOOTER_MESSAGE = "Thank you for your purchase! Powered by NK2IT"
CONTACT_LINE = "Email: support@nk2it.com.au | Phone: 1300 NK2 IT | Website: nk2it.com.au"


def fallback_chars_per_line(width: float, font_size: float) -> int:
    """Conservative characters-per-line estimate when glyphs cannot be measured."""
    approx_char_width = max(4.0, font_size * 0.6)
    return max(10, math.floor(width / approx_char_width))


def wrap_text(
    text: str,
    width: float,
    font: str,
    size: float,
    measure: Measure | None = stringWidth,
) -> list[str]:
    """
    Split text into lines no wider than width.

    Breaks at whitespace where possible and inside a token when a single
    token is wider than the column.
    """
    if not text:
        return []

    if measure is None:
        step = fallback_chars_per_line(width, size)
        return [text[i:i + step] for i in range(0, len(text), step)]

    def fits(s: str) -> bool:
        return measure(s, font, size) <= width

    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if fits(candidate):
            current = candidate
            continue
        if current:
            lines.append(current)
        while not fits(word):
            cut = 1
            while cut < len(word) and fits(word[:cut + 1]):
                cut += 1
            lines.append(word[:cut])
            word = word[cut:]
        current = word
    if current:
        lines.append(current)
    return lines


@dataclass(frozen=True)
class InvoiceIdLayout:
    """Placement of the invoice-number block in the right column."""
    label_top: float
    font_size: int
    lines: list[str]
    line_height: float
    id_top: float
    block_height: float
    date_label_top: float
    truncated: bool = False

    @property
    def date_value_top(self) -> float:
        return self.date_label_top + DATE_LABEL_TO_VALUE


def layout_invoice_id(
    invoice_id: str,
    top: float,
    column_width: float = ID_COLUMN_WIDTH,
    measure: Measure | None = stringWidth,
    max_height: float | None = None,
) -> InvoiceIdLayout:
    """
    Fit an arbitrarily long invoice id into the right column.

    The font shrinks from 10pt towards a 6pt floor while the unwrapped id is
    wider than the column, then the id is wrapped. The Date label is placed
    below the measured block so the two never overlap.

    With max_height, an id that would grow taller than that is cut to the
    lines that fit and its last line ends in an ellipsis.
    """
    font_size = ID_DEFAULT_SIZE
    if measure is not None:
        while font_size > ID_MIN_SIZE and measure(invoice_id, FONT, font_size) > column_width:
            font_size -= 1

    lines = wrap_text(invoice_id, column_width, FONT, font_size, measure)
    line_height = font_size * LINE_SPACING

    truncated = False
    if max_height is not None:
        max_lines = max(1, math.floor(max_height / line_height))
        if len(lines) > max_lines:
            lines = lines[:max_lines]
            lines[-1] = _with_ellipsis(lines[-1], column_width, font_size, measure)
            truncated = True

    id_top = top + ID_LABEL_SIZE + 6
    block_height = len(lines) * line_height

    return InvoiceIdLayout(
        label_top=top,
        font_size=font_size,
        lines=lines,
        line_height=line_height,
        id_top=id_top,
        block_height=block_height,
        date_label_top=id_top + block_height + 8,
        truncated=truncated,
    )


def _with_ellipsis(line: str, width: float, size: float, measure: Measure | None) -> str:
    if measure is None:
        return line[:max(0, len(line) - len(ELLIPSIS))] + ELLIPSIS
    while line and measure(line + ELLIPSIS, FONT, size) > width:
        line = line[:-1]
    return line + ELLIPSIS


def format_invoice_date(day: date) -> str:
    """en-AU short date, e.g. 18/10/2026."""
    return day.strftime("%d/%m/%Y")


class _Page:
    """Canvas wrapper taking top-down coordinates."""

    def __init__(self, pdf: canvas.Canvas, height: float) -> None:
        self.pdf = pdf
        self.height = height

    def _baseline(self, top: float, size: float) -> float:
        return self.height - top - size * ASCENT

    def text(
        self,
        value: str,
        x: float,
        top: float,
        size: float,
        font: str = FONT,
        width: float | None = None,
        align: str = "left",
    ) -> None:
        self.pdf.setFont(font, size)
        y = self._baseline(top, size)
        if align == "right" and width is not None:
            self.pdf.drawRightString(x + width, y, value)
        elif align == "center" and width is not None:
            self.pdf.drawCentredString(x + width / 2, y, value)
        else:
            self.pdf.drawString(x, y, value)

    def rule(self, x1: float, x2: float, top: float) -> None:
        y = self.height - top
        self.pdf.line(x1, y, x2, y)

    def image(self, reader: ImageReader, x: float, top: float, width: float, height: float) -> None:
        self.pdf.drawImage(reader, x, self.height - top - height, width, height, mask="auto")


class InvoiceRenderer:
    """
    Renders InvoiceData into a one-page PDF.

    A renderer holds only read-only collaborators, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        assets: AssetStore | None = None,
        logo_path: str | None = None,
        pagesize: tuple[float, float] = letter,
        measure: Measure | None = stringWidth,
    ) -> None:
        """
        Initialize renderer.

        Args:
            assets: Store supplying the logo. LocalAssetStore if None.
            logo_path: Logo path inside the store. Uses config if None.
            pagesize: (width, height) in points
            measure: Text width function. None forces the char-count fallback.
        """
        settings = get_settings()
        self.assets = assets or LocalAssetStore()
        self.logo_path = logo_path or settings.logo_filename
        self.pagesize = pagesize
        self.measure = measure

    def render(self, data: InvoiceData, issued_on: date | None = None) -> RenderedInvoice:
        """
        Render an invoice.

        Args:
            data: Invoice to render (never modified)
            issued_on: Date printed on the invoice. Today if None.

        Returns:
            RenderedInvoice with PDF bytes and any degradation warnings

        Raises:
            RenderError: If the PDF stream cannot be produced
        """
        warnings: list[str] = []
        buffer = io.BytesIO()

        try:
            pdf = canvas.Canvas(buffer, pagesize=self.pagesize)
            pdf.setTitle(f"Invoice {data.id}")
            pdf.setAuthor(ISSUER_NAME)
            self._draw(_Page(pdf, self.pagesize[1]), data, issued_on or date.today(), warnings)
            pdf.showPage()
            pdf.save()
        except Exception as e:
            logger.exception(f"PDF encoding failed for invoice {data.id}")
            raise RenderError(data.id, str(e)) from e

        return RenderedInvoice(pdf=buffer.getvalue(), filename=data.pdf_filename, warnings=warnings)

    async def render_async(self, data: InvoiceData, issued_on: date | None = None) -> RenderedInvoice:
        """Render in a worker thread."""
        return await asyncio.to_thread(self.render, data, issued_on)

    def _load_logo(self) -> tuple[ImageReader, float, float] | None:
        """Return the logo reader and its drawn size, or None if unavailable."""
        try:
            raw = self.assets.read(self.logo_path)
            with Image.open(io.BytesIO(raw)) as img:
                img.load()
                px_width, px_height = img.size
                reader = ImageReader(img.copy())
        except (OSError, ValueError) as e:
            logger.warning(f"Logo unavailable, rendering without it: {e}")
            return None

        if not px_width or not px_height:
            return None
        # Fit inside LOGO_WIDTH x LOGO_MAX_HEIGHT, keeping the aspect ratio
        scale = min(LOGO_WIDTH / px_width, LOGO_MAX_HEIGHT / px_height)
        return reader, px_width * scale, px_height * scale

    def _terms_lines(self, width: float) -> list[str | None]:
        """Wrapped terms text; None marks a blank-line gap."""
        lines: list[str | None] = []
        for paragraph in TERMS:
            if not paragraph:
                lines.append(None)
            else:
                lines.extend(wrap_text(paragraph, width, FONT, TERMS_SIZE, self.measure))
        return lines

    def _draw(self, page: _Page, data: InvoiceData, issued_on: date, warnings: list[str]) -> None:
        page_width = self.pagesize[0]
        content_width = page_width - 2 * MARGIN
        totals = data.totals

        # Logo
        logo = self._load_logo()
        if logo is None:
            warnings.append("logo_unavailable")
            logo_height = LOGO_WIDTH * LOGO_FALLBACK_RATIO
        else:
            reader, logo_width, logo_height = logo
            page.image(reader, page_width / 2 - logo_width / 2, HEADER_TOP, logo_width, logo_height)

        # Title
        after_logo = HEADER_TOP + logo_height + 8
        page.pdf.setFillColor(ACCENT_COLOR)
        page.text("INVOICE", MARGIN, after_logo, 22, FONT_BOLD, content_width, "center")
        page.pdf.setFillColor(TEXT_COLOR)

        # Issuer (left column)
        company_top = after_logo + 36
        page.text(ISSUER_NAME, MARGIN, company_top, 12, FONT_BOLD)
        for i, line in enumerate(ISSUER_ADDRESS):
            page.text(line, MARGIN, company_top + 18 + i * 14, 10)

        # Terms are measured up front; the body below Bill To must end above the footer
        terms_lines = self._terms_lines(content_width)
        terms_height = sum(TERMS_BLANK_GAP if line is None else TERMS_LEADING for line in terms_lines)
        footer_top = page.height - 80
        max_bill_top = footer_top - FOOTER_GAP - BODY_BELOW_BILL - terms_height

        # Invoice number and date (right column)
        col_x = page_width - MARGIN - ID_COLUMN_WIDTH
        id_top = company_top + ID_LABEL_SIZE + 6
        id_max_height = max_bill_top - BILL_BELOW_DATE - DATE_LABEL_TO_VALUE - 8 - id_top
        id_layout = layout_invoice_id(data.id, company_top, ID_COLUMN_WIDTH, self.measure, id_max_height)
        if id_layout.truncated:
            logger.warning(f"Invoice id of length {len(data.id)} truncated to fit the page")
            warnings.append("invoice_id_truncated")
        logger.debug(
            f"Invoice id layout: length={len(data.id)} size={id_layout.font_size} "
            f"lines={len(id_layout.lines)} date_top={id_layout.date_label_top:.1f}"
        )
        page.text("INVOICE NUMBER:", col_x, id_layout.label_top, ID_LABEL_SIZE, FONT_BOLD, ID_COLUMN_WIDTH, "right")
        for i, line in enumerate(id_layout.lines):
            top = id_layout.id_top + i * id_layout.line_height
            page.text(line, col_x, top, id_layout.font_size, FONT, ID_COLUMN_WIDTH, "right")
        page.text("Date:", col_x, id_layout.date_label_top, 10, FONT_BOLD, ID_COLUMN_WIDTH, "right")
        page.text(format_invoice_date(issued_on), col_x, id_layout.date_value_top, 10, FONT, ID_COLUMN_WIDTH, "right")

        # Bill to, pushed down when a long id grows the right column
        bill_top = max(company_top + 80, id_layout.date_value_top + BILL_BELOW_DATE)
        page.text("BILL TO", MARGIN, bill_top, 14, FONT_BOLD)
        page.text(f"Email: {data.email}", MARGIN, bill_top + 25, 12)

        # Line item table
        table_top = max(TABLE_MIN_TOP, bill_top + TABLE_BELOW_BILL)
        columns = ((MARGIN, "NO"), (90, "QUANTITY"), (160, "PRODUCT DESCRIPTION"),
                   (380, "UNIT PRICE"), (470, "TOTAL PRICE"))
        for x, heading in columns:
            page.text(heading, x, table_top, 12, FONT_BOLD)
        page.rule(MARGIN, page_width - MARGIN - 12, table_top + 20)

        row_top = table_top + ROW_BELOW_TABLE
        row = ("1", "1", PRODUCT_DESCRIPTION, totals.amount_display, totals.amount_display)
        for (x, _), value in zip(columns, row):
            page.text(value, x, row_top, 12)

        # License key
        page.text("License Key:", MARGIN, row_top + 40, 12, FONT_BOLD)
        page.text(data.license_key, 140, row_top + 40, 12)

        # Totals
        totals_top = row_top + TOTALS_BELOW_ROW
        page.text("AMOUNT:", 400, totals_top, 12)
        page.text(totals.amount_display, 470, totals_top, 12)
        page.text("GST (10%):", 400, totals_top + 20, 12)
        page.text(totals.gst_display, 470, totals_top + 20, 12)
        page.text("TOTAL:", 400, totals_top + 40, 12, FONT_BOLD)
        page.text(totals.total_display, 470, totals_top + 40, 12, FONT_BOLD)

        # Terms and conditions
        terms_top = totals_top + TERMS_BELOW_TOTALS
        page.text("TERMS & CONDITIONS:", MARGIN, terms_top, 14, FONT_BOLD)
        y = terms_top + TERMS_BODY_OFFSET
        for line in terms_lines:
            if line is None:
                y += TERMS_BLANK_GAP
                continue
            page.text(line, MARGIN, y, TERMS_SIZE)
            y += TERMS_LEADING

        # Footer
        page.pdf.setFillColor(SECONDARY_COLOR)
        page.text(FOOTER_MESSAGE, MARGIN, footer_top, 14, FONT_BOLD, content_width, "center")
        page.pdf.setFillColor(TEXT_COLOR)
        page.text(CONTACT_LINE, MARGIN, footer_top + 30, 10, FONT, content_width, "center")


def render_invoice_pdf(data: InvoiceData, renderer: InvoiceRenderer | None = None) -> bytes:
    """Render an invoice and return only the PDF bytes."""
    return (renderer or InvoiceRenderer()).render(data).pdf


def generate_invoice_pdf_file(
    invoice_no: str,
    out_path: str | Path,
    email: str | None = None,
    license_key: str = "NO-LICENSE-KEY",
    amount_cents: int = 0,
    renderer: InvoiceRenderer | None = None,
) -> Path:
    """
    Write an invoice PDF to disk using the older call shape.

    Scripts that pass an invoice number and output path keep working; the
    document comes from the same InvoiceRenderer as every other caller.
    """
    data = InvoiceData(
        id=invoice_no,
        email=email or "no-reply@nk2it.com.au",
        license_key=license_key,
        amount_cents=amount_cents,
    )
    path = Path(out_path)
    path.write_bytes(render_invoice_pdf(data, renderer))
    return path
