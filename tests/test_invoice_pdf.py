"""Tests for the invoice renderer - layout rules and PDF output."""

import re
from datetime import date

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from fakes import make_png
from licenseshop.domain.errors import RenderError
from licenseshop.domain.models import InvoiceData
from licenseshop.infrastructure.assets import MemoryAssetStore
from licenseshop.services.invoice_pdf import (
    CONTACT_LINE,
    ELLIPSIS,
    FONT,
    FOOTER_MESSAGE,
    ID_COLUMN_WIDTH,
    LOGO_MAX_HEIGHT,
    TERMS_BLANK_GAP,
    TERMS_LEADING,
    TERMS_SIZE,
    InvoiceRenderer,
    _Page,
    fallback_chars_per_line,
    format_invoice_date,
    generate_invoice_pdf_file,
    layout_invoice_id,
    render_invoice_pdf,
    wrap_text,
)

LOGO = "logo.png"


def _invoice(invoice_id: str = "INV-2026-0001") -> InvoiceData:
    return InvoiceData(id=invoice_id, email="buyer@example.com", license_key="SEP-ABCD-1234", amount_cents=19900)


def _renderer(assets: dict | None = None) -> InvoiceRenderer:
    return InvoiceRenderer(assets=MemoryAssetStore(assets), logo_path=LOGO)


def _assert_one_page_pdf(pdf: bytes) -> None:
    assert pdf.startswith(b"%PDF-")
    assert pdf.rstrip().endswith(b"%%EOF")
    assert len(re.findall(rb"/Type\s*/Page\b", pdf)) == 1


# --- invoice id layout ---

def test_short_id_uses_default_size_on_one_line():
    layout = layout_invoice_id("INV-1", top=100)
    assert layout.font_size == 10
    assert layout.lines == ["INV-1"]
    assert layout.id_top == 100 + 12 + 6


def test_medium_id_shrinks_until_it_fits_one_line():
    invoice_id = "A" * 40
    layout = layout_invoice_id(invoice_id, top=0)
    assert 6 < layout.font_size < 10
    assert layout.lines == [invoice_id]
    assert stringWidth(invoice_id, FONT, layout.font_size) <= ID_COLUMN_WIDTH


def test_long_id_wraps_at_minimum_size():
    invoice_id = "INV-" + "0123456789" * 20
    layout = layout_invoice_id(invoice_id, top=150)

    assert layout.font_size == 6
    assert len(layout.lines) >= 2
    assert "".join(layout.lines) == invoice_id
    for line in layout.lines:
        assert stringWidth(line, FONT, layout.font_size) <= ID_COLUMN_WIDTH


@pytest.mark.parametrize("length", [80, 200, 1000])
def test_date_label_never_overlaps_id_block(length):
    layout = layout_invoice_id("X" * length, top=133)
    assert layout.block_height == pytest.approx(len(layout.lines) * layout.line_height)
    assert layout.date_label_top >= layout.id_top + layout.block_height
    assert layout.date_value_top > layout.date_label_top


def test_fallback_chunks_by_character_count_without_measurement():
    invoice_id = "Z" * 100
    layout = layout_invoice_id(invoice_id, top=0, measure=None)

    per_line = fallback_chars_per_line(ID_COLUMN_WIDTH, 10)
    assert per_line == 36
    assert layout.font_size == 10
    assert [len(line) for line in layout.lines] == [36, 36, 28]


def test_fallback_has_minimum_ten_chars_per_line():
    assert fallback_chars_per_line(20, 10) == 10


def test_empty_id_has_zero_height_block():
    layout = layout_invoice_id("", top=0)
    assert layout.lines == []
    assert layout.block_height == 0


def test_wrap_text_prefers_word_boundaries():
    text = "Refund Policy: All sales are final and no refunds will be issued"
    lines = wrap_text(text, 150, FONT, 10)
    assert len(lines) > 1
    assert " ".join(lines) == text
    assert all(stringWidth(line, FONT, 10) <= 150 for line in lines)


def test_date_is_australian_format():
    assert format_invoice_date(date(2026, 10, 18)) == "18/10/2026"


# --- rendering ---

def test_render_with_logo_has_no_warnings():
    rendered = _renderer({LOGO: make_png()}).render(_invoice(), issued_on=date(2026, 10, 18))

    _assert_one_page_pdf(rendered.pdf)
    assert rendered.warnings == []
    assert not rendered.degraded
    assert rendered.filename == "NK2IT-Invoice-INV-2026-0001.pdf"


def test_missing_logo_still_produces_pdf():
    rendered = _renderer().render(_invoice())

    _assert_one_page_pdf(rendered.pdf)
    assert rendered.warnings == ["logo_unavailable"]


def test_unreadable_logo_degrades_gracefully():
    rendered = _renderer({LOGO: b"definitely not an image"}).render(_invoice())

    _assert_one_page_pdf(rendered.pdf)
    assert rendered.warnings == ["logo_unavailable"]


def test_very_long_id_renders():
    rendered = _renderer().render(_invoice("ORDER-" + "f" * 600))
    _assert_one_page_pdf(rendered.pdf)


def test_render_does_not_modify_input():
    data = _invoice()
    snapshot = InvoiceData(**vars(data))
    _renderer().render(data)
    assert data == snapshot


def test_render_without_measurement_uses_fallback():
    renderer = InvoiceRenderer(assets=MemoryAssetStore(), logo_path=LOGO, measure=None)
    _assert_one_page_pdf(renderer.render(_invoice("Q" * 300)).pdf)


def test_encoding_failure_raises_render_error(monkeypatch):
    def broken_save(self):
        raise OSError("disk full")

    monkeypatch.setattr(canvas.Canvas, "save", broken_save)

    with pytest.raises(RenderError) as exc_info:
        _renderer().render(_invoice())
    assert exc_info.value.invoice_id == "INV-2026-0001"
    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_render_async_matches_sync_contract():
    rendered = await _renderer().render_async(_invoice())
    _assert_one_page_pdf(rendered.pdf)


def test_render_invoice_pdf_returns_bytes():
    pdf = render_invoice_pdf(_invoice(), _renderer())
    _assert_one_page_pdf(pdf)


def test_legacy_file_adapter_writes_pdf(tmp_path):
    out = tmp_path / "legacy.pdf"
    path = generate_invoice_pdf_file("LEGACY-7", out, amount_cents=5000, renderer=_renderer())

    assert path == out
    _assert_one_page_pdf(out.read_bytes())


# --- page fit ---

@pytest.fixture
def drawn(monkeypatch):
    """Record (text, top, size) for every string the renderer draws."""
    calls = []
    original = _Page.text

    def recording_text(self, value, x, top, size, *args, **kwargs):
        calls.append((value, top, size))
        return original(self, value, x, top, size, *args, **kwargs)

    monkeypatch.setattr(_Page, "text", recording_text)
    return calls


def _top_of(calls, value):
    return next(top for text, top, _ in calls if text == value)


def _terms_calls(calls):
    texts = [text for text, _, _ in calls]
    start = texts.index("TERMS & CONDITIONS:") + 1
    end = texts.index(FOOTER_MESSAGE)
    return calls[start:end]


def test_layout_truncates_id_taller_than_max_height():
    layout = layout_invoice_id("X" * 2000, top=133, max_height=40)

    assert layout.truncated
    assert layout.block_height <= 40
    assert layout.lines[-1].endswith(ELLIPSIS)
    assert all(stringWidth(line, FONT, layout.font_size) <= ID_COLUMN_WIDTH for line in layout.lines)
    assert layout.date_label_top >= layout.id_top + layout.block_height


def test_layout_keeps_id_that_fits_max_height():
    invoice_id = "INV-" + "0123456789" * 20
    layout = layout_invoice_id(invoice_id, top=133, max_height=200)

    assert not layout.truncated
    assert "".join(layout.lines) == invoice_id


def test_layout_truncation_without_measurement():
    layout = layout_invoice_id("Z" * 1000, top=0, measure=None, max_height=30)

    assert layout.truncated
    assert len(layout.lines) == 2
    assert layout.lines[-1].endswith(ELLIPSIS)
    assert len(layout.lines[-1]) == fallback_chars_per_line(ID_COLUMN_WIDTH, 10)


@pytest.mark.parametrize("length", [1500, 6000])
@pytest.mark.parametrize("measure", [stringWidth, None])
def test_totals_and_terms_stay_above_footer_for_long_ids(drawn, length, measure):
    renderer = InvoiceRenderer(assets=MemoryAssetStore({LOGO: make_png()}), logo_path=LOGO, measure=measure)
    rendered = renderer.render(_invoice("X" * length))

    _assert_one_page_pdf(rendered.pdf)
    assert "invoice_id_truncated" in rendered.warnings

    footer_top = _top_of(drawn, FOOTER_MESSAGE)
    assert footer_top < letter[1]
    assert _top_of(drawn, "TOTAL:") + 12 < footer_top
    last_text, last_top, last_size = _terms_calls(drawn)[-1]
    assert last_size == TERMS_SIZE
    assert last_top + last_size < footer_top


def test_long_id_date_still_below_truncated_block(drawn):
    _renderer().render(_invoice("X" * 6000))

    id_lines = [(text, top) for text, top, _ in drawn if text.startswith("X")]
    assert id_lines[-1][0].endswith(ELLIPSIS)
    assert _top_of(drawn, "Date:") > id_lines[-1][1]


def test_short_id_is_not_truncated(drawn):
    rendered = _renderer({LOGO: make_png()}).render(_invoice())

    assert rendered.warnings == []
    assert _top_of(drawn, "INV-2026-0001") < _top_of(drawn, "Date:")
    assert _top_of(drawn, CONTACT_LINE) > _top_of(drawn, FOOTER_MESSAGE)


def test_blank_terms_lines_leave_a_ten_point_gap(drawn):
    _renderer().render(_invoice())

    tops = [top for _, top, _ in _terms_calls(drawn)]
    steps = {round(b - a, 3) for a, b in zip(tops, tops[1:])}
    assert steps == {TERMS_LEADING, TERMS_LEADING + TERMS_BLANK_GAP}


def test_tall_logo_is_scaled_to_max_height(drawn, monkeypatch):
    drawn_images = []
    monkeypatch.setattr(_Page, "image", lambda self, reader, x, top, w, h: drawn_images.append((w, h)))

    rendered = _renderer({LOGO: make_png(100, 400)}).render(_invoice("X" * 1500))

    assert drawn_images == [(pytest.approx(LOGO_MAX_HEIGHT / 4), pytest.approx(LOGO_MAX_HEIGHT))]
    assert _top_of(drawn, "TOTAL:") + 12 < _top_of(drawn, FOOTER_MESSAGE)
    assert "logo_unavailable" not in rendered.warnings
