"""
Money arithmetic for invoice totals.

All amounts are integers in minor currency units (cents). Display strings
are derived from cents with Decimal so that no float ever reaches the page.

Design Decisions:
- GST is a fixed 10% surcharge rounded half-up to the nearest cent
- Totals are assembled by InvoiceTotals.from_amount from these helpers
"""

from decimal import ROUND_HALF_UP, Decimal

GST_RATE = Decimal("0.10")
CURRENCY_SYMBOL = "$"


def compute_gst_cents(amount_cents: int) -> int:
    """
    Compute GST for a GST-exclusive amount.

    Args:
        amount_cents: Pre-tax amount in cents (>= 0)

    Returns:
        GST in cents, rounded half-up.

    Example:
        >>> compute_gst_cents(1005)
        101
    """
    if amount_cents < 0:
        raise ValueError(f"Amount must be non-negative, got {amount_cents}")

    gst = (Decimal(amount_cents) * GST_RATE).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(gst)


def format_cents(cents: int, symbol: str = CURRENCY_SYMBOL) -> str:
    """
    Format cents as a currency string with exactly two decimals.

    Example:
        >>> format_cents(123456)
        '$1234.56'
    """
    value = (Decimal(cents) / 100).quantize(Decimal("0.01"))
    return f"{symbol}{value}"
