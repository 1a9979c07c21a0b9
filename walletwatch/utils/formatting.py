"""Helpers for Telegram-safe Markdown formatting."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

AMOUNT_PRECISION = Decimal("0.000001")
NOT_AVAILABLE = "N/A"


class AmountFormatError(ValueError):
    """Raised when a raw transfer amount cannot be rendered."""


def escape_markdown(text: Any) -> str:
    """Escape Telegram MarkdownV2 control characters."""
    if text is None:
        text = ""
    if not isinstance(text, str):
        text = str(text)
    special_chars = r"_*[]()~`>#+-=|{}.!\\"
    return "".join(f"\\{char}" if char in special_chars else char for char in text)


def escape_markdown_url(url: str) -> str:
    """Escape Telegram MarkdownV2-sensitive characters inside link URLs."""
    if not url:
        return ""
    return url.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def unescape_markdown(text: str) -> str:
    """Strip MarkdownV2 escapes so a message can be resent as plain text."""
    if not text:
        return ""
    result = []
    chars = iter(text)
    for char in chars:
        if char == "\\":
            result.append(next(chars, ""))
        else:
            result.append(char)
    return "".join(result)


def format_amount(raw_amount: Any, decimals: int = 18) -> str:
    """Scale an integer token amount by ``10**decimals`` to six fractional digits.

    Rounds half away from zero. Uses ``Decimal`` arithmetic throughout, so
    large raw values with 18 decimals keep every digit up to the sixth place.

    Raises:
        AmountFormatError: If ``decimals`` is negative or ``raw_amount`` is not
            an integer value.
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise AmountFormatError(f"Invalid decimals: {decimals!r}")
    if isinstance(raw_amount, bool) or raw_amount is None:
        raise AmountFormatError(f"Invalid amount: {raw_amount!r}")
    try:
        value = Decimal(str(raw_amount).strip())
    except InvalidOperation as exc:
        raise AmountFormatError(f"Invalid amount: {raw_amount!r}") from exc
    if not value.is_finite() or value != value.to_integral_value():
        raise AmountFormatError(f"Invalid amount: {raw_amount!r}")
    value = Decimal(int(value))

    with localcontext() as ctx:
        # Wide enough that neither scaling nor quantizing ever rounds early.
        ctx.prec = len(value.as_tuple().digits) + decimals + 10
        scaled = value.scaleb(-decimals)
        return str(scaled.quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_UP))


def shorten_address(address: Any) -> str:
    """Return ``0x1234...abcd`` style display form, or ``N/A`` when missing."""
    if not address or not isinstance(address, str):
        return NOT_AVAILABLE
    return f"{address[:6]}...{address[-4:]}"


def format_timestamp(timestamp: int) -> str:
    """Render unix seconds as a UTC wall-clock string."""
    moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")
