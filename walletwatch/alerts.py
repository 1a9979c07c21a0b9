"""Transfer alert formatter for consistent Telegram display."""

from __future__ import annotations

from typing import Optional

from walletwatch.models import Classification, Direction, TransferRecord
from walletwatch.utils.formatting import (
    AmountFormatError,
    escape_markdown,
    escape_markdown_url,
    format_amount,
    format_timestamp,
    shorten_address,
)

DEFAULT_EXPLORER_TX_URL = "https://etherscan.io/tx/"

INBOUND_LABEL = "Received/Deposit"
OUTBOUND_LABEL = "Sent/Withdraw"
PASSTHROUGH_LABEL = "Swap/Transfer"


def direction_label(classification: Classification) -> str:
    """Return the emoji-prefixed headline label for a classification."""
    if classification.is_passthrough:
        return f"🔄 {PASSTHROUGH_LABEL}"
    if classification.direction is Direction.OUTBOUND:
        return f"🔴 {OUTBOUND_LABEL}"
    return f"🟢 {INBOUND_LABEL}"


def tx_url(tx_hash: str, explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL) -> str:
    base = explorer_tx_url if explorer_tx_url.endswith("/") else f"{explorer_tx_url}/"
    return f"{base}{tx_hash}"


def render_amount(record: TransferRecord) -> str:
    """Format the record's amount, falling back to the raw integer string."""
    try:
        return format_amount(record.raw_amount, record.asset.decimals)
    except AmountFormatError:
        return f"{record.raw_amount} (raw)"


def render_alert(
    classification: Classification,
    record: TransferRecord,
    wallet_label: str,
    balance_summary: Optional[str] = None,
    explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL,
) -> str:
    """Render a transfer alert as Telegram MarkdownV2.

    Args:
        classification: Direction of the transfer relative to the wallet.
        record: The transfer being reported.
        wallet_label: Display name of the watched wallet.
        balance_summary: Optional pre-escaped MarkdownV2 block appended last.
        explorer_tx_url: Base URL the transaction hash is appended to.

    Returns:
        Formatted Telegram MarkdownV2 message.
    """
    symbol = record.asset.symbol
    headline = f"{direction_label(classification)} {symbol}"
    link = escape_markdown_url(tx_url(record.tx_hash, explorer_tx_url))

    lines = [
        f"*{escape_markdown(headline)}*",
        "",
        f"👤 Wallet: *{escape_markdown(wallet_label)}*",
        f"💰 Amount: *{escape_markdown(render_amount(record))} {escape_markdown(symbol)}*",
        f"📤 From: `{escape_markdown(shorten_address(record.from_address))}`",
        f"📥 To: `{escape_markdown(shorten_address(record.to_address))}`",
        f"🧾 [View TX]({link})",
        f"🕐 {escape_markdown(format_timestamp(record.timestamp))}",
    ]
    if balance_summary:
        lines.extend(["", balance_summary])
    return "\n".join(lines)


__all__ = [
    "INBOUND_LABEL",
    "OUTBOUND_LABEL",
    "PASSTHROUGH_LABEL",
    "direction_label",
    "render_alert",
    "tx_url",
]
