"""Optional balance summaries appended to transfer alerts."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from walletwatch.models import Asset, TrackedToken
from walletwatch.utils.formatting import escape_markdown, format_amount
from walletwatch.utils.logging import get_logger

logger = get_logger(__name__)


class BalanceSource(Protocol):
    """Explorer operations needed to build a balance summary."""

    async def native_balance(self, address: str) -> int:
        ...

    async def token_balance(self, address: str, contract_address: str) -> int:
        ...


class BalanceService:
    """Look up native and tracked-token balances for a wallet.

    Lookups are best effort: a failed token lookup drops that line, and if
    nothing could be fetched the summary is omitted. Errors never propagate
    to the alert path.
    """

    HEADER = "💼 Balances:"

    def __init__(
        self,
        source: BalanceSource,
        native_asset: Asset,
        tokens: Sequence[TrackedToken] = (),
    ) -> None:
        self.source = source
        self.native_asset = native_asset
        self.tokens = list(tokens)

    async def get_summary(self, address: str) -> Optional[str]:
        """Return a MarkdownV2 balance block for ``address`` or ``None``."""
        lines: List[str] = []

        try:
            native = await self.source.native_balance(address)
            lines.append(
                self._line(self.native_asset.symbol, native, self.native_asset.decimals)
            )
        except Exception as exc:
            logger.warning(
                "balance_lookup_failed",
                address=address,
                asset=self.native_asset.symbol,
                error=str(exc),
            )

        for token in self.tokens:
            try:
                raw = await self.source.token_balance(address, token.contract_address)
            except Exception as exc:
                logger.warning(
                    "balance_lookup_failed",
                    address=address,
                    asset=token.symbol,
                    error=str(exc),
                )
                continue
            lines.append(self._line(token.symbol, raw, token.decimals))

        if not lines:
            return None
        return "\n".join([escape_markdown(self.HEADER), *lines])

    @staticmethod
    def _line(symbol: str, raw: int, decimals: int) -> str:
        return f"• {escape_markdown(format_amount(raw, decimals))} {escape_markdown(symbol)}"


__all__ = ["BalanceService", "BalanceSource"]
