"""Etherscan-compatible explorer client for transfer lists and balances."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx

from walletwatch.models import Asset, TransferKind, TransferRecord
from walletwatch.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.etherscan.io/v2/api"
DEFAULT_NATIVE_ASSET = Asset(symbol="ETH", decimals=18)
UNKNOWN_SYMBOL = "Unknown"
DEFAULT_TOKEN_DECIMALS = 18
# Explorer endpoints need a numeric upper bound; this one is past any chain head.
LATEST_BLOCK = 9_999_999_999


class ExplorerError(RuntimeError):
    """Transport, HTTP or API-level failure talking to the explorer."""


def _lower(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    return value.strip().lower() or None


def parse_transfer(
    entry: Mapping[str, Any],
    kind: TransferKind,
    native_asset: Asset = DEFAULT_NATIVE_ASSET,
) -> Optional[TransferRecord]:
    """Convert one explorer result row into a :class:`TransferRecord`.

    Returns ``None`` for rows without a usable block number or timestamp.
    Missing ``from``/``to`` are kept as ``None`` for the classifier to reject.
    """
    if not isinstance(entry, Mapping):
        return None
    try:
        block_number = int(entry["blockNumber"])
        timestamp = int(entry["timeStamp"])
    except (KeyError, TypeError, ValueError):
        return None
    if block_number < 0:
        return None

    if kind is TransferKind.TOKEN:
        try:
            decimals = int(entry.get("tokenDecimal"))
        except (TypeError, ValueError):
            decimals = DEFAULT_TOKEN_DECIMALS
        asset = Asset(
            symbol=entry.get("tokenSymbol") or UNKNOWN_SYMBOL,
            decimals=max(decimals, 0),
            contract_address=_lower(entry.get("contractAddress")),
        )
    else:
        asset = native_asset

    return TransferRecord(
        block_number=block_number,
        timestamp=timestamp,
        tx_hash=str(entry.get("hash") or ""),
        from_address=_lower(entry.get("from")),
        to_address=_lower(entry.get("to")),
        raw_amount=str(entry.get("value") or "0"),
        asset=asset,
        kind=kind,
    )


class EtherscanClient:
    """Async client for the account and proxy modules of an Etherscan-style API."""

    NO_RECORDS_MESSAGES = {"No transactions found", "No records found"}

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_URL,
        chain_id: Optional[int] = 1,
        native_asset: Asset = DEFAULT_NATIVE_ASSET,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = str(base_url)
        self.chain_id = chain_id
        self.native_asset = native_asset
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def list_native_transfers(
        self, address: str, start_block: int = 0
    ) -> List[TransferRecord]:
        """Return native transfers touching ``address`` from ``start_block`` on, ascending."""
        rows = await self._account_list("txlist", address, start_block)
        records: List[TransferRecord] = []
        for row in rows:
            if isinstance(row, Mapping) and str(row.get("isError", "0")) == "1":
                logger.debug("explorer_failed_tx_ignored", tx_hash=row.get("hash"))
                continue
            record = parse_transfer(row, TransferKind.NATIVE, self.native_asset)
            if record is None:
                logger.warning("explorer_row_malformed", kind="native", row=row)
                continue
            records.append(record)
        return records

    async def list_token_transfers(
        self, address: str, start_block: int = 0
    ) -> List[TransferRecord]:
        """Return ERC-20 transfers touching ``address`` from ``start_block`` on, ascending."""
        rows = await self._account_list("tokentx", address, start_block)
        records: List[TransferRecord] = []
        for row in rows:
            record = parse_transfer(row, TransferKind.TOKEN, self.native_asset)
            if record is None:
                logger.warning("explorer_row_malformed", kind="token", row=row)
                continue
            records.append(record)
        return records

    async def native_balance(self, address: str) -> int:
        result = await self._account_call(
            {"action": "balance", "address": address, "tag": "latest"}
        )
        return self._parse_int(result, "balance")

    async def token_balance(self, address: str, contract_address: str) -> int:
        result = await self._account_call(
            {
                "action": "tokenbalance",
                "contractaddress": contract_address,
                "address": address,
                "tag": "latest",
            }
        )
        return self._parse_int(result, "tokenbalance")

    async def latest_block(self) -> int:
        """Return the current chain head via ``proxy.eth_blockNumber``."""
        payload = await self._request({"module": "proxy", "action": "eth_blockNumber"})
        if "error" in payload:
            raise ExplorerError(f"Explorer proxy error: {payload['error']}")
        result = payload.get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ExplorerError(f"Unexpected block number payload: {result!r}")
        try:
            return int(result, 16)
        except ValueError as exc:
            raise ExplorerError(f"Unexpected block number payload: {result!r}") from exc

    async def _account_list(
        self, action: str, address: str, start_block: int
    ) -> List[Any]:
        result = await self._account_call(
            {
                "action": action,
                "address": address,
                "startblock": max(int(start_block), 0),
                "endblock": LATEST_BLOCK,
                "sort": "asc",
            }
        )
        if not isinstance(result, list):
            raise ExplorerError(
                f"Unexpected {action} result type: {type(result).__name__}"
            )
        return result

    async def _account_call(self, params: Dict[str, Any]) -> Any:
        payload = await self._request({"module": "account", **params})
        status = str(payload.get("status", ""))
        message = str(payload.get("message") or "")
        result = payload.get("result")
        if status == "1":
            return result
        if status == "0" and message in self.NO_RECORDS_MESSAGES:
            return []
        raise ExplorerError(f"Explorer API error: {message or 'unknown'}: {result}")

    async def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query: Dict[str, Any] = dict(params)
        if self.chain_id is not None:
            query["chainid"] = self.chain_id
        query["apikey"] = self.api_key

        try:
            response = await self._client.get(self.base_url, params=query)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExplorerError("Explorer request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ExplorerError(
                f"Explorer returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExplorerError(f"Explorer request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExplorerError("Explorer returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise ExplorerError(
                f"Unexpected explorer payload type: {type(payload).__name__}"
            )
        return payload

    @staticmethod
    def _parse_int(result: Any, action: str) -> int:
        try:
            return int(str(result))
        except (TypeError, ValueError) as exc:
            raise ExplorerError(f"Unexpected {action} result: {result!r}") from exc


__all__ = [
    "EtherscanClient",
    "ExplorerError",
    "LATEST_BLOCK",
    "parse_transfer",
]
