"""Helpers for resolving the watched wallet and tracked token lists."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import TypeAdapter

from walletwatch.config import Settings, TokenEntry, WalletEntry
from walletwatch.models import TrackedToken, WatchedAddress

_WALLET_LIST = TypeAdapter(List[WalletEntry])


def load_wallet_file(path: Path) -> List[WalletEntry]:
    """Load ``[{"name": ..., "address": ...}]`` entries from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Wallet configuration not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    return _WALLET_LIST.validate_python(data)


def to_watched(entries: Iterable[WalletEntry]) -> List[WatchedAddress]:
    """Convert entries to watched addresses, keeping the first of any duplicates."""
    watched: List[WatchedAddress] = []
    seen = set()
    for entry in entries:
        if entry.address in seen:
            continue
        seen.add(entry.address)
        watched.append(WatchedAddress(label=entry.name, address=entry.address))
    return watched


def resolve_wallets(
    settings: Settings, path: Optional[Path] = None
) -> List[WatchedAddress]:
    """Return the configured wallets, preferring ``WATCHED_WALLETS`` over the file.

    Raises:
        RuntimeError: When no wallets are configured anywhere.
    """
    entries: List[WalletEntry] = list(settings.watched_wallets)
    wallet_path = path or settings.wallets_file
    if not entries and wallet_path is not None and wallet_path.exists():
        entries = load_wallet_file(wallet_path)

    wallets = to_watched(entries)
    if not wallets:
        raise RuntimeError(
            "Invalid configuration: no wallets to watch "
            "(set WATCHED_WALLETS or provide WALLETS_FILE)"
        )
    return wallets


def to_tracked_tokens(entries: Iterable[TokenEntry]) -> List[TrackedToken]:
    return [
        TrackedToken(
            symbol=entry.symbol,
            contract_address=entry.contract_address,
            decimals=entry.decimals,
        )
        for entry in entries
    ]


__all__ = [
    "load_wallet_file",
    "resolve_wallets",
    "to_tracked_tokens",
    "to_watched",
]
