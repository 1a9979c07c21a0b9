"""Shared types for the transfer monitor."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

ADDRESS_PATTERN = re.compile(r"^0x[a-f0-9]{40}$")


class TransferKind(str, Enum):
    NATIVE = "native"
    TOKEN = "token"


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    NEITHER = "neither"


def normalize_address(value: str) -> str:
    """Lowercase a hex address and validate its shape.

    Raises:
        ValueError: If the value is not a 20-byte 0x-prefixed hex string.
    """
    if not isinstance(value, str):
        raise ValueError(f"Address must be a string, got {type(value).__name__}")
    normalized = value.strip().lower()
    if not ADDRESS_PATTERN.match(normalized):
        raise ValueError(f"Invalid address: {value!r}")
    return normalized


@dataclass(frozen=True)
class WatchedAddress:
    """A configured wallet and its display label."""

    label: str
    address: str


@dataclass(frozen=True)
class Asset:
    symbol: str
    decimals: int
    contract_address: str | None = None


@dataclass(frozen=True)
class TrackedToken:
    """A token contract included in balance summaries."""

    symbol: str
    contract_address: str
    decimals: int


@dataclass(frozen=True)
class TransferRecord:
    """A single transfer as reported by the block explorer.

    Attributes:
        block_number: Block the transfer was mined in.
        timestamp: Block timestamp, unix seconds.
        tx_hash: Transaction hash used for the explorer link.
        from_address: Sender, lowercase, or None when the explorer omitted it.
        to_address: Recipient, lowercase, or None (e.g. contract creation).
        raw_amount: Integer amount in the asset's smallest unit, as a string.
        asset: Symbol and decimals of the transferred asset.
        kind: Whether this came from the native or token transfer list.
    """

    block_number: int
    timestamp: int
    tx_hash: str
    from_address: str | None
    to_address: str | None
    raw_amount: str
    asset: Asset
    kind: TransferKind = TransferKind.NATIVE


@dataclass(frozen=True)
class Classification:
    direction: Direction
    is_self_transfer: bool = False

    @property
    def is_passthrough(self) -> bool:
        """Self-transfers and records matching neither side render as swaps."""
        return self.is_self_transfer or self.direction is Direction.NEITHER


__all__ = [
    "ADDRESS_PATTERN",
    "Asset",
    "Classification",
    "Direction",
    "TrackedToken",
    "TransferKind",
    "TransferRecord",
    "WatchedAddress",
    "normalize_address",
]
