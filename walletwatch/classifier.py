"""Direction labelling for explorer transfer records."""

from __future__ import annotations

from typing import Any, Optional

from walletwatch.models import Classification, Direction, TransferRecord, WatchedAddress


def _normalize(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    return value.strip().lower() or None


def classify(
    record: TransferRecord, watched: WatchedAddress | str
) -> Optional[Classification]:
    """Label a transfer relative to a watched wallet.

    Returns ``None`` when the record lacks a sender or recipient; such records
    are skipped entirely. A transfer from the wallet to itself is reported as
    outbound with ``is_self_transfer`` set.
    """
    address = _normalize(watched.address if isinstance(watched, WatchedAddress) else watched)
    sender = _normalize(record.from_address)
    recipient = _normalize(record.to_address)
    if not sender or not recipient or not address:
        return None

    if sender == address:
        direction = Direction.OUTBOUND
    elif recipient == address:
        direction = Direction.INBOUND
    else:
        direction = Direction.NEITHER

    return Classification(direction=direction, is_self_transfer=sender == recipient)


def is_alertable(classification: Classification, surface_passthrough: bool = True) -> bool:
    """Return whether a classified record should produce an alert.

    Pass-through records (the wallet is neither sender nor recipient) only
    alert when ``surface_passthrough`` is enabled.
    """
    if classification.direction is Direction.NEITHER:
        return surface_passthrough
    return True


__all__ = ["classify", "is_alertable"]
