"""In-memory block checkpoints deciding which transfers are new."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from walletwatch.models import TransferKind


class CursorPolicy(str, Enum):
    """How records outside the lookback window affect the checkpoint.

    ``BLOCK_GATED`` advances past a new-but-stale record without alerting on
    it. ``WINDOW_GATED`` leaves the checkpoint where it was.
    """

    BLOCK_GATED = "block_gated"
    WINDOW_GATED = "window_gated"


class CheckpointCursor:
    """Track the highest block already handled per wallet and transfer kind.

    Positions only ever move forward. Native and token transfers are fetched
    as separate lists, so each keeps its own position; otherwise a native
    transfer at block 105 would hide an unprocessed token transfer at 103.

    Args:
        lookback_seconds: Records older than ``now - lookback_seconds`` are
            never admitted. ``None`` or ``0`` disables the window.
        policy: See :class:`CursorPolicy`.
        commit_on_dispatch: When true, :meth:`admit` does not move the
            checkpoint for admitted records; the caller commits with
            :meth:`advance` once the alert is delivered.
    """

    def __init__(
        self,
        lookback_seconds: Optional[int] = None,
        policy: CursorPolicy = CursorPolicy.BLOCK_GATED,
        commit_on_dispatch: bool = True,
    ) -> None:
        self.lookback_seconds = lookback_seconds or None
        self.policy = CursorPolicy(policy)
        self.commit_on_dispatch = commit_on_dispatch
        self._positions: Dict[Tuple[str, TransferKind], int] = {}

    @staticmethod
    def _key(address: str, kind: TransferKind) -> Tuple[str, TransferKind]:
        return address.lower(), TransferKind(kind)

    def position(self, address: str, kind: TransferKind = TransferKind.NATIVE) -> int:
        """Return the last handled block for one transfer kind (0 if unseen)."""
        return self._positions.get(self._key(address, kind), 0)

    def last_seen_block(self, address: str) -> int:
        """Return the highest handled block for the wallet across both kinds."""
        return max(self.position(address, kind) for kind in TransferKind)

    def advance(
        self, address: str, block_number: int, kind: TransferKind = TransferKind.NATIVE
    ) -> int:
        """Move the checkpoint to ``block_number`` if it is ahead; return the result."""
        key = self._key(address, kind)
        current = self._positions.get(key, 0)
        updated = max(current, int(block_number))
        self._positions[key] = updated
        return updated

    def seed(self, address: str, block_number: int) -> None:
        """Start every kind for ``address`` at ``block_number`` (skip history)."""
        for kind in TransferKind:
            self.advance(address, block_number, kind)

    def in_window(self, timestamp: int, now: int) -> bool:
        if self.lookback_seconds is None:
            return True
        return int(timestamp) >= int(now) - self.lookback_seconds

    def admit(
        self,
        address: str,
        block_number: int,
        timestamp: int,
        now: int,
        kind: TransferKind = TransferKind.NATIVE,
        floor: Optional[int] = None,
    ) -> bool:
        """Decide whether a transfer is new and recent enough to alert on.

        ``floor`` lets a caller compare a whole batch against the position
        captured before the batch started, so several transfers sharing one
        block are all admitted even after the first of them is committed.
        Blocks at or below the reference position are always rejected.
        """
        reference = self.position(address, kind) if floor is None else floor
        if int(block_number) <= reference:
            return False

        if not self.in_window(timestamp, now):
            if self.policy is CursorPolicy.BLOCK_GATED:
                self.advance(address, block_number, kind)
            return False

        if not self.commit_on_dispatch:
            self.advance(address, block_number, kind)
        return True

    def snapshot(self) -> Dict[str, int]:
        """Return ``{address: last_seen_block}`` for status reporting."""
        addresses = {address for address, _ in self._positions}
        return {address: self.last_seen_block(address) for address in sorted(addresses)}


__all__ = ["CheckpointCursor", "CursorPolicy"]
