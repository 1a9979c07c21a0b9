"""Scheduler for wallet transfer polling."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from walletwatch.alerts import DEFAULT_EXPLORER_TX_URL, render_alert
from walletwatch.balances import BalanceService
from walletwatch.classifier import classify, is_alertable
from walletwatch.cursor import CheckpointCursor
from walletwatch.models import TransferKind, TransferRecord, WatchedAddress
from walletwatch.utils.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


class TransferSource(Protocol):
    """Explorer operations the monitor polls every cycle."""

    async def list_native_transfers(
        self, address: str, start_block: int = 0
    ) -> List[TransferRecord]:
        ...

    async def list_token_transfers(
        self, address: str, start_block: int = 0
    ) -> List[TransferRecord]:
        ...


class Dispatcher(Protocol):
    async def send(self, text: str) -> bool:
        ...


@dataclass
class MonitorContext:
    """Mutable monitor state shared by the cycle runner and the command handlers.

    Attributes:
        wallets: Watched wallets, polled in this order.
        cursor: Block checkpoints per wallet.
        active: When false, cycles return before fetching anything.
        cycles: Number of cycles that ran to completion.
        alerts_sent: Total alerts delivered since start.
        last_cycle_at: Completion time of the most recent cycle.
    """

    wallets: List[WatchedAddress]
    cursor: CheckpointCursor = field(default_factory=CheckpointCursor)
    active: bool = True
    cycles: int = 0
    alerts_sent: int = 0
    last_cycle_at: Optional[datetime] = None


class MonitorService:
    """Poll the explorer for each watched wallet and push new transfers to Telegram."""

    JOB_ID = "monitor_cycle"

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        context: MonitorContext,
        source: TransferSource,
        dispatcher: Dispatcher,
        interval_seconds: int = 60,
        balances: Optional[BalanceService] = None,
        surface_passthrough: bool = True,
        explorer_tx_url: str = DEFAULT_EXPLORER_TX_URL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.scheduler = scheduler
        self.context = context
        self.source = source
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self.balances = balances
        self.surface_passthrough = surface_passthrough
        self.explorer_tx_url = explorer_tx_url
        self.clock = clock
        self._lock = asyncio.Lock()
        # Head lookup still owed for skip-history; no stream is fetched until it succeeds.
        self._seed_source = None

    def start(self, run_immediately: bool = True) -> None:
        """Register the polling job with the scheduler."""
        options = {}
        if run_immediately:
            # An explicit None would add the job paused, so only pass a real time.
            options["next_run_time"] = datetime.now(timezone.utc)
        self.scheduler.add_job(
            self.run_cycle,
            "interval",
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            **options,
        )
        logger.info(
            "monitor_job_registered",
            interval=self.interval_seconds,
            wallets=len(self.context.wallets),
        )

    async def seed_cursors(self, head_source) -> Optional[int]:
        """Start every wallet at the current head block so history is not replayed.

        A failed lookup is retried at the start of every cycle, and cycles
        fetch nothing until it succeeds.
        """
        try:
            head = await head_source.latest_block()
        except Exception as exc:
            self._seed_source = head_source
            logger.warning("head_block_lookup_failed", error=str(exc))
            return None
        self._seed_source = None
        for wallet in self.context.wallets:
            self.context.cursor.seed(wallet.address, head)
        logger.info("cursors_seeded", block=head, wallets=len(self.context.wallets))
        return head

    async def run_cycle(self) -> int:
        """Run one polling pass over every wallet; return the number of alerts sent."""
        if not self.context.active:
            logger.debug("monitor_paused")
            return 0
        if self._lock.locked():
            logger.warning("monitor_cycle_overlap_skipped")
            return 0

        async with self._lock:
            bind_context(cycle=self.context.cycles + 1)
            try:
                if self._seed_source is not None:
                    if await self.seed_cursors(self._seed_source) is None:
                        logger.warning("monitor_cycle_deferred", reason="cursor_seed_pending")
                        return 0
                now = int(self.clock())
                sent = 0
                for wallet in self.context.wallets:
                    for kind in TransferKind:
                        try:
                            sent += await self._process_stream(wallet, kind, now)
                        except (
                            Exception
                        ) as exc:  # pragma: no cover - background errors are logged
                            logger.error(
                                "monitor_stream_error",
                                address=wallet.address,
                                kind=kind.value,
                                error=str(exc),
                            )

                self.context.cycles += 1
                self.context.alerts_sent += sent
                self.context.last_cycle_at = datetime.now(timezone.utc)
                logger.info("monitor_cycle_complete", alerts=sent)
                return sent
            finally:
                clear_context()

    async def _fetch(
        self, wallet: WatchedAddress, kind: TransferKind, start_block: int
    ) -> List[TransferRecord]:
        if kind is TransferKind.TOKEN:
            return await self.source.list_token_transfers(wallet.address, start_block)
        return await self.source.list_native_transfers(wallet.address, start_block)

    async def _process_stream(
        self, wallet: WatchedAddress, kind: TransferKind, now: int
    ) -> int:
        cursor = self.context.cursor
        floor = cursor.position(wallet.address, kind)
        start_block = floor + 1 if floor else 0

        logger.debug(
            "monitor_fetching",
            wallet=wallet.label,
            address=wallet.address,
            kind=kind.value,
            start_block=start_block,
        )
        try:
            records = await self._fetch(wallet, kind, start_block)
        except Exception as exc:
            logger.warning(
                "explorer_fetch_failed",
                address=wallet.address,
                kind=kind.value,
                error=str(exc),
            )
            return 0

        sent = 0
        # Block whose records have all been handled but which is not yet committed.
        pending: Optional[int] = None
        for record in sorted(records, key=lambda item: item.block_number):
            if pending is not None and record.block_number > pending:
                cursor.advance(wallet.address, pending, kind)
                pending = None

            classification = classify(record, wallet)
            if classification is None:
                logger.warning(
                    "transfer_record_malformed",
                    address=wallet.address,
                    kind=kind.value,
                    tx_hash=record.tx_hash,
                )
                continue

            if not cursor.admit(
                wallet.address,
                record.block_number,
                record.timestamp,
                now,
                kind=kind,
                floor=floor,
            ):
                continue

            if not is_alertable(classification, self.surface_passthrough):
                pending = record.block_number
                continue

            summary = await self._balance_summary(wallet)
            try:
                message = render_alert(
                    classification,
                    record,
                    wallet.label,
                    balance_summary=summary,
                    explorer_tx_url=self.explorer_tx_url,
                )
            except (ValueError, OverflowError, OSError) as exc:
                logger.warning(
                    "transfer_record_malformed",
                    address=wallet.address,
                    kind=kind.value,
                    tx_hash=record.tx_hash,
                    error=str(exc),
                )
                pending = record.block_number
                continue

            if await self.dispatcher.send(message):
                sent += 1
                pending = record.block_number
                logger.info(
                    "transfer_alert_sent",
                    wallet=wallet.label,
                    kind=kind.value,
                    direction=classification.direction.value,
                    block=record.block_number,
                    tx_hash=record.tx_hash,
                )
                continue

            if cursor.commit_on_dispatch:
                # Leave the checkpoint before this block so it is retried next tick.
                logger.warning(
                    "monitor_stream_halted",
                    address=wallet.address,
                    kind=kind.value,
                    block=record.block_number,
                )
                return sent

        if pending is not None:
            cursor.advance(wallet.address, pending, kind)
        return sent

    async def _balance_summary(self, wallet: WatchedAddress) -> Optional[str]:
        if self.balances is None:
            return None
        try:
            return await self.balances.get_summary(wallet.address)
        except Exception as exc:  # pragma: no cover - BalanceService already guards
            logger.warning(
                "balance_summary_failed", address=wallet.address, error=str(exc)
            )
            return None


__all__ = ["Dispatcher", "MonitorContext", "MonitorService", "TransferSource"]
