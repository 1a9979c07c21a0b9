"""Transport-independent handling of monitor control commands."""

from __future__ import annotations

from typing import Callable, Dict

from walletwatch.jobs.monitor import MonitorContext
from walletwatch.utils.formatting import shorten_address
from walletwatch.utils.logging import get_logger

logger = get_logger(__name__)

START_REPLY = "✅ Monitoring resumed."
STOP_REPLY = "⏸️ Monitoring paused. Send /start to resume."
HELP_TEXT = (
    "I watch the configured wallets for native and token transfers "
    "and post an alert for each new one.\n\n"
    "📋 Commands:\n"
    "/start - resume monitoring\n"
    "/stop - pause monitoring\n"
    "/status - show monitor state\n"
    "/help - show this message"
)


class UnknownCommandError(KeyError):
    """Raised for a command name no handler is registered for."""


def _start(context: MonitorContext) -> str:
    context.active = True
    logger.info("monitoring_resumed")
    return START_REPLY


def _stop(context: MonitorContext) -> str:
    context.active = False
    logger.info("monitoring_paused")
    return STOP_REPLY


def _help(context: MonitorContext) -> str:
    return HELP_TEXT


def _status(context: MonitorContext) -> str:
    state = "active" if context.active else "paused"
    lines = [
        f"Monitoring: {state}",
        f"Wallets: {len(context.wallets)}",
        f"Cycles completed: {context.cycles}",
        f"Alerts sent: {context.alerts_sent}",
    ]
    if context.last_cycle_at:
        lines.append(
            f"Last cycle: {context.last_cycle_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
        )
    for wallet in context.wallets:
        block = context.cursor.last_seen_block(wallet.address)
        lines.append(
            f"• {wallet.label} ({shorten_address(wallet.address)}): block {block}"
        )
    return "\n".join(lines)


COMMAND_HANDLERS: Dict[str, Callable[[MonitorContext], str]] = {
    "start": _start,
    "stop": _stop,
    "help": _help,
    "status": _status,
}


def handle_command(context: MonitorContext, command: str) -> str:
    """Apply one control command to ``context`` and return the reply text.

    Accepts names with or without the leading slash and a ``@botname`` suffix.
    """
    name = command.strip().split()[0] if command and command.strip() else ""
    name = name.lstrip("/").split("@", 1)[0].lower()
    handler = COMMAND_HANDLERS.get(name)
    if handler is None:
        raise UnknownCommandError(command)
    return handler(context)


__all__ = [
    "COMMAND_HANDLERS",
    "HELP_TEXT",
    "START_REPLY",
    "STOP_REPLY",
    "UnknownCommandError",
    "handle_command",
]
