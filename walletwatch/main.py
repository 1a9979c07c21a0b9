"""Application entrypoint."""

from __future__ import annotations

import asyncio
import signal
from urllib.parse import urlparse

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from telegram import BotCommand, BotCommandScopeDefault
from telegram.ext import ApplicationBuilder

from walletwatch.balances import BalanceService
from walletwatch.config import Settings, load_settings
from walletwatch.cursor import CheckpointCursor
from walletwatch.explorer import EtherscanClient
from walletwatch.handlers.commands import HandlerContext, setup as setup_handlers
from walletwatch.health import build_health_server
from walletwatch.jobs.monitor import MonitorContext, MonitorService
from walletwatch.models import Asset
from walletwatch.notifier import AlertDispatcher
from walletwatch.utils.logging import configure_logging, get_logger
from walletwatch.utils.wallets import resolve_wallets, to_tracked_tokens

logger = get_logger(__name__)

COMMANDS = [
    BotCommand("start", "Resume wallet monitoring"),
    BotCommand("stop", "Pause wallet monitoring"),
    BotCommand("status", "Show monitor state"),
    BotCommand("help", "Show what I can do"),
]


async def start_updates(application, settings: Settings) -> None:
    """Begin receiving commands over long polling or a registered webhook."""
    if not application.updater:
        return
    if settings.telegram_update_mode == "webhook":
        webhook_url = str(settings.webhook_url)
        url_path = urlparse(webhook_url).path.lstrip("/")
        await application.updater.start_webhook(
            listen=settings.webhook_listen,
            port=settings.webhook_port,
            url_path=url_path,
            webhook_url=webhook_url,
        )
    else:
        await application.updater.start_polling()
    logger.info("telegram_updates_started", mode=settings.telegram_update_mode)


async def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, log_file=settings.log_file)

    wallets = resolve_wallets(settings)
    native_asset = Asset(symbol=settings.native_symbol, decimals=18)

    explorer = EtherscanClient(
        api_key=settings.etherscan_api_key,
        base_url=str(settings.etherscan_api_url),
        chain_id=settings.chain_id,
        native_asset=native_asset,
        timeout=settings.fetch_timeout_seconds,
    )

    application = ApplicationBuilder().token(settings.telegram_bot_token).build()
    await application.initialize()
    await application.bot.set_my_commands(COMMANDS, scope=BotCommandScopeDefault())

    context = MonitorContext(
        wallets=wallets,
        cursor=CheckpointCursor(
            lookback_seconds=settings.lookback_seconds,
            policy=settings.cursor_policy,
            commit_on_dispatch=settings.advance_after_dispatch,
        ),
    )

    balances = None
    if settings.balance_summary_enabled:
        balances = BalanceService(
            explorer,
            native_asset=native_asset,
            tokens=to_tracked_tokens(settings.tracked_tokens),
        )

    scheduler = AsyncIOScheduler()
    monitor = MonitorService(
        scheduler=scheduler,
        context=context,
        source=explorer,
        dispatcher=AlertDispatcher(application.bot, settings.telegram_chat_id),
        interval_seconds=settings.check_interval_seconds,
        balances=balances,
        surface_passthrough=settings.surface_passthrough,
        explorer_tx_url=settings.explorer_tx_url,
    )
    if settings.skip_history:
        await monitor.seed_cursors(explorer)

    setup_handlers(
        application,
        HandlerContext(monitor=context, allowed_chat_id=settings.telegram_chat_id),
    )

    health_server = build_health_server(settings.health_host, settings.health_port)
    health_task = asyncio.create_task(health_server.serve())

    monitor.start()
    scheduler.start()

    try:
        await application.start()
        await start_updates(application, settings)

        logger.info(
            "bot_started",
            wallets=len(wallets),
            interval=settings.check_interval_seconds,
        )

        stop_event = asyncio.Event()

        def signal_handler(signum, frame):
            logger.info("shutdown_signal_received", signal=signum)
            stop_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        await stop_event.wait()

    finally:
        logger.info("bot_stopping")
        scheduler.shutdown(wait=False)
        if application.updater and application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
        await application.shutdown()
        health_server.should_exit = True
        await health_task
        await explorer.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
