"""Deliver rendered alerts to the configured Telegram chat."""

from __future__ import annotations

from telegram.error import BadRequest, TelegramError

from walletwatch.utils.formatting import unescape_markdown
from walletwatch.utils.logging import get_logger

logger = get_logger(__name__)


class AlertDispatcher:
    """Send MarkdownV2 messages, retrying once as plain text if Telegram rejects the markup."""

    def __init__(self, bot, chat_id: int | str) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def send(self, text: str) -> bool:
        """Return ``True`` once Telegram has accepted the message."""
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode="MarkdownV2",
                disable_web_page_preview=True,
            )
            return True
        except BadRequest as exc:
            logger.warning("telegram_markdown_failed", error=str(exc))
        except TelegramError as exc:
            logger.error("alert_dispatch_failed", chat_id=self.chat_id, error=str(exc))
            return False

        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=unescape_markdown(text),
                disable_web_page_preview=True,
            )
        except TelegramError as exc:
            logger.error("alert_dispatch_failed", chat_id=self.chat_id, error=str(exc))
            return False
        return True


__all__ = ["AlertDispatcher"]
