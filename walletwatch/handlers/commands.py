"""Telegram command handlers."""

from __future__ import annotations

from dataclasses import dataclass

from telegram import Update
from telegram.ext import Application, CallbackContext, CommandHandler

from walletwatch.control import COMMAND_HANDLERS, handle_command
from walletwatch.jobs.monitor import MonitorContext
from walletwatch.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class HandlerContext:
    monitor: MonitorContext
    allowed_chat_id: int | str | None


def setup(application: Application, handler_context: HandlerContext) -> None:
    """Register handlers on the Telegram application."""
    application.bot_data["ctx"] = handler_context

    for name in COMMAND_HANDLERS:
        application.add_handler(CommandHandler(name, control_command))


def get_ctx(context: CallbackContext) -> HandlerContext:
    return context.application.bot_data["ctx"]


def chat_matches(chat, allowed: int | str) -> bool:
    """Match a chat against a numeric id or an ``@channelname``."""
    if chat is None:
        return False
    if isinstance(allowed, str):
        username = getattr(chat, "username", None)
        return bool(username) and f"@{username}".lower() == allowed.lower()
    return chat.id == allowed


async def ensure_user(update: Update, context: CallbackContext) -> bool:
    """Ensure the command comes from the configured chat."""
    ctx = get_ctx(context)
    if ctx.allowed_chat_id is None:
        return True
    chat = update.effective_chat
    if chat_matches(chat, ctx.allowed_chat_id):
        return True
    logger.warning(
        "command_rejected_chat",
        chat_id=chat.id if chat is not None else None,
    )
    if update.message:
        await update.message.reply_text(
            "This bot is restricted to the configured chat.", parse_mode=None
        )
    return False


async def control_command(update: Update, context: CallbackContext) -> None:
    """Route /start, /stop, /help and /status to the shared monitor context."""
    if not update.message or not update.message.text:
        return
    if not await ensure_user(update, context):
        return

    ctx = get_ctx(context)
    reply = handle_command(ctx.monitor, update.message.text)
    await update.message.reply_text(reply, parse_mode=None)


__all__ = ["HandlerContext", "chat_matches", "control_command", "ensure_user", "setup"]
