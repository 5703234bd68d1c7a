"""Telegram message handlers."""

import logging

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from src.allowlist import AllowList
from src.bot.commands import CommandRequest, IncomingMessage, build_reply

logger = logging.getLogger(__name__)


def _incoming(update: Update) -> IncomingMessage | None:
    """Extract sender, chat and text from an update, or None if there is no sender."""
    message = update.effective_message
    user = update.effective_user
    if message is None or user is None:
        return None
    return IncomingMessage(
        sender_id=user.id,
        chat_id=update.effective_chat.id,
        text=message.text or "",
    )


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle every text message: parse the command, authorize, reply once."""
    incoming = _incoming(update)
    if incoming is None:
        logger.warning("Message without a sender, ignoring")
        return

    allow_list: AllowList = context.bot_data["allow_list"]
    request = CommandRequest.from_message(incoming, context.bot.username)
    reply = build_reply(request, allow_list)

    try:
        await update.effective_message.reply_text(reply)
    except TelegramError:
        logger.exception(
            "Failed to send %s reply to chat %d", request.command.value, incoming.chat_id
        )


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log exceptions that escaped a handler so polling keeps going."""
    logger.error("Error while processing update %s", update, exc_info=context.error)
