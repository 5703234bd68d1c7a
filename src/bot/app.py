"""Telegram application factory."""

from __future__ import annotations

import logging

from telegram import BotCommand
from telegram.error import TelegramError
from telegram.ext import Application, MessageHandler, filters

from src.allowlist import AllowList
from src.bot.commands import COMMAND_DESCRIPTIONS
from src.bot.handlers import handle_error, handle_message
from src.config import Settings

logger = logging.getLogger(__name__)

BOT_COMMANDS = [BotCommand(cmd.value, desc) for cmd, desc in COMMAND_DESCRIPTIONS.items()]


async def _post_init(app: Application) -> None:
    """Called after the Application is initialized (event loop running)."""
    me = await app.bot.get_me()
    logger.info("Bot started: @%s (id=%d)", me.username, me.id)

    try:
        await app.bot.set_my_commands(BOT_COMMANDS)
    except TelegramError:
        logger.warning("Could not publish the command menu", exc_info=True)


def create_app(settings: Settings, allow_list: AllowList) -> Application:
    """Build and configure the Telegram application."""
    app = Application.builder().token(settings.telegram_bot_token).concurrent_updates(True).build()

    app.bot_data["allow_list"] = allow_list

    # New messages only, edits must not trigger a second reply. Commands are
    # text too; parsing happens in handle_message.
    app.add_handler(MessageHandler(filters.UpdateType.MESSAGE & filters.TEXT, handle_message))
    app.add_error_handler(handle_error)

    app.post_init = _post_init

    return app
