"""Tests for the Telegram message handler."""

from unittest.mock import AsyncMock, MagicMock

from telegram.error import NetworkError

from src.bot.commands import ACCESS_DENIED, ACCESS_GRANTED, HELP_TEXT, USAGE_HINT
from src.bot.handlers import handle_error, handle_message

# -- Helpers -----------------------------------------------------------------


def _make_update(text: str | None, user_id: int | None = 12345, chat_id: int = 777) -> MagicMock:
    """Build a minimal mock Update with a text message."""
    update = MagicMock()
    update.effective_message.text = text
    update.effective_message.reply_text = AsyncMock()
    update.effective_chat.id = chat_id
    if user_id is None:
        update.effective_user = None
    else:
        update.effective_user.id = user_id
    return update


def _make_context(allow_list) -> MagicMock:
    context = MagicMock()
    context.bot_data = {"allow_list": allow_list}
    context.bot.username = "zabbix_alert_bot"
    return context


def _reply_text(update: MagicMock) -> str:
    update.effective_message.reply_text.assert_awaited_once()
    return update.effective_message.reply_text.call_args.args[0]


# -- Tests -------------------------------------------------------------------


async def test_start_allowed(allow_list) -> None:
    update = _make_update("/start", user_id=12345)
    await handle_message(update, _make_context(allow_list))
    assert _reply_text(update) == ACCESS_GRANTED


async def test_start_denied(allow_list) -> None:
    update = _make_update("/start", user_id=999)
    await handle_message(update, _make_context(allow_list))
    assert _reply_text(update) == ACCESS_DENIED


async def test_id_for_unlisted_user(allow_list) -> None:
    update = _make_update("/id", user_id=999)
    await handle_message(update, _make_context(allow_list))
    assert "999" in _reply_text(update)


async def test_id_for_listed_user(allow_list) -> None:
    update = _make_update("/id", user_id=67890)
    await handle_message(update, _make_context(allow_list))
    assert "67890" in _reply_text(update)


async def test_help(allow_list) -> None:
    update = _make_update("/help", user_id=999)
    await handle_message(update, _make_context(allow_list))
    assert _reply_text(update) == HELP_TEXT


async def test_plain_text_gets_hint(allow_list) -> None:
    update = _make_update("hello there", user_id=12345)
    await handle_message(update, _make_context(allow_list))
    assert _reply_text(update) == USAGE_HINT


async def test_no_sender_is_ignored(allow_list) -> None:
    update = _make_update("/start", user_id=None)
    await handle_message(update, _make_context(allow_list))
    update.effective_message.reply_text.assert_not_awaited()


async def test_no_message_is_ignored(allow_list) -> None:
    update = MagicMock()
    update.effective_message = None
    await handle_message(update, _make_context(allow_list))


async def test_send_failure_is_swallowed(allow_list) -> None:
    """A failed reply is logged and does not stop the next message."""
    failing = _make_update("/start", user_id=12345)
    failing.effective_message.reply_text.side_effect = NetworkError("boom")
    context = _make_context(allow_list)

    await handle_message(failing, context)

    following = _make_update("/id", user_id=999)
    await handle_message(following, context)
    assert "999" in _reply_text(following)


async def test_error_handler_does_not_raise() -> None:
    context = MagicMock()
    context.error = RuntimeError("boom")
    await handle_error(MagicMock(), context)


async def test_command_for_this_bot_in_group(allow_list) -> None:
    update = _make_update("/start@Zabbix_Alert_Bot", user_id=12345)
    await handle_message(update, _make_context(allow_list))
    assert _reply_text(update) == ACCESS_GRANTED


async def test_command_for_other_bot_is_not_answered_as_command(allow_list) -> None:
    update = _make_update("/id@other_bot", user_id=999)
    await handle_message(update, _make_context(allow_list))
    assert _reply_text(update) == USAGE_HINT
