"""Command parsing and reply selection.

Everything here is pure apart from reading the allow-list snapshot, so the
Telegram handler only has to move text in and out.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from src.allowlist import AllowList

logger = logging.getLogger(__name__)

ACCESS_GRANTED = "Login successful"
ACCESS_DENIED = "Access denied"
USAGE_HINT = "Use /start to check access or /id to get your Telegram ID. /help lists all commands."


class Command(enum.Enum):
    START = "start"
    HELP = "help"
    ID = "id"
    UNKNOWN = "unknown"


# Order here is the order shown in /help and the Telegram command menu.
COMMAND_DESCRIPTIONS: dict[Command, str] = {
    Command.HELP: "Show this message",
    Command.START: "Check access",
    Command.ID: "Show your Telegram ID",
}

HELP_TEXT = "Available commands:\n" + "\n".join(
    f"/{cmd.value} - {desc}" for cmd, desc in COMMAND_DESCRIPTIONS.items()
)

_BY_TOKEN = {f"/{cmd.value}": cmd for cmd in COMMAND_DESCRIPTIONS}


def parse_command(text: str | None, bot_username: str | None = None) -> Command:
    """Map message text to a Command.

    Only the first whitespace-separated token counts, matched
    case-sensitively. A ``@botname`` suffix (group chats) must name this
    bot when *bot_username* is known; commands for other bots are UNKNOWN.
    """
    if not text:
        return Command.UNKNOWN
    parts = text.split(maxsplit=1)
    if not parts:
        return Command.UNKNOWN
    token, _, addressee = parts[0].partition("@")
    if addressee and bot_username and addressee.lower() != bot_username.lower():
        return Command.UNKNOWN
    return _BY_TOKEN.get(token, Command.UNKNOWN)


@dataclass(frozen=True)
class IncomingMessage:
    sender_id: int
    chat_id: int
    text: str


@dataclass(frozen=True)
class CommandRequest:
    command: Command
    sender_id: int

    @classmethod
    def from_message(
        cls, message: IncomingMessage, bot_username: str | None = None
    ) -> CommandRequest:
        command = parse_command(message.text, bot_username)
        return cls(command=command, sender_id=message.sender_id)


def build_reply(request: CommandRequest, allow_list: AllowList) -> str:
    """Pick the reply text for a parsed command."""
    if request.command is Command.START:
        if allow_list.contains(request.sender_id):
            logger.info("Authorized user %d", request.sender_id)
            return ACCESS_GRANTED
        logger.warning("Unauthorized user %d", request.sender_id)
        return ACCESS_DENIED

    if request.command is Command.HELP:
        return HELP_TEXT

    if request.command is Command.ID:
        return f"Your Telegram ID: {request.sender_id}"

    return USAGE_HINT
