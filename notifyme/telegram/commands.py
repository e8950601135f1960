"""
Bot commands — one declarative table of (name, description, handler).

The lookup map used by the dispatcher and the list registered with
setMyCommands are both derived from COMMANDS.
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Awaitable, Callable, Mapping

from notifyme.services.random_source import RandomSource
from notifyme.services.sessions import SessionStore
from notifyme.telegram.client import BotApiClient
from notifyme.utils.tokens import encode_token

logger = logging.getLogger(__name__)

COMMAND_MARKER = "/"
USAGE_HINT = "use it to send requests using notify-me-api npm package"


@dataclass(frozen=True)
class CommandContext:
    store: SessionStore
    client: BotApiClient
    random_source: RandomSource
    table: "CommandTable"


CommandHandler = Callable[[CommandContext, int, str], Awaitable[None]]


@dataclass(frozen=True)
class BotCommand:
    name: str
    description: str
    handler: CommandHandler


# ── Handlers ─────────────────────────────────────────────────────────────────

async def _issue_token(ctx: CommandContext, chat_id: int) -> str:
    token = ctx.random_source.session_token()
    await ctx.store.create_session(token, chat_id)
    return encode_token(token)


async def handle_start(ctx: CommandContext, chat_id: int, tail: str) -> None:
    """Connect the chat. Idempotent: an existing token is shown, not replaced."""
    logger.info(f"/start for chat {chat_id}")
    existing = await ctx.store.find_token_by_chat(chat_id)
    if existing is None:
        token_str = await _issue_token(ctx, chat_id)
        text = f"generated token\n\n{token_str}\n\n{USAGE_HINT}"
    else:
        text = f"token already exist for your chat\n\n{encode_token(existing)}\n\n{USAGE_HINT}"
    await ctx.client.send_message(chat_id, text)


async def handle_stop(ctx: CommandContext, chat_id: int, tail: str) -> None:
    logger.info(f"/stop for chat {chat_id}")
    await ctx.store.delete_session(chat_id)
    await ctx.client.send_message(
        chat_id,
        "Deleted token for this chat.\n\n"
        "You will not receive any messages from this bot until next /start.",
    )


async def handle_help(ctx: CommandContext, chat_id: int, tail: str) -> None:
    logger.info(f"/help for chat {chat_id}")
    await ctx.client.send_message(chat_id, help_text(ctx.table))


async def handle_show_token(ctx: CommandContext, chat_id: int, tail: str) -> None:
    logger.info(f"/show_token for chat {chat_id}")
    token = await ctx.store.find_token_by_chat(chat_id)
    if token is None:
        text = (
            "Token not found, this chat not connected to bot.\n\n"
            "run /start to connect and get token."
        )
    else:
        text = f"your token:\n\n{encode_token(token)}\n\n{USAGE_HINT}"
    await ctx.client.send_message(chat_id, text)


async def handle_update_token(ctx: CommandContext, chat_id: int, tail: str) -> None:
    """Always issue a fresh token; the previous one stops working."""
    logger.info(f"/update_token for chat {chat_id}")
    token_str = await _issue_token(ctx, chat_id)
    await ctx.client.send_message(chat_id, f"new token\n\n{token_str}\n\n{USAGE_HINT}")


START = BotCommand("/start", "Start chat (connect to bot)", handle_start)
STOP = BotCommand("/stop", "Stop chat (disconnect from bot)", handle_stop)
HELP = BotCommand("/help", "Show commands", handle_help)
SHOW_TOKEN = BotCommand("/show_token", "Show my current token", handle_show_token)
UPDATE_TOKEN = BotCommand("/update_token", "Update current token", handle_update_token)

COMMANDS: tuple[BotCommand, ...] = (START, STOP, HELP, SHOW_TOKEN, UPDATE_TOKEN)


# ── Lookup ───────────────────────────────────────────────────────────────────

class CommandTable:
    """Immutable name -> command map, built once at startup."""

    def __init__(self, commands: tuple[BotCommand, ...] = COMMANDS):
        by_name = {}
        for command in commands:
            if command.name in by_name:
                raise ValueError(f"Duplicate command {command.name}")
            by_name[command.name] = command
        self.commands = tuple(commands)
        self._by_name: Mapping[str, BotCommand] = MappingProxyType(by_name)

    def get(self, name: str) -> BotCommand | None:
        return self._by_name.get(name)

    def __iter__(self):
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    def parse(self, text: str) -> tuple[BotCommand, str] | None:
        """
        "/start foo" -> (START, "foo"); "/help" -> (HELP, "").
        Unknown commands and plain text return None.
        """
        text = text.strip()
        if not text.startswith(COMMAND_MARKER):
            return None
        parts = text.split(maxsplit=1)
        if not parts:
            return None
        command = self.get(parts[0])
        if command is None:
            return None
        tail = parts[1].strip() if len(parts) == 2 else ""
        return command, tail


def help_text(table: CommandTable) -> str:
    lines = "".join(f"{cmd.name} {cmd.description}\n" for cmd in table)
    return (
        "This bot allow to send messages from web to telegram chats.\n"
        "First connect to this bot (/start) and get token. "
        "Use it to send requests using notify-me-api npm package\n\n"
        f"Available commands:\n{lines}"
    )
