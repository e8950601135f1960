"""
Update dispatcher — shared by the webhook endpoint and the long-poll loop.

Pipeline for every update:
1. Skip updates without a message or without string text
2. Parse "/command tail" against the command table
3. Run the handler; failures are logged and never abort a batch
"""
import logging
from typing import Iterable

from telegram import Update

from notifyme.telegram.commands import CommandContext

logger = logging.getLogger(__name__)


class UpdateDispatcher:
    def __init__(self, context: CommandContext):
        self.context = context

    async def handle_update(self, update: Update) -> None:
        message = update.message
        if message is None or not isinstance(message.text, str):
            return
        chat_id = message.chat_id
        text = message.text

        parsed = self.context.table.parse(text)
        if parsed is None:
            logger.debug(f"Ignoring non-command text from chat {chat_id}")
            return
        command, tail = parsed

        try:
            await command.handler(self.context, chat_id, tail)
        except Exception as e:
            logger.exception(
                f"Error handling {command.name} for chat {chat_id}, text {text!r}: {e}"
            )

    async def handle_batch(self, updates: Iterable[Update]) -> int | None:
        """
        Handle updates in ascending update_id order.
        Returns max(update_id) + 1, or None for an empty batch.
        """
        next_offset = None
        for update in sorted(updates, key=lambda u: u.update_id):
            try:
                await self.handle_update(update)
            except Exception:
                logger.exception(f"Error dispatching update {update.update_id}, skipping it")
            next_offset = update.update_id + 1
        return next_offset
