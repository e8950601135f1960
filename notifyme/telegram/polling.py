"""
Long-poll loop — pulls updates while the bot is in polling mode.

The loop leaves on its own: after POLL_IDLE_LIMIT empty polls in a row it
asks the coordinator to go back to webhook delivery and exits. Any other
error is logged and the loop keeps polling.
"""
import asyncio
import logging
from typing import TYPE_CHECKING

from notifyme.exceptions import UpstreamError
from notifyme.telegram.client import BotApiClient
from notifyme.telegram.dispatcher import UpdateDispatcher

if TYPE_CHECKING:
    from notifyme.telegram.delivery import ModeCoordinator

logger = logging.getLogger(__name__)


class UpdateCursor:
    """Next update_id to request. Only moves forward; lives in memory only."""

    def __init__(self, value: int = 0):
        self.value = value

    def advance(self, next_offset: int | None) -> None:
        if next_offset is not None and next_offset > self.value:
            self.value = next_offset


class LongPoller:
    def __init__(
        self,
        client: BotApiClient,
        dispatcher: UpdateDispatcher,
        coordinator: "ModeCoordinator",
        cursor: UpdateCursor,
        *,
        poll_timeout: int = 1024,
        retry_delay: float = 1.0,
        idle_limit: int = 3,
    ):
        self._client = client
        self._dispatcher = dispatcher
        self._coordinator = coordinator
        self.cursor = cursor
        self._poll_timeout = poll_timeout
        self._retry_delay = retry_delay
        self._idle_limit = idle_limit

    async def run(self) -> None:
        logger.info(f"Long polling started at offset {self.cursor.value}")
        empty_polls = 0
        while True:
            try:
                updates = await self._client.get_updates(self.cursor.value, self._poll_timeout)
            except UpstreamError as e:
                logger.error(f"getUpdates failed, retrying in {self._retry_delay}s: {e}")
                await asyncio.sleep(self._retry_delay)
                continue
            except Exception:
                logger.exception(f"Unexpected getUpdates error, retrying in {self._retry_delay}s")
                await asyncio.sleep(self._retry_delay)
                continue

            if updates:
                empty_polls = 0
                try:
                    next_offset = await self._dispatcher.handle_batch(updates)
                except Exception:
                    logger.exception("Unexpected error dispatching a batch, skipping it")
                    next_offset = max(u.update_id for u in updates) + 1
                self.cursor.advance(next_offset)
                continue

            empty_polls += 1
            if empty_polls < self._idle_limit:
                continue

            try:
                await self._coordinator.switch_to_push()
            except Exception as e:
                # Still the only receiver of updates: keep polling
                logger.error(f"Switch to webhook failed, polling continues: {e}")
                empty_polls = 0
                await asyncio.sleep(self._retry_delay)
                continue
            break

        logger.info(f"Long polling stopped at offset {self.cursor.value}")
