"""
Delivery mode coordinator — decides how Telegram updates reach us.

Exactly one mode holds at a time:
- PUSH: Telegram calls POST /webhook (setWebhook registered)
- PULL: a LongPoller task calls getUpdates (webhook deleted)

Transitions hold one lock across the mode check, the Bot API call and the
state write, so duplicate requests collapse into a single API call and
opposite requests run one after the other.
"""
import asyncio
import enum
import logging

from notifyme.telegram.client import BotApiClient
from notifyme.telegram.dispatcher import UpdateDispatcher
from notifyme.telegram.polling import LongPoller, UpdateCursor

logger = logging.getLogger(__name__)


class DeliveryMode(str, enum.Enum):
    UNSPECIFIED = "unspecified"
    PULL = "pull"
    PUSH = "push"


class ModeCoordinator:
    def __init__(
        self,
        client: BotApiClient,
        dispatcher: UpdateDispatcher,
        webhook_url: str,
        webhook_secret: str,
        *,
        poll_timeout: int = 1024,
        retry_delay: float = 1.0,
        idle_limit: int = 3,
    ):
        self._client = client
        self._dispatcher = dispatcher
        self._webhook_url = webhook_url
        self.webhook_secret = webhook_secret
        self._poll_timeout = poll_timeout
        self._retry_delay = retry_delay
        self._idle_limit = idle_limit

        self._lock = asyncio.Lock()
        self._mode = DeliveryMode.UNSPECIFIED
        self.cursor = UpdateCursor()
        self._poll_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    @property
    def mode(self) -> DeliveryMode:
        return self._mode

    @property
    def poll_task(self) -> asyncio.Task | None:
        return self._poll_task

    async def switch_to_push(self) -> None:
        """
        Register the webhook. Does not stop a running poller: the poller
        only calls this on its way out.
        """
        async with self._lock:
            if self._mode is DeliveryMode.PUSH:
                return
            await self._client.set_webhook(self._webhook_url, self.webhook_secret)
            self._mode = DeliveryMode.PUSH
            logger.info("Delivery mode: webhook")

    async def switch_to_pull(self) -> None:
        """Delete the webhook and start exactly one long-poll task."""
        async with self._lock:
            if self._mode is DeliveryMode.PULL:
                return
            await self._client.delete_webhook()
            self._mode = DeliveryMode.PULL
            self._start_poller()
            logger.info("Delivery mode: polling")

    def request_switch_to_pull(self) -> asyncio.Task:
        """Fire-and-forget switch_to_pull; failures are only logged."""
        task = asyncio.create_task(self.switch_to_pull(), name="switch-to-pull")
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _start_poller(self) -> None:
        previous = self._poll_task
        if previous is not None and not previous.done():
            # Past its switch_to_push call; only one poller may run
            previous.cancel()
        poller = LongPoller(
            self._client,
            self._dispatcher,
            self,
            self.cursor,
            poll_timeout=self._poll_timeout,
            retry_delay=self._retry_delay,
            idle_limit=self._idle_limit,
        )
        task = asyncio.create_task(poller.run(), name="long-poll")
        task.add_done_callback(self._on_poll_done)
        self._poll_task = task

    def _on_poll_done(self, task: asyncio.Task) -> None:
        current = self._poll_task is task
        if current:
            self._poll_task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Long-poll task crashed", exc_info=exc)
            if current and self._mode is DeliveryMode.PULL:
                # No poller and no webhook: let the next switch_to_pull start over
                self._mode = DeliveryMode.UNSPECIFIED

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Switch to polling failed: {exc}")

    async def aclose(self) -> None:
        """Cancel the poller and pending transitions (shutdown only)."""
        tasks = list(self._background)
        if self._poll_task is not None:
            tasks.append(self._poll_task)
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Error while stopping background task")
