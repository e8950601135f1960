import asyncio
from datetime import datetime, timezone
from typing import Any

from telegram import Chat, Message, Update

from notifyme.exceptions import UpstreamError


def make_update(update_id: int, text: str | None = "/start", chat_id: int = 42) -> Update:
    message: dict[str, Any] = {
        "message_id": update_id,
        "date": 1700000000,
        "chat": {"id": chat_id, "type": "private"},
    }
    if text is not None:
        message["text"] = text
    return Update.de_json({"update_id": update_id, "message": message}, None)


def update_payload(update_id: int, text: str = "/start", chat_id: int = 42) -> dict:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "date": 1700000000,
            "chat": {"id": chat_id, "type": "private"},
            "text": text,
        },
    }


class FakeBotClient:
    """In-memory stand-in for BotApiClient that records every call."""

    def __init__(self, api_delay: float = 0.0):
        self.api_delay = api_delay
        self.calls: list[str] = []
        self.sent: list[tuple[int, str]] = []
        self.commands: list[tuple[str, str]] = []
        self.webhooks: list[tuple[str, str]] = []
        self.offsets: list[int] = []
        # Items are lists of updates or exceptions to raise
        self.update_script: list[Any] = []
        self.block_when_drained = True
        self.fail_send: Exception | None = None
        self.fail_set_webhook: list[Exception] = []
        self.fail_delete_webhook: list[Exception] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def _mode_call(self, name: str) -> None:
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.api_delay)
        finally:
            self.in_flight -= 1

    async def send_message(self, chat_id: int, text: str) -> Message:
        self.calls.append("sendMessage")
        if self.fail_send is not None:
            raise self.fail_send
        self.sent.append((chat_id, text))
        return Message(
            message_id=len(self.sent),
            date=datetime.now(timezone.utc),
            chat=Chat(id=chat_id, type="private"),
            text=text,
        )

    async def set_my_commands(self, commands) -> None:
        self.calls.append("setMyCommands")
        self.commands = list(commands)

    async def set_webhook(self, url: str, secret_token: str) -> None:
        await self._mode_call("setWebhook")
        if self.fail_set_webhook:
            raise self.fail_set_webhook.pop(0)
        self.webhooks.append((url, secret_token))

    async def delete_webhook(self) -> None:
        await self._mode_call("deleteWebhook")
        if self.fail_delete_webhook:
            raise self.fail_delete_webhook.pop(0)

    async def get_updates(self, offset: int, timeout: int) -> list[Update]:
        self.calls.append("getUpdates")
        self.offsets.append(offset)
        await asyncio.sleep(0)
        if self.update_script:
            item = self.update_script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        if self.block_when_drained:
            await asyncio.sleep(3600)
        return []

    async def close(self) -> None:
        self.closed = True


def upstream_error(method: str = "getUpdates") -> UpstreamError:
    return UpstreamError(method, "network error: ConnectError")
