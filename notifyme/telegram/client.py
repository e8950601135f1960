"""
Telegram Bot API client.

Thin httpx wrapper: one POST per method, JSON body, generic envelope
{ok, result, description}. Any failure is raised as UpstreamError; the client
never retries, callers decide.
"""
import logging
from typing import Any, Iterable

import httpx
from telegram import Message, Update

from notifyme.exceptions import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.telegram.org"

# Update.de_json raises AttributeError when a nested object is not a dict
_PARSE_ERRORS = (TypeError, ValueError, KeyError, AttributeError)


def parse_update(data: Any) -> Update:
    """Strict Update parsing; raises ValueError for anything we cannot dispatch."""
    try:
        update = Update.de_json(data, None)
    except _PARSE_ERRORS as e:
        raise ValueError(f"malformed update: {e.__class__.__name__}") from e
    if update is None:
        raise ValueError("empty update")
    message = update.message
    if message is not None and message.text is not None and not isinstance(message.text, str):
        raise ValueError("message text is not a string")
    return update


class BotApiClient:
    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        if not token:
            raise ValueError("Telegram token is empty")
        self._base = f"{api_url.rstrip('/')}/bot{token}"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        logger.debug(f"Bot API request {method}")
        kwargs: dict[str, Any] = {"json": params or {}}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.post(f"{self._base}/{method}", **kwargs)
        except httpx.HTTPError as e:
            # str(e) may carry the URL, and the URL carries the bot token
            raise UpstreamError(method, f"network error: {e.__class__.__name__}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamError(
                method, f"invalid JSON response (HTTP {resp.status_code})",
                error_code=resp.status_code,
            ) from e
        return self._parse_envelope(method, resp.status_code, payload)

    @staticmethod
    def _parse_envelope(method: str, status_code: int, payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise UpstreamError(
                method, f"invalid envelope (HTTP {status_code})", error_code=status_code,
            )
        if not payload.get("ok"):
            description = payload.get("description")
            error_code = payload.get("error_code", status_code)
            logger.warning(
                f"Bot API {method} failed: code={error_code} description={description!r}"
            )
            raise UpstreamError(
                method,
                description or "request failed",
                description=description,
                error_code=error_code,
            )
        if "result" not in payload:
            raise UpstreamError(method, "response has no result", error_code=status_code)
        return payload["result"]

    # ── Methods ─────────────────────────────────────────────────────────────

    async def get_me(self) -> dict[str, Any]:
        return await self._post("getMe")

    async def send_message(self, chat_id: int, text: str) -> Message:
        result = await self._post("sendMessage", {"chat_id": chat_id, "text": text})
        try:
            message = Message.de_json(result, None)
        except _PARSE_ERRORS as e:
            raise UpstreamError("sendMessage", "malformed message in result") from e
        if message is None:
            raise UpstreamError("sendMessage", "empty message in result")
        return message

    async def set_my_commands(self, commands: Iterable[tuple[str, str]]) -> None:
        """commands: (name, description) pairs; a leading '/' is stripped."""
        await self._post("setMyCommands", {
            "commands": [
                {"command": name.lstrip("/"), "description": description}
                for name, description in commands
            ],
        })

    async def set_webhook(self, url: str, secret_token: str) -> None:
        await self._post("setWebhook", {"url": url, "secret_token": secret_token})

    async def delete_webhook(self) -> None:
        await self._post("deleteWebhook")

    async def get_updates(self, offset: int, timeout: int) -> list[Update]:
        # HTTP read timeout must outlast the server-side long-poll
        result = await self._post(
            "getUpdates",
            {"offset": offset, "timeout": timeout},
            timeout=timeout + 30,
        )
        if not isinstance(result, list):
            raise UpstreamError("getUpdates", "result is not a list")
        updates = []
        for item in result:
            if not isinstance(item, dict) or not isinstance(item.get("update_id"), int):
                raise UpstreamError("getUpdates", "update without update_id in result")
            try:
                update = parse_update(item)
            except ValueError:
                # Keep the id so the offset still moves past it
                logger.warning(f"Unparsable update {item['update_id']}, skipping its payload")
                update = Update(update_id=item["update_id"])
            updates.append(update)
        return updates
