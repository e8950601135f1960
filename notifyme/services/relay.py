"""
Relay service — deliver a web client's message to the chat its token is bound to.
Called by POST /send-message.
"""
import logging

from telegram import Message

from notifyme.exceptions import NotFoundError
from notifyme.services.sessions import SessionStore
from notifyme.telegram.client import BotApiClient
from notifyme.utils.tokens import decode_token

logger = logging.getLogger(__name__)


async def resolve_chat(store: SessionStore, raw_token: str) -> int:
    """
    Map a base64 token to its chat.
    Raises DecodeError (malformed), NotFoundError (unknown), StorageError.
    """
    token = decode_token(raw_token)
    chat_id = await store.find_chat_by_token(token)
    if chat_id is None:
        raise NotFoundError("token not found")
    return chat_id


async def relay_message(
    store: SessionStore,
    client: BotApiClient,
    *,
    raw_token: str,
    text: str,
) -> Message:
    chat_id = await resolve_chat(store, raw_token)
    logger.info(f"Relaying message to chat {chat_id}")
    return await client.send_message(chat_id, text)
