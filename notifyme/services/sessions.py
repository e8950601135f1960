"""
Session store — token <-> chat bindings persisted in SQLite.

Every operation runs in its own short transaction, so callers never see a
chat without a session in the middle of a token replacement.
"""
import logging
import time
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifyme.exceptions import StorageError
from notifyme.models.session import ChatSession

logger = logging.getLogger(__name__)


def unix_time() -> int:
    return int(time.time())


class SessionStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], int] = unix_time,
    ):
        self._session_factory = session_factory
        self._clock = clock

    async def create_session(self, token: bytes, chat_id: int) -> None:
        """
        Replace any existing session for chat_id with a new one.
        Delete and insert share one transaction.
        """
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    await db.execute(
                        delete(ChatSession).where(ChatSession.chat_id == chat_id)
                    )
                    db.add(ChatSession(
                        token=token,
                        chat_id=chat_id,
                        created_at=self._clock(),
                    ))
        except SQLAlchemyError as e:
            raise StorageError("create_session", e) from e
        logger.info(f"Session created for chat {chat_id}")

    async def delete_session(self, chat_id: int) -> None:
        """Remove the chat's session. No-op if there is none."""
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    result = await db.execute(
                        delete(ChatSession).where(ChatSession.chat_id == chat_id)
                    )
        except SQLAlchemyError as e:
            raise StorageError("delete_session", e) from e
        if result.rowcount:
            logger.info(f"Session deleted for chat {chat_id}")

    async def find_chat_by_token(self, token: bytes) -> int | None:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(ChatSession.chat_id).where(ChatSession.token == token)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError("find_chat_by_token", e) from e

    async def find_token_by_chat(self, chat_id: int) -> bytes | None:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(ChatSession.token).where(ChatSession.chat_id == chat_id)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError("find_token_by_chat", e) from e
