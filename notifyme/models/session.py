"""
ChatSession — binds a bearer token to the Telegram chat it may message.
Never updated in place: replaced on /update_token, deleted on /stop.
"""
from sqlalchemy import BigInteger, Index, Integer, LargeBinary, text
from sqlalchemy.orm import Mapped, mapped_column

from notifyme.database import Base


class ChatSession(Base):
    __tablename__ = "sessions"

    token: Mapped[bytes] = mapped_column(LargeBinary, primary_key=True)
    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"),
    )  # unix seconds

    __table_args__ = (
        # One live session per chat
        Index("uq_sessions_chat_id", "chat_id", unique=True),
    )
