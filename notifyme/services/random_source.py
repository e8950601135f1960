"""
Secure random source for session tokens and the webhook secret.

Opened once during startup and handed to every component that needs it.
"""
import logging
import os
from typing import Callable

from notifyme.exceptions import RandomSourceError

logger = logging.getLogger(__name__)

SESSION_TOKEN_BYTES = 32
WEBHOOK_SECRET_BYTES = 32


class RandomSource:
    def __init__(self, read: Callable[[int], bytes] = os.urandom):
        self._read = read

    @classmethod
    def open(cls, read: Callable[[int], bytes] = os.urandom) -> "RandomSource":
        """Probe the OS source once; a source that cannot deliver is fatal."""
        source = cls(read)
        source.token_bytes(SESSION_TOKEN_BYTES)
        logger.info("Random source ready")
        return source

    def token_bytes(self, size: int) -> bytes:
        try:
            data = self._read(size)
        except (OSError, NotImplementedError) as e:
            raise RandomSourceError(f"OS random source failed: {e}") from e
        if len(data) != size:
            raise RandomSourceError(
                f"OS random source returned {len(data)} bytes, expected {size}"
            )
        return data

    def session_token(self) -> bytes:
        return self.token_bytes(SESSION_TOKEN_BYTES)
