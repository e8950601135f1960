"""
Custom exceptions for the Notify-Me relay.
"""

from typing import Any


class NotifyMeError(Exception):
    """Base exception for the relay."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# === Client input ===

class DecodeError(NotifyMeError):
    """Raised when a client-supplied token is not valid base64."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Failed to decode token: {reason}",
            details={"reason": reason}
        )


class NotFoundError(NotifyMeError):
    """Raised when a token or session does not exist."""
    pass


# === Telegram Bot API ===

class UpstreamError(NotifyMeError):
    """Raised when a Bot API call fails: transport, decoding, or ok=false."""

    def __init__(
        self,
        method: str,
        message: str,
        description: str | None = None,
        error_code: int | None = None,
    ):
        super().__init__(
            message=f"{method}: {message}",
            details={
                "method": method,
                "description": description,
                "error_code": error_code,
            }
        )
        self.method = method
        self.description = description
        self.error_code = error_code


# === Infrastructure ===

class StorageError(NotifyMeError):
    """Raised when the session database fails."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        super().__init__(
            message=f"Storage operation failed: {operation}",
            details={
                "operation": operation,
                "original_error": str(original_error) if original_error else None,
            }
        )


class RandomSourceError(NotifyMeError):
    """Raised when the OS random source cannot produce bytes. Fatal at startup."""
    pass
