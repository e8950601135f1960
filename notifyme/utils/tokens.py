"""
Text encodings for tokens.

Session tokens travel as standard base64 without padding (what users copy
from the bot). The webhook secret uses the URL-safe alphabet because
Telegram only accepts A-Z, a-z, 0-9, _ and - in secret_token.
"""
import base64
import binascii

from notifyme.exceptions import DecodeError


def encode_token(token: bytes) -> str:
    return base64.b64encode(token).decode("ascii").rstrip("=")


def decode_token(value: str) -> bytes:
    """Accept padded or unpadded standard base64. Raises DecodeError."""
    value = value.strip()
    if not value:
        raise DecodeError("empty token")
    if len(value) % 4 == 1:
        raise DecodeError("invalid length")
    padded = value.rstrip("=")
    padded += "=" * (-len(padded) % 4)
    try:
        token = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(str(e)) from e
    if not token:
        raise DecodeError("empty token")
    return token


def encode_webhook_secret(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
