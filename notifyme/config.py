"""
Notify-Me relay — Configuration
All settings loaded from environment variables (or .env).
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- Telegram ---
    TELEGRAM_BOT_TOKEN: str
    # Public URL Telegram pushes updates to (must route to POST /webhook)
    TELEGRAM_WEBHOOK: str
    TELEGRAM_API_URL: str = "https://api.telegram.org"

    # --- Database ---
    DB_FILE: str
    # Small fixed pool: SQLite serialises writers anyway
    DB_POOL_SIZE: int = 4

    # --- HTTP server ---
    LISTEN_ADDR: str = "0.0.0.0"
    LISTEN_PORT: int = 8000

    # --- Update delivery ---
    POLL_TIMEOUT: int = 1024         # long-poll hint sent to getUpdates, seconds
    POLL_RETRY_DELAY: float = 1.0    # sleep after a failed getUpdates
    POLL_IDLE_LIMIT: int = 3         # consecutive empty polls before going back to webhook
    WEBHOOK_BURST_GAP: float = 5.0   # deliveries closer than this trigger polling

    # --- Sentry ---
    SENTRY_DSN: Optional[str] = None

    # --- App ---
    DEBUG: bool = False

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.DB_FILE}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
