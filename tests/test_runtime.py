"""Tests for runtime assembly, startup and settings."""
import pytest

from notifyme.config import Settings
from notifyme.runtime import build_runtime, close_runtime, start_runtime
from notifyme.telegram.delivery import DeliveryMode

pytestmark = pytest.mark.anyio


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "TELEGRAM_BOT_TOKEN": "123:ABC",
        "TELEGRAM_WEBHOOK": "https://relay.example.com/webhook",
        "DB_FILE": str(tmp_path / "relay.db"),
    }
    values.update(overrides)
    return Settings(**values)


def test_settings_defaults(tmp_path):
    settings = make_settings(tmp_path)
    assert settings.DB_POOL_SIZE == 4
    assert settings.POLL_IDLE_LIMIT == 3
    assert settings.WEBHOOK_BURST_GAP == 5.0
    assert settings.database_url == f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}"


async def test_start_registers_commands_and_polls(runtime, fake_client):
    await start_runtime(runtime)
    assert fake_client.commands == [(cmd.name, cmd.description) for cmd in runtime.commands]
    assert runtime.coordinator.mode is DeliveryMode.PULL
    assert runtime.coordinator.poll_task is not None


async def test_webhook_secret_is_random_per_runtime(runtime, store, fake_client):
    from notifyme.runtime import assemble_runtime
    from notifyme.services.random_source import RandomSource

    other = assemble_runtime(
        store=store, client=fake_client, random_source=RandomSource(),
        webhook_url="https://relay.example.com/webhook",
    )
    assert other.coordinator.webhook_secret != runtime.coordinator.webhook_secret
    assert len(runtime.coordinator.webhook_secret) == 43


async def test_build_runtime_opens_database(tmp_path, anyio_backend):
    runtime = await build_runtime(make_settings(tmp_path))
    try:
        await runtime.store.create_session(b"\x01" * 32, 42)
        assert await runtime.store.find_chat_by_token(b"\x01" * 32) == 42
        assert runtime.coordinator.mode is DeliveryMode.UNSPECIFIED
    finally:
        await close_runtime(runtime)
    assert (tmp_path / "relay.db").exists()
