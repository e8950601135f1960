import pytest

from notifyme.database import create_engine, create_session_factory, init_schema
from notifyme.runtime import assemble_runtime
from notifyme.services.random_source import RandomSource
from notifyme.services.sessions import SessionStore
from notifyme.telegram.commands import CommandContext, CommandTable
from notifyme.telegram.dispatcher import UpdateDispatcher
from tests.fakes import FakeBotClient

WEBHOOK_URL = "https://relay.example.com/webhook"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def store(anyio_backend, tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    await init_schema(engine)
    yield SessionStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def fake_client() -> FakeBotClient:
    return FakeBotClient()


@pytest.fixture
def command_context(store, fake_client) -> CommandContext:
    return CommandContext(
        store=store,
        client=fake_client,
        random_source=RandomSource(),
        table=CommandTable(),
    )


@pytest.fixture
def dispatcher(command_context) -> UpdateDispatcher:
    return UpdateDispatcher(command_context)


@pytest.fixture
async def runtime(anyio_backend, store, fake_client):
    rt = assemble_runtime(
        store=store,
        client=fake_client,
        random_source=RandomSource(),
        webhook_url=WEBHOOK_URL,
        poll_retry_delay=0,
    )
    yield rt
    await rt.coordinator.aclose()
