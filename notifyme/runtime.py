"""
Runtime — every long-lived component, built once at startup.

Components receive their collaborators through constructors; nothing is
reachable through module globals.
"""
import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from notifyme.config import Settings
from notifyme.database import create_engine, create_session_factory, init_schema
from notifyme.exceptions import StorageError
from notifyme.services.random_source import WEBHOOK_SECRET_BYTES, RandomSource
from notifyme.services.sessions import SessionStore
from notifyme.telegram.client import BotApiClient
from notifyme.telegram.commands import CommandContext, CommandTable
from notifyme.telegram.delivery import ModeCoordinator
from notifyme.telegram.dispatcher import UpdateDispatcher
from notifyme.utils.tokens import encode_webhook_secret
from notifyme.webhooks.liveness import LivenessMonitor

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    store: SessionStore
    client: BotApiClient
    random_source: RandomSource
    commands: CommandTable
    dispatcher: UpdateDispatcher
    coordinator: ModeCoordinator
    liveness: LivenessMonitor
    engine: AsyncEngine | None = None


def assemble_runtime(
    *,
    store: SessionStore,
    client: BotApiClient,
    random_source: RandomSource,
    webhook_url: str,
    poll_timeout: int = 1024,
    poll_retry_delay: float = 1.0,
    poll_idle_limit: int = 3,
    burst_gap: float = 5.0,
    engine: AsyncEngine | None = None,
) -> Runtime:
    """Wire components together. No I/O."""
    commands = CommandTable()
    dispatcher = UpdateDispatcher(CommandContext(
        store=store,
        client=client,
        random_source=random_source,
        table=commands,
    ))
    webhook_secret = encode_webhook_secret(random_source.token_bytes(WEBHOOK_SECRET_BYTES))
    coordinator = ModeCoordinator(
        client,
        dispatcher,
        webhook_url,
        webhook_secret,
        poll_timeout=poll_timeout,
        retry_delay=poll_retry_delay,
        idle_limit=poll_idle_limit,
    )
    return Runtime(
        store=store,
        client=client,
        random_source=random_source,
        commands=commands,
        dispatcher=dispatcher,
        coordinator=coordinator,
        liveness=LivenessMonitor(burst_gap),
        engine=engine,
    )


async def build_runtime(settings: Settings) -> Runtime:
    """Open the random source and the database. Any failure here is fatal."""
    random_source = RandomSource.open()

    engine = create_engine(settings.database_url, settings.DB_POOL_SIZE, echo=settings.DEBUG)
    try:
        await init_schema(engine)
    except SQLAlchemyError as e:
        await engine.dispose()
        raise StorageError("init_schema", e) from e
    logger.info(f"Database ready: {settings.DB_FILE}")

    return assemble_runtime(
        store=SessionStore(create_session_factory(engine)),
        client=BotApiClient(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_API_URL),
        random_source=random_source,
        webhook_url=settings.TELEGRAM_WEBHOOK,
        poll_timeout=settings.POLL_TIMEOUT,
        poll_retry_delay=settings.POLL_RETRY_DELAY,
        poll_idle_limit=settings.POLL_IDLE_LIMIT,
        burst_gap=settings.WEBHOOK_BURST_GAP,
        engine=engine,
    )


async def start_runtime(runtime: Runtime) -> None:
    """Register bot commands and begin in polling mode."""
    await runtime.client.set_my_commands(
        (cmd.name, cmd.description) for cmd in runtime.commands
    )
    await runtime.coordinator.switch_to_pull()


async def close_runtime(runtime: Runtime) -> None:
    await runtime.coordinator.aclose()
    await runtime.client.close()
    if runtime.engine is not None:
        await runtime.engine.dispose()


def get_runtime(request: Request) -> Runtime:
    """Dependency: the Runtime stored on app.state by the lifespan."""
    return request.app.state.runtime
