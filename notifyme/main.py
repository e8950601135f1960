"""
Notify-Me relay — Main Application

Single FastAPI service: Telegram webhook, web-client relay endpoint and the
browser helper script.
"""
import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from notifyme import __version__
from notifyme.config import Settings, get_settings
from notifyme.routers.relay import router as relay_router
from notifyme.runtime import (
    Runtime,
    build_runtime,
    close_runtime,
    get_runtime,
    start_runtime,
)
from notifyme.webhooks.ingress import router as webhook_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    # httpx logs request URLs at INFO, and Bot API URLs contain the bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)


def configure_sentry(settings: Settings) -> None:
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            traces_sample_rate=0.1,
            environment="development" if settings.DEBUG else "production",
        )
        logger.info("Sentry initialized")


# --- Lifespan: build components, start in polling mode ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    configure_sentry(settings)

    logger.info("Starting Notify-Me relay...")
    runtime = await build_runtime(settings)
    try:
        await start_runtime(runtime)
    except Exception:
        await close_runtime(runtime)
        raise
    app.state.runtime = runtime
    logger.info(f"Relay ready, delivery mode: {runtime.coordinator.mode.value}")
    yield
    logger.info("Shutting down Notify-Me relay...")
    await close_runtime(runtime)


NOTIFY_ME_JS = r'''"use strict";
class NotifyMe {
    static async sendMessage(url, token, message) {
        const data = { token, message };
        const response = await fetch(url, {
            method: "POST",
            mode: "cors",
            cache: "no-cache",
            credentials: "omit",
            headers: {
                "Content-Type": "application/json",
            },
            redirect: "follow",
            referrerPolicy: "no-referrer",
            body: JSON.stringify(data),
        });
        const result = await response.json();
        if (!result?.status) {
            console.error("returned object have not valid format. Object:", result);
            throw new RangeError("returned object have not valid format");
        }
        const status = result.status;
        if (status === "OK") {
            return result;
        }
        if (result.message) {
            throw new Error(status + ": " + result.message);
        }
        else {
            throw new Error("" + status);
        }
    }
    static createSender(url, token) {
        return (message) => NotifyMe.sendMessage(url, token, message);
    }
}
'''


def create_app() -> FastAPI:
    app = FastAPI(
        title="Notify-Me Relay",
        version=__version__,
        lifespan=lifespan,
    )

    # Browser clients call /send-message from any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"status": "BAD_REQUEST", "message": "Invalid request body"},
        )

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Hello, World!"

    # --- Health check ---
    @app.get("/health")
    async def health(runtime: Runtime = Depends(get_runtime)):
        return {"status": "ok", "version": __version__, "mode": runtime.coordinator.mode.value}

    @app.get("/scripts/notify-me.js")
    async def notify_me_script():
        return Response(content=NOTIFY_ME_JS, media_type="text/javascript")

    app.include_router(webhook_router)
    app.include_router(relay_router)
    return app


app = create_app()
