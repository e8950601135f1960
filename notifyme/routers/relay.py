"""
REST API for web clients.

POST /send-message — deliver {message} to the chat bound to {token}
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from notifyme.exceptions import DecodeError, NotFoundError, StorageError, UpstreamError
from notifyme.runtime import Runtime, get_runtime
from notifyme.services.relay import relay_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


# ── Request / Response schemas ──────────────────────────────────────────────

class SendMessageRequest(BaseModel):
    token: str      # base64 session token from /start
    message: str


class QueryResult(BaseModel):
    status: str     # OK | BAD_REQUEST | UNAUTHORIZED | SERVER_ERROR
    message: str | None = None


def query_error(status_code: int, status: str, message: str | None = None) -> JSONResponse:
    body = QueryResult(status=status, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/send-message", response_model=QueryResult, response_model_exclude_none=True)
async def send_message(body: SendMessageRequest, runtime: Runtime = Depends(get_runtime)):
    try:
        await relay_message(
            runtime.store,
            runtime.client,
            raw_token=body.token,
            text=body.message,
        )
    except DecodeError as e:
        logger.info(f"Rejected token: {e.details.get('reason')}")
        return query_error(400, "BAD_REQUEST", "Failed base64 decode token")
    except NotFoundError:
        return query_error(401, "UNAUTHORIZED", "token not found")
    except StorageError as e:
        logger.error(f"Token lookup failed: {e}")
        return query_error(500, "SERVER_ERROR")
    except UpstreamError as e:
        logger.error(f"Message delivery failed: {e}")
        return query_error(502, "SERVER_ERROR", "Failed to deliver message")

    return QueryResult(status="OK")
