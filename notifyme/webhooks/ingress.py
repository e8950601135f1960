"""
Webhook endpoint — POST /webhook.

Pipeline for every incoming update:
1. Verify Telegram secret token → silently drop if invalid
2. Parse Update object → 400 if malformed
3. Liveness heuristic → maybe request polling (not awaited)
4. Dispatch to command handlers
5. Return 200 OK
"""
import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request

from notifyme.runtime import Runtime, get_runtime
from notifyme.telegram.client import parse_update

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

router = APIRouter(tags=["webhook"])


def verify_secret(request: Request, expected_secret: str) -> bool:
    """Exact match of the secret header; a missing header is the empty string."""
    token = request.headers.get(SECRET_HEADER, "")
    return secrets.compare_digest(token.encode(), expected_secret.encode())


@router.post("/webhook")
async def webhook_endpoint(request: Request, runtime: Runtime = Depends(get_runtime)):
    # 1. Verify secret
    if not verify_secret(request, runtime.coordinator.webhook_secret):
        logger.warning("Webhook delivery with invalid secret ignored")
        return {"ok": True}

    # 2. Parse update
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Update must be an object")
    try:
        update = parse_update(data)
    except ValueError as e:
        logger.warning(f"Rejected webhook update: {e}")
        raise HTTPException(status_code=400, detail="Malformed update")

    # 3. Liveness heuristic
    gap = await runtime.liveness.record_delivery()
    if runtime.liveness.is_burst(gap):
        logger.info(f"Webhook deliveries {gap:.2f}s apart, switching to polling")
        runtime.coordinator.request_switch_to_pull()

    # 4. Dispatch (handler errors are logged inside)
    await runtime.dispatcher.handle_update(update)

    return {"ok": True}
