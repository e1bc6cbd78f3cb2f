# storefront/webhooks.py
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from svix.webhooks import Webhook, WebhookVerificationError

from .context import Storefront
from .deps import get_storefront

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks")

SIGNATURE_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


@router.post("/clerk")
async def identity_webhook(request: Request, sf: Storefront = Depends(get_storefront)):
    secret = sf.settings.webhook_secret
    if not secret:
        logger.error("CLERK_WEBHOOK_SECRET is missing!")
        return PlainTextResponse("Webhook secret not provided", status_code=500)

    headers = {name: request.headers.get(name) for name in SIGNATURE_HEADERS}
    if not all(headers.values()):
        return PlainTextResponse("Missing svix headers", status_code=400)

    body = await request.body()
    try:
        Webhook(secret).verify(body, headers)
    except (WebhookVerificationError, ValueError) as e:
        # ValueError covers malformed base64 in the signature header
        logger.warning("Error verifying webhook: %s", e)
        return PlainTextResponse("Error verifying webhook", status_code=400)

    event = json.loads(body)
    event_type = event.get("type")
    data = event.get("data") or {}
    logger.info("Webhook received: %s", event_type)

    if event_type in ("user.created", "user.updated", "user.deleted") and not data.get("id"):
        return PlainTextResponse("Missing user id", status_code=400)

    if event_type in ("user.created", "user.updated"):
        await sf.users.upsert_from_provider(data)
    elif event_type == "user.deleted":
        await sf.users.delete(data["id"])

    return JSONResponse({"success": True, "eventType": event_type})
