import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from ..dependencies import get_clerk_webhook, get_db
from ..logging_config import account_log_context
from ..metrics import CLERK_WEBHOOK_EVENTS_TOTAL
from ..schemas.webhooks import ClerkUserFields
from ..services import users_service

router = APIRouter(tags=["Webhooks"])

logger = structlog.get_logger(__name__)

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


@router.post("/clerk-webhook", response_class=PlainTextResponse)
async def clerk_webhook(
    request: Request,
    db: Session = Depends(get_db),
    webhook: Webhook = Depends(get_clerk_webhook),
):
    headers = {name: request.headers.get(name) for name in SVIX_HEADERS}
    if not all(headers.values()):
        return PlainTextResponse("No svix headers found", status_code=400)

    body = await request.body()
    try:
        event = webhook.verify(body, headers)
    except WebhookVerificationError as exc:
        logger.warning("clerk_webhook_verification_failed", error=str(exc), svix_id=headers["svix-id"])
        return PlainTextResponse("Invalid webhook signature", status_code=400)

    if not isinstance(event, dict):
        event = {}
    event_type = event.get("type")
    CLERK_WEBHOOK_EVENTS_TOTAL.labels(event_type=str(event_type)).inc()
    data = event.get("data")
    if not isinstance(data, dict):
        data = {}

    clerk_id = data.get("id")
    with account_log_context(clerk_id=clerk_id if isinstance(clerk_id, str) else None):
        if event_type == "user.created":
            try:
                fields = ClerkUserFields.from_event_data(data)
                users_service.sync_user(db, **fields.model_dump())
            except Exception:
                logger.exception("clerk_user_create_failed", svix_id=headers["svix-id"])
                return PlainTextResponse("Error creating user", status_code=500)
            logger.info("clerk_user_synced")
        elif event_type == "user.updated":
            try:
                fields = ClerkUserFields.from_event_data(data)
                users_service.update_user(db, **fields.model_dump())
            except Exception:
                logger.exception("clerk_user_update_failed", svix_id=headers["svix-id"])
                return PlainTextResponse("Error updating user", status_code=500)
            logger.info("clerk_user_updated")
        else:
            logger.info("clerk_webhook_event_ignored", event_type=event_type)

    return PlainTextResponse("Webhooks processed successfully", status_code=200)
