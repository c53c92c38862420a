import logging
import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from oxbow import crud
from oxbow.api.deps import PushGatewayDep, SessionDep
from oxbow.api.routes.mirrors import error_response
from oxbow.mirror.errors import PushDeliveryError
from oxbow.notifications import send_wednesday_reminders

router = APIRouter()
logger = logging.getLogger(__name__)


class PushNotificationRequest(BaseModel):
    userId: uuid.UUID
    title: str
    body: str
    data: dict[str, Any] | None = None


@router.post("/send-push-notification")
async def send_push_notification(
    payload: PushNotificationRequest,
    session: SessionDep,
    gateway: PushGatewayDep,
) -> Any:
    logger.info("Sending push notification to user %s", payload.userId)
    user = crud.get_user(session=session, user_id=payload.userId)
    if user is None:
        return error_response(404, "User not found")
    if not user.push_token:
        logger.warning("User %s has no push token registered", payload.userId)
        return error_response(400, "User has no push token registered")

    try:
        await gateway.send(user.push_token, payload.title, payload.body, payload.data)
    except PushDeliveryError as exc:
        return error_response(500, str(exc), details=exc.details)
    except Exception as exc:
        logger.exception("Error in send-push-notification")
        return error_response(500, str(exc))

    return {"success": True, "message": "Push notification sent"}


@router.post("/wednesday-journal-reminder")
async def wednesday_journal_reminder(session: SessionDep, gateway: PushGatewayDep) -> Any:
    try:
        return await send_wednesday_reminders(session, gateway)
    except Exception as exc:
        logger.exception("Error in wednesday-journal-reminder")
        return error_response(500, str(exc))
