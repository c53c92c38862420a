import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from sqlmodel import Session

from oxbow import crud
from oxbow.core.config import settings
from oxbow.mirror.errors import PushDeliveryError

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Journal Reminder"
REMINDER_BODY = "What was your takeaway from Men's Group today?"
REMINDER_DATA = {"type": "journal_reminder", "screen": "journal_voice"}

WEDNESDAY = 2  # datetime.weekday()


class PushGateway:
    """Thin client for the Expo push API. One instance per request."""

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.EXPO_PUSH_URL
        self.timeout = timeout or settings.PUSH_TIMEOUT_SECONDS
        self.transport = transport

    @staticmethod
    def build_message(
        push_token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return {
            "to": push_token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }

    async def send(
        self, push_token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        message = self.build_message(push_token, title, body, data)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=message)
        except httpx.HTTPError as exc:
            raise PushDeliveryError(f"Push gateway request failed: {exc}") from exc

        try:
            result = response.json()
        except ValueError:
            result = {"raw": response.text}

        if response.is_error or (isinstance(result, dict) and result.get("errors")):
            logger.error("Push gateway rejected message (%s): %s", response.status_code, result)
            raise PushDeliveryError("Failed to send push notification", details=result)

        logger.info("Push notification accepted by gateway")
        return result if isinstance(result, dict) else {"data": result}


def local_day_bounds(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC start/end of the calendar day containing ``now`` in ``tz``."""
    local_now = now.astimezone(tz)
    start = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


async def send_wednesday_reminders(
    session: Session,
    gateway: PushGateway,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Remind group members who have not journaled yet on a local Wednesday."""
    tz = ZoneInfo(settings.REMINDER_TIMEZONE)
    now = now or datetime.now(timezone.utc)
    local_now = now.astimezone(tz)
    logger.info("Running Wednesday journal reminder check (local time %s)", local_now.isoformat())

    if local_now.weekday() != WEDNESDAY:
        logger.info("Not Wednesday (weekday %s), skipping", local_now.weekday())
        return {"success": True, "message": "Not Wednesday, no reminders sent"}

    users = crud.list_reminder_recipients(session=session, group_name=settings.REMINDER_GROUP_NAME)
    logger.info("Found %s %s users with push tokens", len(users), settings.REMINDER_GROUP_NAME)
    if not users:
        return {"success": True, "message": "No users to notify"}

    start, end = local_day_bounds(now, tz)
    sent_count = 0
    skipped_count = 0
    for user in users:
        if crud.user_has_journal_between(session=session, user_id=user.id, start=start, end=end):
            logger.info("User %s already journaled today, skipping", user.id)
            skipped_count += 1
            continue
        try:
            await gateway.send(user.push_token, REMINDER_TITLE, REMINDER_BODY, dict(REMINDER_DATA))
        except PushDeliveryError as exc:
            # One bad token must not stop the batch.
            logger.error("Failed to send reminder to user %s: %s", user.id, exc)
            continue
        sent_count += 1

    logger.info("Wednesday reminders complete: %s sent, %s skipped", sent_count, skipped_count)
    return {
        "success": True,
        "sentCount": sent_count,
        "skippedCount": skipped_count,
        "totalUsers": len(users),
    }
