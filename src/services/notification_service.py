"""Notification service for telling family members about schedule changes.

Delivery is best-effort: every failure is logged and swallowed, and a
schedule write never fails on delivery.
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from datetime import date
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field

from src.core.config import constants, settings
from src.core.db_client import DatabaseClient
from src.core.errors import NotificationError
from src.core.logging import span
from src.core.week_dates import format_notification_date
from src.domain.override import OverrideAction, TaskOverride, TaskOverrideDraft
from src.services.record_loader import RelationLoader


logger = logging.getLogger(__name__)

WEEK_SCHEDULE_UPDATED = "week-schedule-updated"
WEEK_SCHEDULE_REVERTED = "week-schedule-reverted"


class TaskReassignedNotification(BaseModel):
    """Payload telling members that a task changed hands on one date."""

    task_id: str
    task_name: str
    task_icon: str | None = None
    date: str = Field(..., description="Display date, e.g. 'Monday, Jan 1'")
    original_member_id: str | None = Field(default=None, description="Member who had the task")
    new_member_id: str | None = Field(default=None, description="Member who has the task now")
    acting_user_id: str
    acting_name: str


class TaskNotifier(Protocol):
    """Outbound notification collaborator."""

    async def notify_task_reassigned(self, family_id: str, notification: TaskReassignedNotification) -> None: ...

    async def send_to_family(self, family_id: str, event: str, payload: dict[str, Any]) -> None: ...


class WebhookNotifier:
    """Delivers notification events as JSON POSTs to a webhook endpoint."""

    def __init__(self, *, url: str, token: str | None = None, timeout: float = constants.API_TIMEOUT_SECONDS) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout

    async def _post(self, body: dict[str, Any]) -> None:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=body, headers=headers)
        except httpx.HTTPError as e:
            msg = f"Notification delivery failed: {e!s}"
            raise NotificationError(msg) from e
        if not response.is_success:
            msg = f"Notification endpoint returned status {response.status_code}"
            raise NotificationError(msg)

    async def notify_task_reassigned(self, family_id: str, notification: TaskReassignedNotification) -> None:
        await self._post(
            {"event": "task-reassigned", "family_id": family_id, "data": notification.model_dump(mode="json")}
        )

    async def send_to_family(self, family_id: str, event: str, payload: dict[str, Any]) -> None:
        await self._post({"event": event, "family_id": family_id, "data": payload})


def build_notifier() -> TaskNotifier | None:
    """Notifier configured from settings, or None when notifications are off."""
    if not settings.enable_notifications or not settings.notification_webhook_url:
        return None
    return WebhookNotifier(url=settings.notification_webhook_url, token=settings.notification_webhook_token)


async def _deliver(description: str, call: Awaitable[None]) -> bool:
    """Await one notifier call with a timeout; log and swallow every failure."""
    try:
        await asyncio.wait_for(call, timeout=settings.notification_timeout_seconds)
    except Exception:
        logger.exception("Failed to deliver %s notification", description)
        return False
    return True


def notification_for(
    action: OverrideAction, original_member_id: str | None, new_member_id: str | None
) -> tuple[str | None, str | None] | None:
    """(from, to) members worth telling about for an override, or None when nobody is affected."""
    match action:
        case OverrideAction.REASSIGN:
            if original_member_id and new_member_id:
                return (original_member_id, new_member_id)
        case OverrideAction.ADD:
            if new_member_id:
                return (None, new_member_id)
        case OverrideAction.REMOVE:
            if original_member_id:
                return (original_member_id, None)
    return None


async def _acting_name(loader: RelationLoader, acting_user_id: str) -> str | None:
    member = await loader.member(acting_user_id)
    if member is None:
        logger.warning("Acting user not found, skipping task notifications: %s", acting_user_id)
        return None
    return member.display_name


async def send_task_change_notifications(
    *,
    db: DatabaseClient,
    notifier: TaskNotifier | None,
    family_id: str,
    drafts: Iterable[TaskOverrideDraft],
    acting_user_id: str,
) -> int:
    """Notify members affected by newly written overrides.

    Returns:
        Number of notifications delivered
    """
    if notifier is None:
        return 0

    with span("notification_service.send_task_change_notifications"):
        try:
            loader = RelationLoader(db)
            acting_name = await _acting_name(loader, acting_user_id)
            if acting_name is None:
                return 0

            delivered = 0
            for draft in drafts:
                members = notification_for(draft.action, draft.original_member_id, draft.new_member_id)
                if members is None:
                    continue
                task = await loader.find_task(draft.task_id)
                if task is None:
                    logger.warning("Task not found, skipping notification: %s", draft.task_id)
                    continue

                notification = TaskReassignedNotification(
                    task_id=draft.task_id,
                    task_name=task.name,
                    task_icon=task.icon,
                    date=format_notification_date(draft.assigned_date),
                    original_member_id=members[0],
                    new_member_id=members[1],
                    acting_user_id=acting_user_id,
                    acting_name=acting_name,
                )
                if await _deliver(draft.action.value, notifier.notify_task_reassigned(family_id, notification)):
                    delivered += 1
        except Exception:
            logger.exception("Error preparing task change notifications for family %s", family_id)
            return 0

        logger.info("Sent %d task change notifications for family %s", delivered, family_id)
        return delivered


async def send_task_removal_notifications(
    *,
    db: DatabaseClient,
    notifier: TaskNotifier | None,
    family_id: str,
    removed: Iterable[TaskOverride],
    acting_user_id: str,
) -> int:
    """Notify members who lost an assignment because their override was purged.

    Returns:
        Number of notifications delivered
    """
    if notifier is None:
        return 0

    with span("notification_service.send_task_removal_notifications"):
        try:
            loader = RelationLoader(db)
            acting_name = await _acting_name(loader, acting_user_id)
            if acting_name is None:
                return 0

            delivered = 0
            for override in removed:
                if not override.new_member_id:
                    continue
                notification = TaskReassignedNotification(
                    task_id=override.task_id,
                    task_name=override.task.name,
                    task_icon=override.task.icon,
                    date=format_notification_date(override.assigned_date),
                    original_member_id=override.new_member_id,  # They had it
                    new_member_id=None,
                    acting_user_id=acting_user_id,
                    acting_name=acting_name,
                )
                if await _deliver("removal", notifier.notify_task_reassigned(family_id, notification)):
                    delivered += 1
        except Exception:
            logger.exception("Error preparing task removal notifications for family %s", family_id)
            return 0

        logger.info("Sent %d task removal notifications for family %s", delivered, family_id)
        return delivered


async def send_schedule_event(
    *,
    notifier: TaskNotifier | None,
    family_id: str,
    event: str,
    week_start: date,
    **payload: Any,
) -> bool:
    """Broadcast a week-level schedule event to the family."""
    if notifier is None:
        return False
    body = {"type": event, "family_id": family_id, "week_start_date": week_start.isoformat(), **payload}
    return await _deliver(event, notifier.send_to_family(family_id, event, body))
