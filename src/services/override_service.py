"""Apply and revert week overrides.

Applying runs strictly in this order:
validate -> upsert week override -> clear the deletion scope -> deduplicate
drafts -> insert survivors -> notify -> re-read. The store steps in between
run inside one store transaction, so concurrent applies for the same week
cannot interleave their deletes and inserts.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from pydantic import TypeAdapter, ValidationError

from src.core.db_client import DatabaseClient, sanitize_param
from src.core.errors import InternalConsistencyError, InvalidOverrideError, ScheduleValidationError
from src.core.logging import log_with_family_context, span
from src.core.week_dates import parse_week_start_date
from src.domain.create_models import WeekOverrideApply
from src.domain.override import (
    UNSET,
    OverrideAction,
    OverrideScope,
    TaskOverride,
    TaskOverrideDraft,
    Unset,
    WeekOverride,
)
from src.services import notification_service, record_loader
from src.services.notification_service import TaskNotifier
from src.services.template_selector import get_applicable_week_template


logger = logging.getLogger(__name__)

_DRAFTS_ADAPTER = TypeAdapter(list[TaskOverrideDraft])

# Overrides whose purge takes a task away from somebody
_ASSIGNING_ACTIONS = (OverrideAction.ADD, OverrideAction.REASSIGN)


def validate_drafts(drafts: Sequence[Mapping[str, Any] | TaskOverrideDraft]) -> list[TaskOverrideDraft]:
    """Validate a whole batch of drafts before anything is written.

    Raises:
        InvalidOverrideError: Listing every offending field (e.g. ``task_overrides.1.override_time``)
    """
    try:
        return _DRAFTS_ADAPTER.validate_python(
            [d.model_dump() if isinstance(d, TaskOverrideDraft) else d for d in drafts]
        )
    except ValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in ("task_overrides", *err["loc"])),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        first = errors[0]
        msg = f"Invalid task override: {first['field']}: {first['message']}"
        raise InvalidOverrideError(msg, field=first["field"], errors=errors) from e


def validate_template_pin(week_template_id: str | None | Unset) -> None:
    """Reject an empty template ID; None and UNSET are valid pins."""
    if week_template_id == "":
        msg = "Invalid week_template_id: must not be empty"
        raise ScheduleValidationError(
            msg, field="week_template_id", errors=[{"field": "week_template_id", "message": "must not be empty"}]
        )


def resolve_scope(
    drafts: Sequence[TaskOverrideDraft], *, replace_existing: bool, scope: OverrideScope | None = None
) -> OverrideScope:
    """Decide which existing overrides to clear.

    An explicit ``scope`` wins. Otherwise cumulative mode clears single
    (date, task) slots, and replace mode clears the day when every draft
    shares one date and the whole week when they span several (or none).
    """
    if scope is not None:
        return scope
    if not replace_existing:
        return OverrideScope.TASK
    if drafts and all(draft.assigned_date == drafts[0].assigned_date for draft in drafts):
        return OverrideScope.DAY
    return OverrideScope.WEEK


def deduplicate_drafts(drafts: Sequence[TaskOverrideDraft]) -> list[TaskOverrideDraft]:
    """Keep only the last draft per (date, task) slot, in order of each slot's first appearance."""
    latest: dict[tuple[date, str], TaskOverrideDraft] = {}
    for draft in drafts:
        latest[draft.slot] = draft
    return list(latest.values())


async def _upsert_week_override(
    *,
    db: DatabaseClient,
    family_id: str,
    week_start: date,
    week_template_id: str | None | Unset,
) -> dict[str, Any]:
    """Create the (family, week) row or update its pin when one was supplied."""
    existing = await record_loader.find_week_override_record(db=db, family_id=family_id, week_start=week_start)

    if existing is None:
        if isinstance(week_template_id, str):
            pinned = week_template_id
        else:
            template = await get_applicable_week_template(db=db, family_id=family_id, week_start=week_start)
            pinned = template.id if template else None
        record = await db.create_record(
            collection="week_overrides",
            data={
                "family_id": family_id,
                "week_start_date": week_start.isoformat(),
                "week_template_id": pinned,
            },
        )
        logger.info("Created week override %s for family %s week %s", record["id"], family_id, week_start)
        return record

    if week_template_id is not UNSET:
        return await db.update_record(
            collection="week_overrides",
            record_id=existing["id"],
            data={"week_template_id": week_template_id},
        )
    return existing


async def _purge_existing(
    *,
    db: DatabaseClient,
    week_override_id: str,
    scope: OverrideScope,
    drafts: Sequence[TaskOverrideDraft],
) -> list[TaskOverride]:
    """Delete the task overrides covered by ``scope``.

    Returns:
        The purged overrides that had assigned the task to someone (day/week scope only)
    """
    owner = f'week_override_id = "{sanitize_param(week_override_id)}"'
    assigning = f'(action = "{OverrideAction.ADD}" || action = "{OverrideAction.REASSIGN}")'

    if scope == OverrideScope.TASK:
        # One scoped delete per draft, duplicates included
        for draft in drafts:
            await db.delete_records(
                collection="task_overrides",
                filter_query=(
                    f'{owner} && assigned_date = "{draft.assigned_date.isoformat()}"'
                    f' && task_id = "{sanitize_param(draft.task_id)}"'
                ),
            )
        return []

    if scope == OverrideScope.DAY:
        dates = list(dict.fromkeys(draft.assigned_date for draft in drafts))
        narrowing = [f'assigned_date = "{day.isoformat()}"' for day in dates]
    else:
        narrowing = [""]

    removed: list[TaskOverride] = []
    loader = record_loader.RelationLoader(db)
    for extra in narrowing:
        records = await record_loader.list_task_override_records(
            db=db, week_override_id=week_override_id, filter_query=f"{extra} && {assigning}" if extra else assigning
        )
        for record in records:
            if record.get("new_member_id"):
                removed.append(await loader.task_override(record))
        await db.delete_records(
            collection="task_overrides", filter_query=f"{owner} && {extra}" if extra else owner
        )
    return removed


async def _insert_drafts(*, db: DatabaseClient, week_override_id: str, drafts: Sequence[TaskOverrideDraft]) -> None:
    for draft in drafts:
        await db.create_record(
            collection="task_overrides",
            data={
                "week_override_id": week_override_id,
                "assigned_date": draft.assigned_date.isoformat(),
                "task_id": draft.task_id,
                "action": draft.action.value,
                "original_member_id": draft.original_member_id,
                "new_member_id": draft.new_member_id,
                "override_time": draft.override_time,
                "override_duration": draft.override_duration,
            },
        )


async def apply_week_override(
    *,
    db: DatabaseClient,
    family_id: str,
    week_start_date: str | date,
    task_overrides: Sequence[Mapping[str, Any] | TaskOverrideDraft],
    replace_existing: bool = False,
    week_template_id: str | None | Unset = UNSET,
    scope: OverrideScope | None = None,
    acting_user_id: str | None = None,
    notifier: TaskNotifier | None = None,
) -> WeekOverride:
    """Apply task override drafts to one week of a family.

    Args:
        db: Store to read and write
        family_id: Family owning the week
        week_start_date: Monday of the week (YYYY-MM-DD)
        task_overrides: Drafts to write; validated as one batch
        replace_existing: Replace the day/week instead of only the written slots
        week_template_id: Template to pin; UNSET keeps the stored pin, None clears it
        scope: Explicit deletion scope, replacing the one inferred from ``replace_existing``
        acting_user_id: Member performing the change; enables notifications
        notifier: Notification collaborator (None disables notifications)

    Returns:
        The week override re-read with all relations

    Raises:
        InvalidDateFormatError: If week_start_date is not YYYY-MM-DD
        InvalidWeekStartError: If week_start_date is not a Monday
        InvalidOverrideError: If any draft is malformed
        InternalConsistencyError: If the week override cannot be read back after writing
        DatabaseError: If the store fails
    """
    with span("override_service.apply_week_override"):
        week_start = parse_week_start_date(week_start_date)
        validate_template_pin(week_template_id)
        drafts = validate_drafts(task_overrides)
        deletion_scope = resolve_scope(drafts, replace_existing=replace_existing, scope=scope)

        async with db.transaction():
            week_override = await _upsert_week_override(
                db=db, family_id=family_id, week_start=week_start, week_template_id=week_template_id
            )
            removed = await _purge_existing(
                db=db, week_override_id=week_override["id"], scope=deletion_scope, drafts=drafts
            )
            survivors = deduplicate_drafts(drafts)
            await _insert_drafts(db=db, week_override_id=week_override["id"], drafts=survivors)

        log_with_family_context(
            logger,
            "info",
            "Applied week override",
            family_id=family_id,
            week_start_date=week_start.isoformat(),
            scope=deletion_scope.value,
            submitted=len(drafts),
            inserted=len(survivors),
            purged_assignments=len(removed),
        )

        if acting_user_id:
            await notification_service.send_task_removal_notifications(
                db=db, notifier=notifier, family_id=family_id, removed=removed, acting_user_id=acting_user_id
            )
            await notification_service.send_task_change_notifications(
                db=db, notifier=notifier, family_id=family_id, drafts=survivors, acting_user_id=acting_user_id
            )
        await notification_service.send_schedule_event(
            notifier=notifier,
            family_id=family_id,
            event=notification_service.WEEK_SCHEDULE_UPDATED,
            week_start=week_start,
            message="Week schedule has been updated",
            is_template_change=isinstance(week_template_id, str),
            has_overrides=bool(survivors),
        )

        result = await record_loader.get_week_override_by_id(
            db=db, week_override_id=week_override["id"], family_id=family_id
        )
        if result is None:
            msg = f"Week override {week_override['id']} missing right after it was written"
            logger.error(msg)
            raise InternalConsistencyError(msg)
        return result


async def apply_week_override_request(
    *,
    db: DatabaseClient,
    family_id: str,
    request: WeekOverrideApply,
    acting_user_id: str | None = None,
    notifier: TaskNotifier | None = None,
) -> WeekOverride:
    """Apply an inbound request payload, keeping an omitted template pin distinct from null."""
    return await apply_week_override(
        db=db,
        family_id=family_id,
        week_start_date=request.week_start_date,
        task_overrides=request.task_overrides,
        replace_existing=request.replace_existing,
        week_template_id=request.template_pin(),
        scope=request.scope,
        acting_user_id=acting_user_id,
        notifier=notifier,
    )


async def remove_week_override(
    *,
    db: DatabaseClient,
    family_id: str,
    week_start_date: str | date,
    acting_user_id: str | None = None,
    notifier: TaskNotifier | None = None,
) -> int:
    """Revert a week to its template by deleting the week override and all its task overrides.

    Returns:
        Number of task overrides removed
    """
    with span("override_service.remove_week_override"):
        week_start = parse_week_start_date(week_start_date)

        async with db.transaction():
            record = await record_loader.find_week_override_record(db=db, family_id=family_id, week_start=week_start)
            if record is None:
                logger.info("No week override to remove for family %s week %s", family_id, week_start)
                return 0

            existing = await record_loader.list_task_override_records(db=db, week_override_id=record["id"])
            loader = record_loader.RelationLoader(db)
            lost_assignments = [
                await loader.task_override(r)
                for r in existing
                if r["action"] in _ASSIGNING_ACTIONS and r.get("new_member_id")
            ]
            await db.delete_records(
                collection="task_overrides",
                filter_query=f'week_override_id = "{sanitize_param(record["id"])}"',
            )
            await db.delete_record(collection="week_overrides", record_id=record["id"])

        log_with_family_context(
            logger,
            "info",
            "Reverted week to template",
            family_id=family_id,
            week_start_date=week_start.isoformat(),
            removed=len(existing),
        )

        if acting_user_id:
            await notification_service.send_task_removal_notifications(
                db=db, notifier=notifier, family_id=family_id, removed=lost_assignments, acting_user_id=acting_user_id
            )
        await notification_service.send_schedule_event(
            notifier=notifier,
            family_id=family_id,
            event=notification_service.WEEK_SCHEDULE_REVERTED,
            week_start=week_start,
            message="Week schedule has been reverted to template",
        )
        return len(existing)
