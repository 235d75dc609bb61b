"""Load schedule records from the store and hydrate them into domain models."""

import logging
from datetime import date
from typing import Any

from src.core.config import constants
from src.core.db_client import DatabaseClient, RecordNotFoundError, sanitize_param
from src.domain.member import Member
from src.domain.override import TaskOverride, WeekOverride
from src.domain.task import Task
from src.domain.template import DayTemplate, DayTemplateItem, TemplateSummary, WeekTemplate, WeekTemplateDay


logger = logging.getLogger(__name__)


async def list_all_records(
    *, db: DatabaseClient, collection: str, filter_query: str = "", sort: str = ""
) -> list[dict[str, Any]]:
    """Every matching row, read page by page until a short page comes back."""
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await db.list_records(
            collection=collection,
            page=page,
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
            filter_query=filter_query,
            sort=sort,
        )
        records.extend(batch)
        if len(batch) < constants.DEFAULT_PER_PAGE_LIMIT:
            return records
        page += 1


def sort_templates(templates: list[WeekTemplate]) -> list[WeekTemplate]:
    """Order templates by priority (highest first), then creation time (oldest first)."""
    return sorted(templates, key=lambda t: (-t.priority, t.created))


class RelationLoader:
    """Per-call memo of related records so a week only fetches each task/member once."""

    def __init__(self, db: DatabaseClient) -> None:
        self._db = db
        self._tasks: dict[str, Task] = {}
        self._members: dict[str, Member | None] = {}
        self._day_templates: dict[str, DayTemplate] = {}

    async def task(self, task_id: str) -> Task:
        """Fetch a task; a dangling task reference is a store error and propagates."""
        if task_id not in self._tasks:
            record = await self._db.get_record(collection="tasks", record_id=task_id)
            self._tasks[task_id] = Task.model_validate(record)
        return self._tasks[task_id]

    async def find_task(self, task_id: str) -> Task | None:
        """Fetch a task, returning None when it no longer exists."""
        try:
            return await self.task(task_id)
        except RecordNotFoundError:
            return None

    async def member(self, member_id: str | None) -> Member | None:
        """Fetch a member snapshot, None for unassigned or missing members."""
        if not member_id:
            return None
        if member_id not in self._members:
            try:
                record = await self._db.get_record(collection="members", record_id=member_id)
                self._members[member_id] = Member.model_validate(record)
            except RecordNotFoundError:
                logger.warning("Member not found: %s", member_id)
                self._members[member_id] = None
        return self._members[member_id]

    async def day_template(self, day_template_id: str) -> DayTemplate:
        """Fetch a day template with its items ordered by sort_order."""
        if day_template_id not in self._day_templates:
            record = await self._db.get_record(collection="day_templates", record_id=day_template_id)
            item_records = await list_all_records(
                db=self._db,
                collection="day_template_items",
                filter_query=f'day_template_id = "{sanitize_param(day_template_id)}"',
                sort="sort_order",
            )
            items = [
                DayTemplateItem.model_validate(
                    {
                        **item,
                        "task": await self.task(item["task_id"]),
                        "member": await self.member(item.get("member_id")),
                    }
                )
                for item in item_records
            ]
            self._day_templates[day_template_id] = DayTemplate.model_validate({**record, "items": items})
        return self._day_templates[day_template_id]

    async def week_template(self, record: dict[str, Any]) -> WeekTemplate:
        """Hydrate a week template record with its days, day templates and items."""
        day_records = await self._db.list_records(
            collection="week_template_days",
            filter_query=f'week_template_id = "{sanitize_param(record["id"])}"',
            sort="day_of_week",
            per_page=constants.DAYS_PER_WEEK,
        )
        days = [
            WeekTemplateDay(
                day_of_week=day["day_of_week"],
                day_template_id=day["day_template_id"],
                day_template=await self.day_template(day["day_template_id"]),
            )
            for day in day_records
        ]
        return WeekTemplate.model_validate({**record, "days": days})

    async def task_override(self, record: dict[str, Any]) -> TaskOverride:
        """Hydrate a task override record with its task and member snapshots."""
        return TaskOverride.model_validate(
            {
                **record,
                "task": await self.task(record["task_id"]),
                "original_member": await self.member(record.get("original_member_id")),
                "new_member": await self.member(record.get("new_member_id")),
            }
        )


async def get_week_template(*, db: DatabaseClient, template_id: str) -> WeekTemplate | None:
    """Fetch one week template with all relations, or None if it does not exist."""
    try:
        record = await db.get_record(collection="week_templates", record_id=template_id)
    except RecordNotFoundError:
        return None
    return await RelationLoader(db).week_template(record)


async def get_template_summary(*, db: DatabaseClient, template_id: str | None) -> TemplateSummary | None:
    """Fetch the identifying fields of a week template, or None."""
    if not template_id:
        return None
    try:
        record = await db.get_record(collection="week_templates", record_id=template_id)
    except RecordNotFoundError:
        return None
    return TemplateSummary.model_validate(record)


async def list_active_week_templates(*, db: DatabaseClient, family_id: str) -> list[WeekTemplate]:
    """All active week templates of a family, sorted for selection."""
    records = await list_all_records(
        db=db,
        collection="week_templates",
        filter_query=f'family_id = "{sanitize_param(family_id)}" && is_active = "true"',
    )
    loader = RelationLoader(db)
    templates = [await loader.week_template(record) for record in records]
    return sort_templates(templates)


async def find_week_override_record(
    *, db: DatabaseClient, family_id: str, week_start: date
) -> dict[str, Any] | None:
    """Raw week override row for (family, week), or None."""
    return await db.get_first_record(
        collection="week_overrides",
        filter_query=(
            f'family_id = "{sanitize_param(family_id)}" && week_start_date = "{week_start.isoformat()}"'
        ),
    )


async def list_task_override_records(
    *, db: DatabaseClient, week_override_id: str, filter_query: str = ""
) -> list[dict[str, Any]]:
    """Raw task override rows of a week override in insertion order, optionally narrowed further."""
    query = f'week_override_id = "{sanitize_param(week_override_id)}"'
    if filter_query:
        query = f"{query} && {filter_query}"
    return await list_all_records(db=db, collection="task_overrides", filter_query=query, sort="created")


async def hydrate_week_override(
    *, db: DatabaseClient, record: dict[str, Any], loader: RelationLoader | None = None
) -> WeekOverride:
    """Hydrate a week override row with its template summary and task overrides."""
    loader = loader or RelationLoader(db)
    task_override_records = await list_task_override_records(db=db, week_override_id=record["id"])
    return WeekOverride.model_validate(
        {
            **record,
            "week_template": await get_template_summary(db=db, template_id=record.get("week_template_id")),
            "task_overrides": [await loader.task_override(r) for r in task_override_records],
        }
    )


async def get_week_override_by_id(
    *, db: DatabaseClient, week_override_id: str, family_id: str
) -> WeekOverride | None:
    """Fetch a family's week override with all relations, or None."""
    record = await db.get_first_record(
        collection="week_overrides",
        filter_query=f'id = "{sanitize_param(week_override_id)}" && family_id = "{sanitize_param(family_id)}"',
    )
    if record is None:
        return None
    return await hydrate_week_override(db=db, record=record)
