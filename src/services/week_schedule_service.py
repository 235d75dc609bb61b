"""Week schedule service: merge the week's template with its overrides."""

import logging
from datetime import date

from src.core.db_client import DatabaseClient
from src.core.logging import span
from src.core.week_dates import parse_week_start_date, week_dates
from src.domain.override import TaskOverride
from src.domain.schedule import ResolvedWeekSchedule
from src.domain.template import WeekTemplate
from src.services import record_loader
from src.services.day_resolver import resolve_day
from src.services.template_selector import get_applicable_week_template


logger = logging.getLogger(__name__)


async def _base_template(
    *, db: DatabaseClient, family_id: str, week_start: date, pinned_id: str | None
) -> WeekTemplate | None:
    """Template pinned on the week override, else the rule-selected one."""
    if pinned_id:
        template = await record_loader.get_week_template(db=db, template_id=pinned_id)
        if template is not None:
            return template
        logger.warning(
            "Pinned week template %s no longer exists, falling back to selection for family %s week %s",
            pinned_id,
            family_id,
            week_start.isoformat(),
        )
    return await get_applicable_week_template(db=db, family_id=family_id, week_start=week_start)


async def get_week_schedule(
    *, db: DatabaseClient, family_id: str, week_start_date: str | date
) -> ResolvedWeekSchedule:
    """Resolve the seven days of a family's week.

    Args:
        db: Store to read
        family_id: Family owning the schedule
        week_start_date: Monday of the week (YYYY-MM-DD)

    Returns:
        The resolved week; days are Monday..Sunday with time-sorted tasks

    Raises:
        InvalidDateFormatError: If week_start_date is not YYYY-MM-DD
        InvalidWeekStartError: If week_start_date is not a Monday
    """
    with span("week_schedule_service.get_week_schedule"):
        week_start = parse_week_start_date(week_start_date)

        override_record = await record_loader.find_week_override_record(
            db=db, family_id=family_id, week_start=week_start
        )
        overrides: list[TaskOverride] = []
        pinned_id = None
        if override_record is not None:
            week_override = await record_loader.hydrate_week_override(db=db, record=override_record)
            overrides = week_override.task_overrides
            pinned_id = week_override.week_template_id

        template = await _base_template(db=db, family_id=family_id, week_start=week_start, pinned_id=pinned_id)

        schedule = ResolvedWeekSchedule(
            week_start_date=week_start,
            family_id=family_id,
            base_template=template.summary() if template else None,
            has_overrides=override_record is not None,
            days=[resolve_day(template, day, overrides) for day in week_dates(week_start)],
        )
        logger.debug(
            "Resolved week %s for family %s: template=%s overrides=%d",
            week_start.isoformat(),
            family_id,
            template.id if template else None,
            len(overrides),
        )
        return schedule
