#!/usr/bin/env python3
"""Print the resolved schedule of one family week.

Usage:
    uv run python scripts/show_week.py <family_id>
    uv run python scripts/show_week.py <family_id> --week 2024-01-01
    uv run python scripts/show_week.py <family_id> --member <member_id>
"""

import argparse
import asyncio
import logging
import sys

from src.core.db_client import open_client
from src.core.errors import ScheduleError
from src.core.logging import configure_logfire
from src.core.week_dates import get_week_start_date
from src.domain.schedule import ResolvedWeekSchedule
from src.services.shift_service import get_shift_status
from src.services.week_schedule_service import get_week_schedule


logger = logging.getLogger(__name__)


def print_schedule(schedule: ResolvedWeekSchedule) -> None:
    """Log each day of the schedule with its tasks."""
    template = schedule.base_template.name if schedule.base_template else "(none)"
    logger.info("Week of %s, template: %s", schedule.week_start_date.isoformat(), template)
    if schedule.has_overrides:
        logger.info("This week has overrides")

    for day in schedule.days:
        logger.info("%s", f"{day.date:%A %Y-%m-%d}")
        if not day.tasks:
            logger.info("    -")
        for task in day.tasks:
            who = task.member.display_name if task.member else "unassigned"
            logger.info(
                "    %s %s (%d min) %s [%s]",
                task.effective_start_time,
                task.task.name,
                task.effective_duration,
                who,
                task.source,
            )


async def show_week(family_id: str, week: str | None, member_id: str | None, db_path: str | None) -> None:
    """Resolve and print one week, optionally with a member's shift status."""
    db = await open_client(db_path=db_path)
    try:
        week_start = week or get_week_start_date().isoformat()
        schedule = await get_week_schedule(db=db, family_id=family_id, week_start_date=week_start)
        print_schedule(schedule)

        if member_id:
            shift = await get_shift_status(db=db, family_id=family_id, user_id=member_id, week_start_date=week_start)
            if shift is None:
                logger.info("No shift for %s this week", member_id)
            elif shift.type == "current":
                logger.info("On shift, ends in %s", shift.time_remaining)
            else:
                logger.info("Next shift starts in %s", shift.time_until_start)
    finally:
        await db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("family_id")
    parser.add_argument("--week", default=None, help="Monday of the week, YYYY-MM-DD (defaults to this week)")
    parser.add_argument("--member", default=None, help="Also show this member's shift status")
    parser.add_argument("--db-path", default=None, help="SQLite file (defaults to SQLITE_DB_PATH)")
    args = parser.parse_args()
    configure_logfire()

    try:
        asyncio.run(show_week(args.family_id, args.week, args.member, args.db_path))
    except ScheduleError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
