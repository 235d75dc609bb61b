"""Shift status: is a member on shift right now, and until when?

A member's shift is the run of consecutive tasks assigned to them across the
week's timeline. It ends when the first later task belonging to someone else
starts.
"""

import logging
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from src.core.config import constants, settings
from src.core.db_client import DatabaseClient
from src.core.logging import span
from src.core.week_dates import get_week_start_date, parse_week_start_date
from src.domain.schedule import ResolvedTask, ResolvedWeekSchedule, ShiftInfo
from src.services.week_schedule_service import get_week_schedule


logger = logging.getLogger(__name__)

TimedTask = tuple[datetime, ResolvedTask]


def format_time_remaining(delta: timedelta) -> str:
    """Compact duration such as '2d 3h', '4h 5m' or '7m'."""
    total_minutes = max(int(delta.total_seconds() // 60), 0)
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    if days > 0:
        return f"{days}d {hours}h" if hours else f"{days}d"
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    return f"{minutes}m"


def timeline(schedule: ResolvedWeekSchedule, tz: ZoneInfo) -> list[TimedTask]:
    """Every task of the week with its start instant, in chronological order."""
    entries: list[TimedTask] = []
    for day in schedule.days:
        for task in day.tasks:
            start = time.fromisoformat(task.effective_start_time)
            entries.append((datetime.combine(day.date, start, tzinfo=tz), task))
    entries.sort(key=lambda entry: entry[0])
    return entries


def _end_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def _current(end: datetime, now: datetime) -> ShiftInfo:
    return ShiftInfo(type="current", end_time=end, time_remaining=format_time_remaining(end - now))


def _next(start: datetime, now: datetime) -> ShiftInfo:
    return ShiftInfo(type="next", start_time=start, time_until_start=format_time_remaining(start - now))


async def _next_week_timeline(
    *, db: DatabaseClient, family_id: str, week_start: date, tz: ZoneInfo
) -> list[TimedTask]:
    schedule = await get_week_schedule(
        db=db, family_id=family_id, week_start_date=week_start + timedelta(days=constants.DAYS_PER_WEEK)
    )
    return timeline(schedule, tz)


async def _shift_end_next_week(
    *, db: DatabaseClient, family_id: str, user_id: str, week_start: date, now: datetime, tz: ZoneInfo
) -> ShiftInfo:
    next_week_start = week_start + timedelta(days=constants.DAYS_PER_WEEK)
    try:
        entries = await _next_week_timeline(db=db, family_id=family_id, week_start=week_start, tz=tz)
    except Exception:
        logger.exception("Could not resolve next week for shift end, using end of week (family %s)", family_id)
        return _current(_end_of_day(next_week_start - timedelta(days=1), tz), now)

    handover = next((start for start, task in entries if task.member_id != user_id), None)
    if handover is not None:
        return _current(handover, now)
    return _current(_end_of_day(next_week_start + timedelta(days=constants.DAYS_PER_WEEK - 1), tz), now)


async def _next_shift_next_week(
    *, db: DatabaseClient, family_id: str, user_id: str, week_start: date, now: datetime, tz: ZoneInfo
) -> ShiftInfo | None:
    try:
        entries = await _next_week_timeline(db=db, family_id=family_id, week_start=week_start, tz=tz)
    except Exception:
        logger.exception("Could not resolve next week for next shift (family %s)", family_id)
        return None

    start = next((start for start, task in entries if task.member_id == user_id), None)
    return _next(start, now) if start is not None else None


async def get_shift_status(
    *,
    db: DatabaseClient,
    family_id: str,
    user_id: str,
    week_start_date: str | date | None = None,
    now: datetime | None = None,
) -> ShiftInfo | None:
    """Shift status of a member.

    Args:
        db: Store to read
        family_id: Family of the member
        user_id: Member to report on
        week_start_date: Week to inspect (defaults to the week containing ``now``)
        now: Reference instant (defaults to the current time; naive values are household time)

    Returns:
        A ``current`` shift with its end, the ``next`` shift with its start, or None
    """
    with span("shift_service.get_shift_status"):
        tz = ZoneInfo(settings.household_timezone)
        if now is None:
            now = datetime.now(tz)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=tz)

        week_start = (
            parse_week_start_date(week_start_date) if week_start_date else get_week_start_date(now.astimezone(tz))
        )
        schedule = await get_week_schedule(db=db, family_id=family_id, week_start_date=week_start)
        entries = timeline(schedule, tz)

        started = [(start, task) for start, task in entries if start <= now]
        if not started:
            first = next((start for start, task in entries if task.member_id == user_id), None)
            return _next(first, now) if first is not None else None

        latest_start, latest_task = started[-1]
        if latest_task.member_id == user_id:
            handover = next(
                (start for start, task in entries if start > latest_start and task.member_id != user_id), None
            )
            if handover is not None:
                return _current(handover, now)
            return await _shift_end_next_week(
                db=db, family_id=family_id, user_id=user_id, week_start=week_start, now=now, tz=tz
            )

        upcoming = next((start for start, task in entries if start > now and task.member_id == user_id), None)
        if upcoming is not None:
            return _next(upcoming, now)
        return await _next_shift_next_week(
            db=db, family_id=family_id, user_id=user_id, week_start=week_start, now=now, tz=tz
        )
