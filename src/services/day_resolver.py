"""Merge a day's template items with the task overrides of that date."""

from collections.abc import Iterable
from datetime import date
from typing import assert_never

from src.core.week_dates import day_of_week
from src.domain.override import OverrideAction, TaskOverride
from src.domain.schedule import ResolvedDaySchedule, ResolvedTask, TaskSource
from src.domain.template import WeekTemplate


def _seed_from_template(base_template: WeekTemplate | None, weekday: int) -> list[ResolvedTask]:
    """Resolved tasks from the template day bound to ``weekday`` (0=Sunday)."""
    template_day = base_template.day_for(weekday) if base_template else None
    if template_day is None:
        return []
    return [
        ResolvedTask(
            task_id=item.task_id,
            member_id=item.member_id,
            override_time=item.override_time,
            override_duration=item.override_duration,
            source=TaskSource.TEMPLATE,
            task=item.task,
            member=item.member,
        )
        for item in template_day.day_template.items
    ]


def apply_override(tasks: list[ResolvedTask], override: TaskOverride) -> list[ResolvedTask]:
    """Apply one override to a day's task list and return the new list."""
    match override.action:
        case OverrideAction.ADD:
            # Duplicate ADDs are kept
            return [
                *tasks,
                ResolvedTask(
                    task_id=override.task_id,
                    member_id=override.new_member_id,
                    override_time=override.override_time,
                    override_duration=override.override_duration,
                    source=TaskSource.OVERRIDE,
                    task=override.task,
                    member=override.new_member,
                ),
            ]
        case OverrideAction.REMOVE:
            return [task for task in tasks if task.task_id != override.task_id]
        case OverrideAction.REASSIGN:
            target = next((task for task in tasks if task.task_id == override.task_id), None)
            if target is None:
                return tasks
            target.member_id = override.new_member_id
            target.member = override.new_member
            target.source = TaskSource.OVERRIDE
            # None keeps the template's time/duration
            if override.override_time is not None:
                target.override_time = override.override_time
            if override.override_duration is not None:
                target.override_duration = override.override_duration
            return tasks
        case _:
            assert_never(override.action)


def resolve_day(
    base_template: WeekTemplate | None,
    day: date,
    overrides: Iterable[TaskOverride],
) -> ResolvedDaySchedule:
    """Resolve the final, time-sorted task list of one date.

    Args:
        base_template: Week template in effect (None means an empty baseline)
        day: The calendar date being resolved
        overrides: Task overrides; only those assigned to ``day`` are applied, in order

    Returns:
        The resolved day, tasks sorted by effective start time
    """
    weekday = day_of_week(day)
    tasks = _seed_from_template(base_template, weekday)

    for override in overrides:
        if override.assigned_date == day:
            tasks = apply_override(tasks, override)

    tasks.sort(key=lambda task: task.effective_start_time)
    return ResolvedDaySchedule(date=day, day_of_week=weekday, tasks=tasks)
