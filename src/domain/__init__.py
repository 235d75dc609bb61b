"""Domain models and DTOs."""

from src.domain.create_models import WeekOverrideApply
from src.domain.member import Member
from src.domain.override import (
    UNSET,
    OverrideAction,
    OverrideScope,
    TaskOverride,
    TaskOverrideDraft,
    Unset,
    WeekOverride,
)
from src.domain.schedule import ResolvedDaySchedule, ResolvedTask, ResolvedWeekSchedule, ShiftInfo, TaskSource
from src.domain.task import Task
from src.domain.template import ApplyRule, DayTemplate, DayTemplateItem, TemplateSummary, WeekTemplate, WeekTemplateDay


__all__ = [
    "UNSET",
    "ApplyRule",
    "DayTemplate",
    "DayTemplateItem",
    "Member",
    "OverrideAction",
    "OverrideScope",
    "ResolvedDaySchedule",
    "ResolvedTask",
    "ResolvedWeekSchedule",
    "ShiftInfo",
    "Task",
    "TaskOverride",
    "TaskOverrideDraft",
    "TaskSource",
    "TemplateSummary",
    "Unset",
    "WeekOverride",
    "WeekOverrideApply",
    "WeekTemplate",
    "WeekTemplateDay",
]
