"""Computed (never persisted) schedule models."""

import datetime as dt
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from src.domain.member import Member
from src.domain.task import Task
from src.domain.template import TemplateSummary


class TaskSource(StrEnum):
    """Where a resolved task entry came from."""

    TEMPLATE = "template"
    OVERRIDE = "override"


class ResolvedTask(BaseModel):
    """One task occurrence on a resolved day."""

    task_id: str
    member_id: str | None = None
    override_time: str | None = None
    override_duration: int | None = None
    source: TaskSource
    task: Task
    member: Member | None = None

    @property
    def effective_start_time(self) -> str:
        """Start time actually used for the day (HH:MM)."""
        return self.override_time or self.task.default_start_time

    @property
    def effective_duration(self) -> int:
        """Duration actually used for the day, in minutes."""
        return self.override_duration or self.task.default_duration


class ResolvedDaySchedule(BaseModel):
    """Final, time-sorted task list of one date."""

    date: dt.date
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    tasks: list[ResolvedTask] = Field(default_factory=list)


class ResolvedWeekSchedule(BaseModel):
    """Merge of the base template and the overrides of one week."""

    week_start_date: dt.date
    family_id: str
    base_template: TemplateSummary | None = None
    has_overrides: bool = False
    days: list[ResolvedDaySchedule] = Field(default_factory=list)


class ShiftInfo(BaseModel):
    """Where a member stands relative to their shift."""

    type: Literal["current", "next"]
    end_time: dt.datetime | None = Field(default=None, description="When the current shift ends")
    time_remaining: str | None = Field(default=None, description="Human readable time until the shift ends")
    start_time: dt.datetime | None = Field(default=None, description="When the next shift starts")
    time_until_start: str | None = Field(default=None, description="Human readable time until the shift starts")
