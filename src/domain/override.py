"""Week and task override domain models and enums."""

from datetime import date
from enum import Enum, StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints, field_validator

from src.core.errors import InvalidDateFormatError
from src.core.week_dates import parse_iso_date
from src.domain.member import Member
from src.domain.task import Task, normalize_time
from src.domain.template import TemplateSummary


NonEmptyId = Annotated[str, StringConstraints(min_length=1)]


class OverrideAction(StrEnum):
    """What a task override does to the resolved day."""

    ADD = "ADD"
    REMOVE = "REMOVE"
    REASSIGN = "REASSIGN"


class OverrideScope(StrEnum):
    """Which existing task overrides an apply call clears before inserting."""

    DAY = "day"  # every override on the dates being written
    WEEK = "week"  # every override of the week
    TASK = "task"  # only the (date, task) slots being written


class Unset(Enum):
    """Marker for an argument the caller did not provide (distinct from None)."""

    TOKEN = "UNSET"


UNSET = Unset.TOKEN


class TaskOverrideDraft(BaseModel):
    """Task override as submitted by a caller, before persistence."""

    assigned_date: date = Field(..., description="Date the override applies to (YYYY-MM-DD)")
    task_id: NonEmptyId = Field(..., description="Task the override targets")
    action: OverrideAction = Field(..., description="ADD, REMOVE or REASSIGN")
    original_member_id: NonEmptyId | None = Field(default=None, description="Member who had the task")
    new_member_id: NonEmptyId | None = Field(default=None, description="Member who gets the task")
    override_time: str | None = Field(default=None, description="Start time (HH:MM), None keeps the default")
    override_duration: int | None = Field(default=None, gt=0, description="Duration in minutes, None keeps default")

    @field_validator("assigned_date", mode="before")
    @classmethod
    def validate_assigned_date(cls, v: Any) -> date:
        """Require a strict YYYY-MM-DD date."""
        try:
            return parse_iso_date(v, field="assigned_date")
        except InvalidDateFormatError as e:
            raise ValueError(str(e)) from e

    @field_validator("override_time")
    @classmethod
    def validate_override_time(cls, v: str | None) -> str | None:
        """Validate and zero-pad the override time."""
        return normalize_time(v) if v is not None else None

    @property
    def slot(self) -> tuple[date, str]:
        """Key identifying the (date, task) slot this draft writes."""
        return (self.assigned_date, self.task_id)


class TaskOverride(BaseModel):
    """Persisted task override with its related records."""

    id: str = Field(..., description="Unique task override ID")
    week_override_id: str = Field(..., description="Parent week override ID")
    assigned_date: date = Field(..., description="Date the override applies to")
    task_id: str = Field(..., description="Task the override targets")
    action: OverrideAction = Field(..., description="ADD, REMOVE or REASSIGN")
    original_member_id: str | None = None
    new_member_id: str | None = None
    override_time: str | None = None
    override_duration: int | None = None
    task: Task = Field(..., description="Task snapshot")
    original_member: Member | None = None
    new_member: Member | None = None


class WeekOverride(BaseModel):
    """Per-family, per-week record pinning a template and holding task overrides."""

    id: str = Field(..., description="Unique week override ID")
    family_id: str = Field(..., description="Owning family ID")
    week_start_date: date = Field(..., description="Monday of the week")
    week_template_id: str | None = Field(default=None, description="Pinned template for this week only")
    week_template: TemplateSummary | None = None
    task_overrides: list[TaskOverride] = Field(default_factory=list)
    created: str = ""
    updated: str = ""
