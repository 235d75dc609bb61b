"""Day and week template domain models."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from src.domain.member import Member
from src.domain.task import Task, normalize_time


class ApplyRule(StrEnum):
    """Which ISO weeks a week template applies to."""

    NONE = "NONE"
    EVEN_WEEKS = "EVEN_WEEKS"
    ODD_WEEKS = "ODD_WEEKS"


class DayTemplateItem(BaseModel):
    """One task assignment inside a day template."""

    id: str = Field(..., description="Unique item ID")
    task_id: str = Field(..., description="Assigned task ID")
    member_id: str | None = Field(default=None, description="Assigned member ID (None = unassigned)")
    override_time: str | None = Field(default=None, description="Start time replacing the task default (HH:MM)")
    override_duration: int | None = Field(default=None, gt=0, description="Duration replacing the task default")
    sort_order: int = Field(default=0, description="Position within the day template")
    task: Task = Field(..., description="Task snapshot")
    member: Member | None = Field(default=None, description="Member snapshot")

    @field_validator("override_time")
    @classmethod
    def validate_override_time(cls, v: str | None) -> str | None:
        """Validate and zero-pad the override time."""
        return normalize_time(v) if v is not None else None


class DayTemplate(BaseModel):
    """Reusable set of task assignments for a single day."""

    id: str = Field(..., description="Unique day template ID")
    family_id: str = Field(..., description="Owning family ID")
    name: str = Field(..., description="Day template name (e.g., 'School day')")
    description: str | None = Field(default=None, description="Optional description")
    items: list[DayTemplateItem] = Field(default_factory=list, description="Items ordered by sort_order")


class WeekTemplateDay(BaseModel):
    """Binding of a weekday to a day template."""

    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    day_template_id: str = Field(..., description="Day template used on this weekday")
    day_template: DayTemplate = Field(..., description="Day template with its items")


class TemplateSummary(BaseModel):
    """Identifying fields of a week template."""

    id: str
    name: str
    description: str | None = None


class WeekTemplate(BaseModel):
    """Reusable weekly schedule skeleton with rule-based applicability."""

    id: str = Field(..., description="Unique week template ID")
    family_id: str = Field(..., description="Owning family ID")
    name: str = Field(..., description="Week template name")
    description: str | None = Field(default=None, description="Optional description")
    is_active: bool = Field(default=True, description="Only active templates take part in selection")
    is_default: bool = Field(default=False, description="Default templates apply to every week")
    apply_rule: ApplyRule = Field(default=ApplyRule.NONE, description="ISO week parity rule")
    priority: int = Field(default=0, description="Higher priority wins")
    created: str = Field(default="", description="Creation timestamp (ISO format), tie-break for priority")
    days: list[WeekTemplateDay] = Field(default_factory=list, description="Up to one binding per weekday")

    @field_validator("days")
    @classmethod
    def validate_unique_days(cls, v: list[WeekTemplateDay]) -> list[WeekTemplateDay]:
        """Allow at most one binding per weekday."""
        seen = [day.day_of_week for day in v]
        if len(seen) != len(set(seen)):
            msg = "A week template can bind each day of week only once"
            raise ValueError(msg)
        return v

    def day_for(self, day_of_week: int) -> WeekTemplateDay | None:
        """Return the binding for a weekday (0=Sunday), if any."""
        return next((day for day in self.days if day.day_of_week == day_of_week), None)

    def summary(self) -> TemplateSummary:
        """Identifying fields only."""
        return TemplateSummary(id=self.id, name=self.name, description=self.description)
