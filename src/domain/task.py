"""Task domain model and time-of-day helpers."""

import re

from pydantic import BaseModel, Field, field_validator

from src.core.config import Constants


# H:MM or HH:MM, 00:00-23:59
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def normalize_time(value: str) -> str:
    """Validate a time of day and zero-pad it to HH:MM.

    Zero-padded strings compare correctly as plain strings, which is what
    schedule sorting relies on.

    Raises:
        ValueError: If the value is not a valid H:MM / HH:MM time
    """
    match = TIME_PATTERN.match(value)
    if not match:
        msg = "Time must be in HH:MM format (e.g., 14:30)"
        raise ValueError(msg)
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    family_id: str = Field(..., description="Owning family ID")
    name: str = Field(..., description="Task name (e.g., 'Empty dishwasher')")
    description: str | None = Field(default=None, description="Detailed task description")
    color: str = Field(default="#6366F1", description="Display color as hex")
    icon: str = Field(default="task", description="Display icon name")
    default_start_time: str = Field(..., description="Default start time (HH:MM)")
    default_duration: int = Field(
        ..., ge=1, le=Constants.MAX_TASK_DURATION_MINUTES, description="Default duration in minutes"
    )
    is_active: bool = Field(default=True, description="Inactive tasks are hidden from new templates")

    @field_validator("default_start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        """Validate and zero-pad the default start time."""
        return normalize_time(v)
