"""Pydantic models for requests that write schedule records."""

from typing import Any

from pydantic import BaseModel, Field

from src.domain.override import UNSET, NonEmptyId, OverrideScope, Unset


class WeekOverrideApply(BaseModel):
    """Inbound payload for applying overrides to one week.

    ``task_overrides`` stay raw here so the whole batch is validated by the
    override service in one pass.
    """

    week_start_date: str = Field(..., description="Monday of the week (YYYY-MM-DD)")
    week_template_id: NonEmptyId | None = Field(
        default=None, description="Template to pin; omit to keep the current pin"
    )
    task_overrides: list[dict[str, Any]] = Field(default_factory=list, description="Task override drafts")
    replace_existing: bool = Field(default=False, description="Replace the day/week instead of single slots")
    scope: OverrideScope | None = Field(default=None, description="Explicit deletion scope (overrides inference)")

    def template_pin(self) -> str | None | Unset:
        """The template pin, or UNSET when the caller left the field out."""
        if "week_template_id" not in self.model_fields_set:
            return UNSET
        return self.week_template_id
