"""Unit tests for schedule domain models."""

from datetime import date

import pytest
from pydantic import ValidationError

from src.domain.create_models import WeekOverrideApply
from src.domain.member import Member
from src.domain.override import UNSET, OverrideAction, OverrideScope, TaskOverrideDraft
from src.domain.schedule import ResolvedTask, TaskSource
from src.domain.task import Task, normalize_time
from src.domain.template import DayTemplate, WeekTemplate, WeekTemplateDay


def _task(**fields) -> Task:
    defaults = {
        "id": "t1",
        "family_id": "fam1",
        "name": "Dishes",
        "default_start_time": "18:00",
        "default_duration": 20,
    }
    return Task(**{**defaults, **fields})


@pytest.mark.unit
class TestNormalizeTime:
    """Time-of-day validation."""

    @pytest.mark.parametrize(
        ("value", "expected"), [("7:05", "07:05"), ("07:05", "07:05"), ("23:59", "23:59"), ("0:00", "00:00")]
    )
    def test_valid(self, value, expected):
        assert normalize_time(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "1200", "12:5", "", "ab:cd"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="HH:MM"):
            normalize_time(value)


@pytest.mark.unit
class TestTask:
    """Task model constraints."""

    def test_start_time_padded(self):
        assert _task(default_start_time="8:30").default_start_time == "08:30"

    @pytest.mark.parametrize("duration", [0, 1441])
    def test_duration_bounds(self, duration):
        with pytest.raises(ValidationError):
            _task(default_duration=duration)


@pytest.mark.unit
class TestTaskOverrideDraft:
    """Draft validation."""

    def test_parses_strict_date(self):
        draft = TaskOverrideDraft(assigned_date="2024-01-01", task_id="t1", action="REMOVE")

        assert draft.assigned_date == date(2024, 1, 1)
        assert draft.action == OverrideAction.REMOVE
        assert draft.slot == (date(2024, 1, 1), "t1")

    @pytest.mark.parametrize("value", ["2024/01/01", "2024-02-30", 20240101])
    def test_rejects_bad_date(self, value):
        with pytest.raises(ValidationError, match="assigned_date"):
            TaskOverrideDraft(assigned_date=value, task_id="t1", action="REMOVE")

    def test_rejects_empty_member_id(self):
        with pytest.raises(ValidationError):
            TaskOverrideDraft(assigned_date="2024-01-01", task_id="t1", action="ADD", new_member_id="")

    def test_null_time_and_duration_allowed(self):
        draft = TaskOverrideDraft(assigned_date="2024-01-01", task_id="t1", action="REASSIGN")

        assert draft.override_time is None
        assert draft.override_duration is None


@pytest.mark.unit
class TestWeekTemplate:
    """Week template bindings."""

    def test_rejects_duplicate_weekday(self):
        day_template = DayTemplate(id="dt1", family_id="fam1", name="Day")
        days = [WeekTemplateDay(day_of_week=1, day_template_id="dt1", day_template=day_template)] * 2

        with pytest.raises(ValidationError, match="only once"):
            WeekTemplate(id="w1", family_id="fam1", name="Normal", days=days)

    def test_rejects_out_of_range_weekday(self):
        with pytest.raises(ValidationError):
            WeekTemplateDay(
                day_of_week=7, day_template_id="dt1", day_template=DayTemplate(id="dt1", family_id="fam1", name="Day")
            )


@pytest.mark.unit
class TestResolvedTask:
    """Effective time and duration."""

    def test_defaults_from_task(self):
        resolved = ResolvedTask(task_id="t1", source=TaskSource.TEMPLATE, task=_task())

        assert resolved.effective_start_time == "18:00"
        assert resolved.effective_duration == 20

    def test_overrides_win(self):
        resolved = ResolvedTask(
            task_id="t1", source=TaskSource.OVERRIDE, task=_task(), override_time="06:00", override_duration=5
        )

        assert resolved.effective_start_time == "06:00"
        assert resolved.effective_duration == 5


@pytest.mark.unit
class TestWeekOverrideApply:
    """Inbound payload parsing."""

    def test_omitted_pin_is_unset(self):
        request = WeekOverrideApply.model_validate({"week_start_date": "2024-01-01"})

        assert request.template_pin() is UNSET
        assert request.replace_existing is False
        assert request.scope is None

    def test_explicit_null_pin(self):
        request = WeekOverrideApply.model_validate({"week_start_date": "2024-01-01", "week_template_id": None})

        assert request.template_pin() is None

    def test_explicit_scope(self):
        request = WeekOverrideApply.model_validate({"week_start_date": "2024-01-01", "scope": "week"})

        assert request.scope == OverrideScope.WEEK


@pytest.mark.unit
def test_member_display_name():
    assert Member(id="m1", first_name="Alice", last_name="Smith").display_name == "Alice Smith"
    assert Member(id="m2", first_name="Bob").display_name == "Bob"


@pytest.mark.unit
def test_week_override_apply_rejects_empty_pin():
    with pytest.raises(ValidationError, match="week_template_id"):
        WeekOverrideApply.model_validate({"week_start_date": "2024-01-01", "week_template_id": ""})
