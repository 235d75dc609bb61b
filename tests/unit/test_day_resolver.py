"""Unit tests for merging a day's template items with its overrides."""

from datetime import date

import pytest

from src.domain.member import Member
from src.domain.override import OverrideAction, TaskOverride
from src.domain.schedule import TaskSource
from src.domain.task import Task
from src.domain.template import DayTemplate, DayTemplateItem, WeekTemplate, WeekTemplateDay
from src.services.day_resolver import apply_override, resolve_day


MONDAY = date(2024, 1, 1)
TUESDAY = date(2024, 1, 2)

ALICE = Member(id="alice", family_id="fam1", first_name="Alice")
BOB = Member(id="bob", family_id="fam1", first_name="Bob")
DISHES = Task(id="dishes", family_id="fam1", name="Dishes", default_start_time="18:00", default_duration=20)
BREAKFAST = Task(id="breakfast", family_id="fam1", name="Breakfast", default_start_time="07:30", default_duration=30)
TRASH = Task(id="trash", family_id="fam1", name="Trash", default_start_time="20:00", default_duration=5)


def _item(task: Task, member: Member | None, **fields) -> DayTemplateItem:
    return DayTemplateItem(
        id=f"item-{task.id}",
        task_id=task.id,
        member_id=member.id if member else None,
        task=task,
        member=member,
        **fields,
    )


def _template(items_by_dow: dict[int, list[DayTemplateItem]]) -> WeekTemplate:
    return WeekTemplate(
        id="wt1",
        family_id="fam1",
        name="Normal",
        days=[
            WeekTemplateDay(
                day_of_week=dow,
                day_template_id=f"dt{dow}",
                day_template=DayTemplate(id=f"dt{dow}", family_id="fam1", name=f"Day {dow}", items=items),
            )
            for dow, items in items_by_dow.items()
        ],
    )


def _override(action: OverrideAction, task: Task, *, day: date = MONDAY, new: Member | None = None, **fields):
    return TaskOverride(
        id=f"ov-{task.id}-{action}",
        week_override_id="wo1",
        assigned_date=day,
        task_id=task.id,
        action=action,
        new_member_id=new.id if new else None,
        task=task,
        new_member=new,
        **fields,
    )


@pytest.fixture
def base_template():
    # Monday is day_of_week 1
    return _template({1: [_item(DISHES, ALICE), _item(BREAKFAST, BOB)]})


@pytest.mark.unit
class TestResolveDay:
    """Template seeding, override application and ordering."""

    def test_template_only_sorted_by_time(self, base_template):
        day = resolve_day(base_template, MONDAY, [])

        assert day.date == MONDAY
        assert day.day_of_week == 1
        assert [t.task_id for t in day.tasks] == ["breakfast", "dishes"]
        assert all(t.source == TaskSource.TEMPLATE for t in day.tasks)

    def test_no_template_is_empty(self):
        assert resolve_day(None, MONDAY, []).tasks == []

    def test_unbound_weekday_is_empty(self, base_template):
        assert resolve_day(base_template, TUESDAY, []).tasks == []

    def test_add_on_unbound_day(self, base_template):
        day = resolve_day(base_template, TUESDAY, [_override(OverrideAction.ADD, TRASH, day=TUESDAY, new=BOB)])

        assert len(day.tasks) == 1
        assert day.tasks[0].member_id == "bob"
        assert day.tasks[0].source == TaskSource.OVERRIDE

    def test_add_duplicate_is_kept(self, base_template):
        day = resolve_day(base_template, MONDAY, [_override(OverrideAction.ADD, DISHES, new=BOB)])

        assert [t.task_id for t in day.tasks].count("dishes") == 2

    def test_remove_drops_every_occurrence(self, base_template):
        overrides = [
            _override(OverrideAction.ADD, DISHES, new=BOB),
            _override(OverrideAction.REMOVE, DISHES),
        ]

        day = resolve_day(base_template, MONDAY, overrides)

        assert [t.task_id for t in day.tasks] == ["breakfast"]

    def test_reassign_first_match(self, base_template):
        day = resolve_day(base_template, MONDAY, [_override(OverrideAction.REASSIGN, DISHES, new=BOB)])

        dishes = next(t for t in day.tasks if t.task_id == "dishes")
        assert dishes.member_id == "bob"
        assert dishes.member.first_name == "Bob"
        assert dishes.source == TaskSource.OVERRIDE
        assert dishes.effective_start_time == "18:00"

    def test_reassign_time_resorts_day(self, base_template):
        override = _override(OverrideAction.REASSIGN, DISHES, new=BOB, override_time="06:00", override_duration=45)

        day = resolve_day(base_template, MONDAY, [override])

        assert [t.task_id for t in day.tasks] == ["dishes", "breakfast"]
        assert day.tasks[0].effective_duration == 45

    def test_reassign_without_time_keeps_template_time(self):
        template = _template({1: [_item(DISHES, ALICE, override_time="19:15", override_duration=10)]})

        day = resolve_day(template, MONDAY, [_override(OverrideAction.REASSIGN, DISHES, new=BOB)])

        assert day.tasks[0].effective_start_time == "19:15"
        assert day.tasks[0].effective_duration == 10

    def test_reassign_absent_task_is_noop(self, base_template):
        day = resolve_day(base_template, MONDAY, [_override(OverrideAction.REASSIGN, TRASH, new=BOB)])

        assert [t.task_id for t in day.tasks] == ["breakfast", "dishes"]

    def test_reassign_to_unassigned(self, base_template):
        day = resolve_day(base_template, MONDAY, [_override(OverrideAction.REASSIGN, DISHES, new=None)])

        dishes = next(t for t in day.tasks if t.task_id == "dishes")
        assert dishes.member_id is None
        assert dishes.member is None

    def test_overrides_for_other_dates_ignored(self, base_template):
        day = resolve_day(base_template, MONDAY, [_override(OverrideAction.REMOVE, DISHES, day=TUESDAY)])

        assert len(day.tasks) == 2

    def test_template_is_not_mutated(self, base_template):
        resolve_day(base_template, MONDAY, [_override(OverrideAction.REASSIGN, DISHES, new=BOB)])

        assert base_template.day_for(1).day_template.items[0].member_id == "alice"


@pytest.mark.unit
class TestApplyOverride:
    """Single-override semantics."""

    def test_add_uses_override_time(self):
        tasks = apply_override([], _override(OverrideAction.ADD, TRASH, new=ALICE, override_time="21:00"))

        assert tasks[0].effective_start_time == "21:00"
        assert tasks[0].effective_duration == 5

    def test_remove_absent_is_noop(self):
        assert apply_override([], _override(OverrideAction.REMOVE, TRASH)) == []
