"""Unit tests for week schedule resolution."""

from datetime import date

import pytest

from src.core.errors import InvalidDateFormatError, InvalidWeekStartError
from src.domain.schedule import TaskSource
from src.services import override_service
from src.services.week_schedule_service import get_week_schedule


WEEK = "2024-01-01"


@pytest.fixture
def household(family):
    ids = {
        "m1": family.member("Alice"),
        "m2": family.member("Bob"),
        "t1": family.task("Dishes", "18:00"),
        "t2": family.task("Laundry", "09:00"),
    }
    monday = family.day_template("Monday", [{"task_id": ids["t1"], "member_id": ids["m1"]}])
    weekend = family.day_template("Weekend", [{"task_id": ids["t2"], "member_id": ids["m2"]}])
    ids["w"] = family.week_template("Normal", {1: monday}, is_default=True)
    ids["weekend_only"] = family.week_template("Weekend only", {0: weekend, 6: weekend})
    return ids


async def _schedule(db, week=WEEK):
    return await get_week_schedule(db=db, family_id="fam1", week_start_date=week)


@pytest.mark.unit
class TestGetWeekSchedule:
    """Resolved view of a family's week."""

    @pytest.mark.asyncio
    async def test_template_only_week(self, in_memory_db, household):
        schedule = await _schedule(in_memory_db)

        assert schedule.week_start_date == date(2024, 1, 1)
        assert schedule.base_template.id == household["w"]
        assert schedule.has_overrides is False
        assert [day.date for day in schedule.days] == [date(2024, 1, d) for d in range(1, 8)]
        assert [day.day_of_week for day in schedule.days] == [1, 2, 3, 4, 5, 6, 0]

        monday = schedule.days[0].tasks
        assert [(t.task_id, t.member_id, t.source) for t in monday] == [
            (household["t1"], household["m1"], TaskSource.TEMPLATE)
        ]
        assert all(day.tasks == [] for day in schedule.days[1:])

    @pytest.mark.asyncio
    async def test_reassign_end_to_end(self, in_memory_db, household):
        await override_service.apply_week_override(
            db=in_memory_db,
            family_id="fam1",
            week_start_date=WEEK,
            task_overrides=[
                {
                    "assigned_date": WEEK,
                    "task_id": household["t1"],
                    "action": "REASSIGN",
                    "original_member_id": household["m1"],
                    "new_member_id": household["m2"],
                }
            ],
            replace_existing=False,
        )

        schedule = await _schedule(in_memory_db)

        assert schedule.has_overrides is True
        monday = schedule.days[0].tasks
        assert [(t.task_id, t.member_id, t.source) for t in monday] == [
            (household["t1"], household["m2"], TaskSource.OVERRIDE)
        ]
        assert monday[0].member.first_name == "Bob"

    @pytest.mark.asyncio
    async def test_has_overrides_with_empty_week_override(self, in_memory_db, household):
        await override_service.apply_week_override(
            db=in_memory_db, family_id="fam1", week_start_date=WEEK, task_overrides=[]
        )

        schedule = await _schedule(in_memory_db)

        assert schedule.has_overrides is True
        assert len(schedule.days[0].tasks) == 1

    @pytest.mark.asyncio
    async def test_pinned_template_replaces_selection(self, in_memory_db, household):
        await override_service.apply_week_override(
            db=in_memory_db,
            family_id="fam1",
            week_start_date=WEEK,
            task_overrides=[],
            week_template_id=household["weekend_only"],
        )

        schedule = await _schedule(in_memory_db)

        assert schedule.base_template.name == "Weekend only"
        assert schedule.days[0].tasks == []
        assert [t.task_id for t in schedule.days[5].tasks] == [household["t2"]]  # Saturday
        assert [t.task_id for t in schedule.days[6].tasks] == [household["t2"]]  # Sunday

    @pytest.mark.asyncio
    async def test_pin_only_affects_its_week(self, in_memory_db, household):
        await override_service.apply_week_override(
            db=in_memory_db,
            family_id="fam1",
            week_start_date=WEEK,
            task_overrides=[],
            week_template_id=household["weekend_only"],
        )

        next_week = await _schedule(in_memory_db, "2024-01-08")

        assert next_week.base_template.id == household["w"]
        assert next_week.has_overrides is False

    @pytest.mark.asyncio
    async def test_missing_pinned_template_falls_back(self, in_memory_db, household):
        in_memory_db.seed(
            "week_overrides", {"family_id": "fam1", "week_start_date": WEEK, "week_template_id": "deleted"}
        )

        schedule = await _schedule(in_memory_db)

        assert schedule.base_template.id == household["w"]
        assert schedule.has_overrides is True

    @pytest.mark.asyncio
    async def test_no_templates_gives_empty_week(self, in_memory_db):
        schedule = await _schedule(in_memory_db)

        assert schedule.base_template is None
        assert len(schedule.days) == 7
        assert all(day.tasks == [] for day in schedule.days)

    @pytest.mark.asyncio
    async def test_add_override_sorted_into_day(self, in_memory_db, household):
        await override_service.apply_week_override(
            db=in_memory_db,
            family_id="fam1",
            week_start_date=WEEK,
            task_overrides=[
                {
                    "assigned_date": WEEK,
                    "task_id": household["t2"],
                    "action": "ADD",
                    "new_member_id": household["m2"],
                    "override_time": "09:00",
                    "override_duration": 30,
                }
            ],
        )

        monday = (await _schedule(in_memory_db)).days[0].tasks

        assert [(t.task_id, t.source) for t in monday] == [
            (household["t2"], TaskSource.OVERRIDE),
            (household["t1"], TaskSource.TEMPLATE),
        ]

    @pytest.mark.asyncio
    async def test_other_family_overrides_invisible(self, in_memory_db, household):
        in_memory_db.seed("week_overrides", {"family_id": "fam2", "week_start_date": WEEK, "week_template_id": None})

        schedule = await _schedule(in_memory_db)

        assert schedule.has_overrides is False

    @pytest.mark.asyncio
    async def test_rejects_non_monday(self, in_memory_db):
        with pytest.raises(InvalidWeekStartError):
            await _schedule(in_memory_db, "2024-01-03")

    @pytest.mark.asyncio
    async def test_rejects_malformed_date(self, in_memory_db):
        with pytest.raises(InvalidDateFormatError):
            await _schedule(in_memory_db, "01-01-2024")

    @pytest.mark.asyncio
    async def test_revert_restores_template(self, in_memory_db, household):
        await override_service.apply_week_override(
            db=in_memory_db,
            family_id="fam1",
            week_start_date=WEEK,
            task_overrides=[{"assigned_date": WEEK, "task_id": household["t1"], "action": "REMOVE"}],
        )
        assert (await _schedule(in_memory_db)).days[0].tasks == []

        await override_service.remove_week_override(db=in_memory_db, family_id="fam1", week_start_date=WEEK)

        schedule = await _schedule(in_memory_db)
        assert schedule.has_overrides is False
        assert len(schedule.days[0].tasks) == 1

    @pytest.mark.asyncio
    async def test_resolves_more_overrides_than_one_page(self, in_memory_db, household):
        week = await override_service.apply_week_override(
            db=in_memory_db, family_id="fam1", week_start_date=WEEK, task_overrides=[]
        )
        for _ in range(510):
            in_memory_db.seed(
                "task_overrides",
                {
                    "week_override_id": week.id,
                    "assigned_date": "2024-01-02",
                    "task_id": household["t2"],
                    "action": "ADD",
                    "new_member_id": household["m1"],
                },
            )

        tuesday = (await _schedule(in_memory_db)).days[1].tasks

        assert len(tuesday) == 510
