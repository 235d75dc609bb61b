"""Rule-based week template selection."""

import logging
from datetime import date

from src.core.db_client import DatabaseClient
from src.core.logging import span
from src.core.week_dates import iso_week_number
from src.domain.template import ApplyRule, WeekTemplate
from src.services import record_loader


logger = logging.getLogger(__name__)


def is_applicable(template: WeekTemplate, iso_week: int) -> bool:
    """Whether a template applies to the given ISO week number."""
    if template.is_default:
        return True
    if template.apply_rule == ApplyRule.EVEN_WEEKS:
        return iso_week % 2 == 0
    if template.apply_rule == ApplyRule.ODD_WEEKS:
        return iso_week % 2 == 1
    return False


def select_week_template(templates: list[WeekTemplate], week_start: date) -> WeekTemplate | None:
    """Pick the template that applies to a week.

    ``templates`` must be one family's active templates, already ordered by
    priority (highest first) then creation time (oldest first).

    Order of precedence:
    1. First template that is default or whose parity rule matches the ISO week
    2. First default template
    3. First template of the list

    Returns:
        The selected template, or None when the family has no active template
    """
    if not templates:
        return None

    iso_week = iso_week_number(week_start)
    applicable = [template for template in templates if is_applicable(template, iso_week)]
    if applicable:
        return applicable[0]

    default = next((template for template in templates if template.is_default), None)
    if default is not None:
        return default

    return templates[0]


async def get_applicable_week_template(*, db: DatabaseClient, family_id: str, week_start: date) -> WeekTemplate | None:
    """Load a family's active templates and select the one for ``week_start``."""
    with span("template_selector.get_applicable_week_template"):
        templates = await record_loader.list_active_week_templates(db=db, family_id=family_id)
        selected = select_week_template(templates, week_start)
        logger.debug(
            "Selected week template %s for family %s week %s (%d candidates)",
            selected.id if selected else None,
            family_id,
            week_start.isoformat(),
            len(templates),
        )
        return selected
