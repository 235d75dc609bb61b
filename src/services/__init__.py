from src.services import (
    day_resolver,
    notification_service,
    override_service,
    record_loader,
    shift_service,
    template_selector,
    week_schedule_service,
)


__all__ = [
    "day_resolver",
    "notification_service",
    "override_service",
    "record_loader",
    "shift_service",
    "template_selector",
    "week_schedule_service",
]
