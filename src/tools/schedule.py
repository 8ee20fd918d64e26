"""
Mock opening-hours store.

In production, this would read the shop's `schedule` JSON column and its
`min_booking_delay` / `max_booking_horizon` columns.
"""

import logging
from typing import Any, Mapping, Optional

from src.config import settings
from src.schemas.schedule_schema import BookingRules, Weekday, WeeklySchedule
from src.tools.catalog import DEMO_SHOP_ID

logger = logging.getLogger(__name__)

_DEMO_OPENING_HOURS: dict[str, Any] = {
    "monday": {"isOpen": True, "timeframes": [{"from": "09:00", "to": "12:00"}, {"from": "14:00", "to": "18:00"}]},
    "tuesday": {"isOpen": True, "timeframes": [{"from": "09:00", "to": "12:00"}, {"from": "14:00", "to": "18:00"}]},
    "wednesday": {"isOpen": True, "timeframes": [{"from": "09:00", "to": "12:00"}, {"from": "14:00", "to": "18:00"}]},
    "thursday": {"isOpen": True, "timeframes": [{"from": "09:00", "to": "12:00"}, {"from": "14:00", "to": "18:00"}]},
    "friday": {"isOpen": True, "timeframes": [{"from": "09:00", "to": "12:00"}, {"from": "14:00", "to": "19:00"}]},
    "saturday": {"isOpen": True, "timeframes": [{"from": "09:30", "to": "13:00"}]},
    "sunday": {"isOpen": False, "timeframes": []},
}

_opening_hours: dict[str, WeeklySchedule] = {}
_booking_rules: dict[str, BookingRules] = {}


def _seed() -> None:
    _opening_hours[DEMO_SHOP_ID] = WeeklySchedule.from_mapping(
        _DEMO_OPENING_HOURS, timezone=settings.scheduling.shop_timezone
    )
    _booking_rules[DEMO_SHOP_ID] = BookingRules.from_codes("2h", "4w")


def get_opening_hours(shop_id: str) -> WeeklySchedule:
    """Return the shop's weekly schedule. Unknown shops are closed all week."""
    schedule = _opening_hours.get(shop_id)
    if schedule is None:
        logger.debug("No opening hours stored for shop %s", shop_id)
        return WeeklySchedule.closed(timezone=settings.scheduling.shop_timezone)
    return schedule


def get_booking_rules(shop_id: str) -> BookingRules:
    """Return the shop's booking rules, or the configured defaults."""
    rules = _booking_rules.get(shop_id)
    if rules is None:
        return BookingRules(
            min_notice_minutes=settings.scheduling.default_min_notice_minutes,
            max_horizon_days=settings.scheduling.default_max_horizon_days,
        )
    return rules


def save_schedule(
    shop_id: str,
    opening_hours: Optional[Mapping[str, Any] | WeeklySchedule] = None,
    rules: Optional[BookingRules] = None,
) -> None:
    """Store opening hours (model or raw day-keyed JSON) and/or booking rules."""
    if opening_hours is not None:
        if not isinstance(opening_hours, WeeklySchedule):
            opening_hours = WeeklySchedule.from_mapping(
                opening_hours, timezone=settings.scheduling.shop_timezone
            )
        for weekday in Weekday:
            for first, second in opening_hours.day(weekday).overlapping_timeframes():
                logger.warning(
                    "Shop %s: %s timeframes %s and %s overlap",
                    shop_id, weekday.name.lower(), first, second,
                )
        _opening_hours[shop_id] = opening_hours
    if rules is not None:
        _booking_rules[shop_id] = rules
    logger.info("Schedule saved for shop %s", shop_id)


def reset() -> None:
    """Restore the demo schedule. Used by test fixtures for isolation."""
    _opening_hours.clear()
    _booking_rules.clear()
    _seed()


_seed()
