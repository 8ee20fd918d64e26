"""Opening-hours and booking-rule data models."""

import logging
import re
from datetime import date, datetime, timedelta
from enum import IntEnum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from src.utils import MINUTES_PER_DAY, format_clock, parse_clock

logger = logging.getLogger(__name__)


class Weekday(IntEnum):
    """Days of the week, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_key(cls, key: str) -> "Weekday":
        """Resolve a stored schedule key: ``"monday"``, ``"mon"`` or ``"0"``."""
        normalized = str(key).strip().lower()
        if normalized.isdigit():
            return cls(int(normalized))
        for day in cls:
            name = day.name.lower()
            if normalized == name or normalized == name[:3]:
                return day
        raise ValueError(f"Unknown weekday key: {key!r}")


class Timeframe(BaseModel):
    """An opening interval within one day, in minutes after midnight."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start: int = Field(alias="from", ge=0, le=MINUTES_PER_DAY)
    end: int = Field(alias="to", ge=0, le=MINUTES_PER_DAY)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_clock(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_clock(value)
        return value

    @property
    def is_valid(self) -> bool:
        return self.end > self.start

    @property
    def length_minutes(self) -> int:
        return max(self.end - self.start, 0)

    def __str__(self) -> str:
        return f"{format_clock(self.start)}-{format_clock(self.end)}"


class DaySchedule(BaseModel):
    """Opening state of one weekday. A closed day carries no timeframes."""

    model_config = ConfigDict(populate_by_name=True)

    is_open: bool = Field(default=False, alias="isOpen")
    timeframes: list[Timeframe] = Field(default_factory=list)

    @model_validator(mode="after")
    def _normalize(self) -> "DaySchedule":
        if not self.is_open:
            self.timeframes = []
        else:
            self.timeframes = sorted(self.timeframes, key=lambda tf: (tf.start, tf.end))
        return self

    def overlapping_timeframes(self) -> list[tuple[Timeframe, Timeframe]]:
        """Pairs of consecutive timeframes that overlap each other."""
        return [
            (a, b)
            for a, b in zip(self.timeframes, self.timeframes[1:])
            if b.start < a.end
        ]


class WeeklySchedule(BaseModel):
    """Recurring weekly opening hours of a shop, one entry per weekday."""

    days: tuple[DaySchedule, ...] = Field(
        default_factory=lambda: tuple(DaySchedule() for _ in Weekday)
    )
    timezone: Optional[str] = None

    @field_validator("days")
    @classmethod
    def _seven_days(cls, value: tuple[DaySchedule, ...]) -> tuple[DaySchedule, ...]:
        if len(value) != len(Weekday):
            raise ValueError(f"A weekly schedule needs {len(Weekday)} days, got {len(value)}")
        return value

    def day(self, weekday: Weekday) -> DaySchedule:
        return self.days[weekday]

    def for_date(self, target: date) -> DaySchedule:
        return self.days[target.weekday()]

    def is_closed_all_week(self) -> bool:
        return not any(d.is_open and d.timeframes for d in self.days)

    @classmethod
    def closed(cls, timezone: Optional[str] = None) -> "WeeklySchedule":
        return cls(timezone=timezone)

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Any], timezone: Optional[str] = None
    ) -> "WeeklySchedule":
        """
        Build a schedule from the day-keyed JSON stored with a shop.

        Accepted day values:
            {"isOpen": true, "timeframes": [{"from": "09:00", "to": "12:00"}, ...]}
            [["09:00", "12:00"], ["14:00", "18:00"]]
            null  (closed)

        Days missing from the mapping are closed. Unknown keys and timeframes
        that cannot be parsed are skipped with a warning.
        """
        days = [DaySchedule() for _ in Weekday]
        for key, value in raw.items():
            try:
                weekday = Weekday.from_key(key)
            except ValueError:
                logger.warning("Ignoring unknown schedule key %r", key)
                continue
            days[weekday] = _parse_day(key, value)
        return cls(days=tuple(days), timezone=timezone)

    def to_mapping(self) -> dict[str, dict[str, Any]]:
        """Inverse of ``from_mapping``, using full lowercase day names."""
        return {
            weekday.name.lower(): {
                "isOpen": self.days[weekday].is_open,
                "timeframes": [
                    {"from": format_clock(tf.start), "to": format_clock(tf.end)}
                    for tf in self.days[weekday].timeframes
                ],
            }
            for weekday in Weekday
        }


def _parse_day(key: str, value: Any) -> DaySchedule:
    if value is None:
        return DaySchedule()

    if isinstance(value, Mapping):
        is_open = bool(value.get("isOpen", value.get("is_open", False)))
        raw_frames = value.get("timeframes") or []
    elif isinstance(value, (list, tuple)):
        is_open = True
        raw_frames = value
    else:
        logger.warning("Ignoring schedule entry for %r: unsupported value %r", key, value)
        return DaySchedule()

    frames: list[Timeframe] = []
    for raw in raw_frames:
        try:
            if isinstance(raw, Mapping):
                frames.append(Timeframe.model_validate(raw))
            else:
                start, end = raw
                frames.append(Timeframe(start=start, end=end))
        except (ValidationError, ValueError, TypeError):
            logger.warning("Skipping unparsable timeframe %r on %r", raw, key)
    return DaySchedule(is_open=is_open, timeframes=frames)


_NOTICE_CODE_RE = re.compile(r"^(\d+)([hd])$")
_HORIZON_CODE_RE = re.compile(r"^(\d+)w$")

NOTICE_CODES = ("1h", "2h", "4h", "6h", "12h", "1d", "2d")
HORIZON_CODES = ("1w", "2w", "3w", "4w", "5w", "6w", "7w", "8w")


class BookingRules(BaseModel):
    """Minimum notice and maximum horizon a customer may book within."""

    model_config = ConfigDict(frozen=True)

    min_notice_minutes: int = Field(ge=0)
    max_horizon_days: int = Field(ge=1)

    def window(self, now: datetime) -> tuple[datetime, datetime]:
        """Earliest and latest admissible slot start for ``now`` (both inclusive)."""
        return (
            now + timedelta(minutes=self.min_notice_minutes),
            now + timedelta(days=self.max_horizon_days),
        )

    @classmethod
    def from_codes(cls, notice: str, horizon: str) -> "BookingRules":
        """
        Build rules from the shop settings codes.

        ``notice`` is one of NOTICE_CODES (hours or days), ``horizon`` one of
        HORIZON_CODES (weeks).

        Raises:
            ValueError: If a code is not recognised.
        """
        if notice not in NOTICE_CODES:
            raise ValueError(f"Unknown minimum notice code: {notice!r}")
        if horizon not in HORIZON_CODES:
            raise ValueError(f"Unknown booking horizon code: {horizon!r}")

        amount, unit = _NOTICE_CODE_RE.match(notice).groups()  # type: ignore[union-attr]
        hours = int(amount) * (24 if unit == "d" else 1)
        weeks = int(_HORIZON_CODE_RE.match(horizon).group(1))  # type: ignore[union-attr]
        return cls(min_notice_minutes=hours * 60, max_horizon_days=weeks * 7)
