"""
Bookable slot computation from weekly opening hours and booking rules.

Candidates are anchored on each timeframe's own opening time and advance by
the slot granularity while the whole service still fits before closing.
A candidate survives when its start lies in the booking window
[now + min notice, now + horizon] and its occupied interval does not
overlap a committed reservation.

Window end policy: only the slot *start* must be <= the upper bound; a slot
may run past it.

Usage:
    slots = compute_bookable_slots(schedule, rules, duration_minutes=90, now=now)
    for start in slots:
        ...
    slots.first(), slots.by_day()
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Iterator, Optional
from zoneinfo import ZoneInfo

from src.config import settings
from src.schemas.booking_schema import ExistingReservation
from src.schemas.schedule_schema import BookingRules, Timeframe, WeeklySchedule

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


class InvalidSlotRequestError(ValueError):
    """Raised when the duration or granularity of a slot request is not positive."""


class BookableSlots:
    """
    Lazy, restartable sequence of bookable slot starts.

    Every iteration replays the computation from the inputs captured at
    construction, so the object can be iterated any number of times and
    always yields the same chronological sequence.
    """

    def __init__(
        self,
        schedule: WeeklySchedule,
        rules: BookingRules,
        duration_minutes: int,
        existing_reservations: Iterable[ExistingReservation],
        slot_granularity_minutes: int,
        now: datetime,
    ) -> None:
        _require_positive("duration_minutes", duration_minutes)
        _require_positive("slot_granularity_minutes", slot_granularity_minutes)

        self.schedule = schedule
        self.rules = rules
        self.duration = timedelta(minutes=duration_minutes)
        self.step = timedelta(minutes=slot_granularity_minutes)
        self.reservations = tuple(existing_reservations)
        self._tz = _shop_zone(now, schedule)
        self._lower, self._upper = self._window(now)

    @property
    def lower_bound(self) -> datetime:
        return self._attach(self._lower)

    @property
    def upper_bound(self) -> datetime:
        return self._attach(self._upper)

    def __iter__(self) -> Iterator[datetime]:
        for start in self._wall_clock_slots():
            yield self._attach(start)

    def first(self) -> Optional[datetime]:
        return next(iter(self), None)

    def is_empty(self) -> bool:
        return self.first() is None

    def by_day(self) -> dict[date, list[datetime]]:
        """Slots grouped by calendar date, in chronological order."""
        grouped: dict[date, list[datetime]] = {}
        for start in self:
            grouped.setdefault(start.date(), []).append(start)
        return grouped

    def find(self, start: datetime) -> Optional[datetime]:
        """
        Return the bookable slot matching ``start``, or None.

        ``start`` may be given in any zone; the returned slot is expressed in
        the shop's zone, the way the sequence yields it.
        """
        wanted = self._to_wall(start)
        for candidate in self._wall_clock_slots(first_day=wanted.date()):
            if candidate == wanted:
                return self._attach(candidate)
            if candidate > wanted:
                return None
        return None

    def contains(self, start: datetime) -> bool:
        """Check whether ``start`` is one of the bookable slots."""
        return self.find(start) is not None

    def _window(self, now: datetime) -> tuple[datetime, datetime]:
        if self._tz is None:
            return self.rules.window(now)
        # Offsets are added to the absolute instant so a DST change inside the
        # horizon does not shift the bounds by an hour.
        lower, upper = self.rules.window(now.astimezone(timezone.utc))
        return self._to_wall(lower), self._to_wall(upper)

    def _attach(self, wall: datetime) -> datetime:
        return wall.replace(tzinfo=self._tz) if self._tz is not None else wall

    def _to_wall(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        if self._tz is not None:
            return value.astimezone(self._tz).replace(tzinfo=None)
        return value.replace(tzinfo=None)

    def _wall_clock_slots(self, first_day: Optional[date] = None) -> Iterator[datetime]:
        busy = _index_reservations(self.reservations)
        day = max(self._lower.date(), first_day) if first_day else self._lower.date()
        last_day = self._upper.date()

        while day <= last_day:
            day_schedule = self.schedule.for_date(day)
            if day_schedule.is_open and day_schedule.timeframes:
                midnight = datetime.combine(day, time.min)
                candidates: set[datetime] = set()
                for timeframe in day_schedule.timeframes:
                    candidates.update(self._timeframe_slots(midnight, timeframe, busy[day]))
                # Sorting keeps output chronological even when stored timeframes overlap.
                yield from sorted(candidates)
            day += _ONE_DAY

    def _timeframe_slots(
        self,
        midnight: datetime,
        timeframe: Timeframe,
        busy: list[tuple[datetime, datetime]],
    ) -> Iterator[datetime]:
        if not timeframe.is_valid:
            logger.debug("Skipping malformed timeframe %s on %s", timeframe, midnight.date())
            return

        opens = midnight + timedelta(minutes=timeframe.start)
        closes = midnight + timedelta(minutes=timeframe.end)

        start = opens
        if self._lower > opens:
            # Next step aligned on the opening time at or after the lower bound.
            start = opens - ((opens - self._lower) // self.step) * self.step

        while start + self.duration <= closes and start <= self._upper:
            end = start + self.duration
            if not any(start < r_end and r_start < end for r_start, r_end in busy):
                yield start
            start += self.step


def compute_bookable_slots(
    schedule: WeeklySchedule,
    rules: BookingRules,
    duration_minutes: int,
    existing_reservations: Iterable[ExistingReservation] = (),
    slot_granularity_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> BookableSlots:
    """
    Compute the bookable slot starts of a service.

    Args:
        schedule: Weekly opening hours of the shop.
        rules: Minimum notice and maximum horizon.
        duration_minutes: Total duration of the booking, > 0.
        existing_reservations: Committed reservations to keep clear of.
        slot_granularity_minutes: Step between candidates, > 0. Defaults to
            the configured SLOT_GRANULARITY_MINUTES.
        now: Reference time. Pass it explicitly; ``None`` reads the clock.

    Returns:
        A lazy, restartable BookableSlots. Empty when nothing qualifies.

    Raises:
        InvalidSlotRequestError: If duration or granularity is not positive.
    """
    if slot_granularity_minutes is None:
        slot_granularity_minutes = settings.scheduling.slot_granularity_minutes

    if now is None:
        now = datetime.now()

    slots = BookableSlots(
        schedule=schedule,
        rules=rules,
        duration_minutes=duration_minutes,
        existing_reservations=existing_reservations,
        slot_granularity_minutes=slot_granularity_minutes,
        now=now,
    )
    logger.debug(
        "Slot window %s .. %s for %d min (step %d min)",
        slots.lower_bound, slots.upper_bound, duration_minutes, slot_granularity_minutes,
    )
    return slots


def is_slot_bookable(
    schedule: WeeklySchedule,
    rules: BookingRules,
    duration_minutes: int,
    start: datetime,
    existing_reservations: Iterable[ExistingReservation] = (),
    slot_granularity_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Re-check a single chosen start against fresh reservations and the current time."""
    slots = compute_bookable_slots(
        schedule,
        rules,
        duration_minutes,
        existing_reservations,
        slot_granularity_minutes,
        now,
    )
    return slots.contains(start)


def bookable_days(
    schedule: WeeklySchedule,
    rules: BookingRules,
    duration_minutes: int,
    existing_reservations: Iterable[ExistingReservation] = (),
    slot_granularity_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[date]:
    """Dates of the booking window with at least one bookable slot."""
    slots = compute_bookable_slots(
        schedule,
        rules,
        duration_minutes,
        existing_reservations,
        slot_granularity_minutes,
        now,
    )
    return list(slots.by_day())


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidSlotRequestError(f"{name} must be a positive integer, got {value!r}")


def _shop_zone(now: datetime, schedule: WeeklySchedule) -> Optional[tzinfo]:
    """Zone the slots are expressed in: the shop's for an aware ``now``, none for a naive one."""
    if now.tzinfo is None:
        return None
    return ZoneInfo(schedule.timezone) if schedule.timezone else now.tzinfo


def _index_reservations(
    reservations: Iterable[ExistingReservation],
) -> defaultdict[date, list[tuple[datetime, datetime]]]:
    """Busy intervals by every calendar date they touch."""
    busy: defaultdict[date, list[tuple[datetime, datetime]]] = defaultdict(list)
    for reservation in reservations:
        starts, ends = reservation.starts_at, reservation.ends_at
        if ends <= starts:
            continue
        day = starts.date()
        while datetime.combine(day, time.min) < ends:
            busy[day].append((starts, ends))
            day += _ONE_DAY
    return busy
