"""Shared utilities used across the booking core."""

import re
from decimal import Decimal

MINUTES_PER_DAY = 24 * 60

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("06 12 34 56 78")
        '0612345678'
        >>> normalize_phone("+33 (6) 12-34-56-78")
        '+33612345678'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_clock(value: str) -> int:
    """Convert a wall-clock string to minutes after midnight.

    Accepts ``HH:MM`` and ``HH:MM:SS`` (seconds are dropped, as stored by the
    database ``time`` columns). ``24:00`` is accepted as the end of the day.

    Raises:
        ValueError: If the string is not a valid clock time.
    """
    match = _CLOCK_RE.match(value)
    if not match:
        raise ValueError(f"Invalid clock time: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes >= 60 or total > MINUTES_PER_DAY:
        raise ValueError(f"Invalid clock time: {value!r}")
    return total


def format_clock(minutes: int) -> str:
    """Convert minutes after midnight to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_duration(minutes: int) -> str:
    """Human-readable duration, e.g. ``1h30``, ``45min``, ``2h``.

    Examples:
        >>> format_duration(95)
        '1h35'
        >>> format_duration(0)
        '0min'
    """
    if minutes <= 0:
        return "0min"
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h{rest:02d}"
    if hours:
        return f"{hours}h"
    return f"{rest}min"


def format_price(amount: Decimal, currency: str = "EUR") -> str:
    """Render an amount with two decimals and its currency code."""
    return f"{Decimal(amount):.2f} {currency}"
