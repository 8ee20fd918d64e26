"""
Offline demo of the booking core against the in-memory demo shop.

Prints the quote of a cart, the bookable slots for its duration, or the
shop's weekly opening hours. No database, no network calls.

Usage:
    python main.py quote --service full-detail --formula confort --size medium
    python main.py slots --service full-detail --size large --add-on pet-hair --days 3
    python main.py hours [--json]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Optional

from src.booking.availability import compute_bookable_slots
from src.booking.pricing import compute_quote, format_quote_summary
from src.config import settings
from src.schemas.booking_schema import BookingQuote, CartLine
from src.schemas.schedule_schema import Weekday
from src.tools import catalog, reservations, schedule
from src.tools.catalog import DEMO_SHOP_ID
from src.utils import format_duration

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the three demo commands."""
    parser = argparse.ArgumentParser(
        description="Quote a detailing cart and list bookable slots for the demo shop."
    )
    parser.add_argument("command", choices=["quote", "slots", "hours"], help="What to compute.")
    parser.add_argument("--shop", default=DEMO_SHOP_ID, help="Shop id (default: demo shop).")
    parser.add_argument(
        "--service",
        action="append",
        default=None,
        help="Service id to add to the cart (repeatable).",
    )
    parser.add_argument("--formula", default=None, help="Formula id for the services.")
    parser.add_argument("--size", default=None, help="Vehicle size id.")
    parser.add_argument(
        "--add-on", dest="add_ons", action="append", default=[], help="Add-on id (repeatable)."
    )
    parser.add_argument(
        "--days", type=int, default=7, help="Number of days of slots to print (default: 7)."
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Reference time as YYYY-MM-DDTHH:MM (default: current time).",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print opening hours as stored JSON (hours only)."
    )
    return parser


def _quote(args: argparse.Namespace) -> BookingQuote:
    """Quote the cart described by the command-line options."""
    lines = [
        CartLine(
            service_id=service_id,
            vehicle_size_id=args.size,
            formula_id=args.formula,
            add_on_ids=frozenset(args.add_ons),
        )
        for service_id in (args.service or ["full-detail"])
    ]
    return compute_quote(
        lines,
        catalog.get_services(args.shop),
        catalog.get_vehicle_sizes(args.shop),
    )


def _print_slots(shop_id: str, duration: int, days: int, now: datetime) -> None:
    """Print up to ``days`` days of bookable starts, one line per day."""
    slots = compute_bookable_slots(
        schedule.get_opening_hours(shop_id),
        schedule.get_booking_rules(shop_id),
        duration,
        reservations.get_reservations(shop_id),
        now=now,
    )
    by_day = slots.by_day()
    if not by_day:
        sys.stdout.write("No availability.\n")
        return
    for day in list(by_day)[:days]:
        times = " ".join(f"{start:%H:%M}" for start in by_day[day])
        sys.stdout.write(f"{day:%a %Y-%m-%d}: {times}\n")


def _print_hours(shop_id: str, as_json: bool) -> None:
    """Print the shop's weekly opening hours, one line per weekday."""
    hours = schedule.get_opening_hours(shop_id)
    if as_json:
        sys.stdout.write(json.dumps(hours.to_mapping(), indent=2) + "\n")
        return
    if hours.is_closed_all_week():
        sys.stdout.write("Closed all week.\n")
        return
    for weekday in Weekday:
        day = hours.day(weekday)
        name = weekday.name.capitalize()
        if not day.is_open:
            sys.stdout.write(f"{name}: closed\n")
            continue
        frames = " ".join(str(tf) for tf in day.timeframes)
        total = sum(tf.length_minutes for tf in day.timeframes)
        sys.stdout.write(f"{name}: {frames} ({format_duration(total)})\n")


def main(argv: Optional[list[str]] = None) -> int:
    """Run one demo command and return the process exit code."""
    args = _build_parser().parse_args(argv)

    if args.command == "hours":
        _print_hours(args.shop, args.json)
        return 0

    now = datetime.fromisoformat(args.now) if args.now else datetime.now()

    quote = _quote(args)
    sys.stdout.write(format_quote_summary(quote, settings.pricing.currency) + "\n")

    if args.command == "slots":
        if quote.total_duration_minutes <= 0:
            logger.error("Nothing to schedule: the cart is empty")
            return 1
        _print_slots(args.shop, quote.total_duration_minutes, args.days, now)
    return 0


if __name__ == "__main__":
    sys.exit(main())
