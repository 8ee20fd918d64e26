"""Shared test fixtures and helpers."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

import pytest

from src.schemas.booking_schema import ExistingReservation
from src.schemas.catalog_schema import (
    AddOn,
    Formula,
    ServiceCatalogItem,
    SizeVariation,
    VehicleSize,
)
from src.schemas.schedule_schema import BookingRules, WeeklySchedule
from src.tools import catalog, reservations, schedule

# 2025-03-17 is a Monday.
MONDAY = date(2025, 3, 17)
TUESDAY = date(2025, 3, 18)
SUNDAY = date(2025, 3, 16)


@pytest.fixture(autouse=True)
def _reset_stores():
    catalog.reset()
    schedule.reset()
    reservations.reset()
    yield
    reservations.reset()


@pytest.fixture
def detailing_service() -> ServiceCatalogItem:
    return make_service()


@pytest.fixture
def vehicle_sizes() -> list[VehicleSize]:
    return [
        VehicleSize(id="small", name="Small", order=1),
        VehicleSize(id="medium", name="Medium", order=2),
        VehicleSize(id="large", name="Large", order=3),
    ]


@pytest.fixture
def monday_only() -> WeeklySchedule:
    return make_schedule({"monday": [("09:00", "17:00")]})


@pytest.fixture
def open_rules() -> BookingRules:
    return BookingRules(min_notice_minutes=0, max_horizon_days=14)


def make_service(
    service_id: str = "full-detail",
    base_price: str = "50",
    base_duration: int = 60,
) -> ServiceCatalogItem:
    """Service used by the pricing scenarios: sizes, two formulas, two add-ons."""
    return ServiceCatalogItem(
        id=service_id,
        name="Full detail",
        base_price=Decimal(base_price),
        base_duration_minutes=base_duration,
        vehicle_size_variations={
            "medium": SizeVariation(price=Decimal("10"), duration=10),
            "large": SizeVariation(price=Decimal("20"), duration=20),
        },
        formulas=[
            Formula(id="confort", name="Confort", additional_price=Decimal("20"), additional_duration=15),
            Formula(id="premium", name="Premium", additional_price=Decimal("40"), additional_duration=30),
        ],
        add_ons=[
            AddOn(id="pet-hair", name="Pet hair", price=Decimal("15"), duration=20),
            AddOn(id="headlights", name="Headlights", price=Decimal("35"), duration=45),
        ],
    )


def make_schedule(
    days: dict[str, list[tuple[str, str]]], timezone: Optional[str] = None
) -> WeeklySchedule:
    """Open schedule from {"monday": [("09:00", "12:00"), ...]}; other days closed."""
    return WeeklySchedule.from_mapping(
        {
            day: {"isOpen": True, "timeframes": [{"from": f, "to": t} for f, t in frames]}
            for day, frames in days.items()
        },
        timezone=timezone,
    )


def make_reservation(day: date, start: str, duration: int) -> ExistingReservation:
    hours, minutes = (int(part) for part in start.split(":"))
    return ExistingReservation(date=day, start_time=time(hours, minutes), duration_minutes=duration)


def at(day: date, clock: str) -> datetime:
    hours, minutes = (int(part) for part in clock.split(":"))
    return datetime.combine(day, time(hours, minutes))
