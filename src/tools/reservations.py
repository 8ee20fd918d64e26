"""
Mock reservation store.

In production, this would insert into the `reservations` table, where an
exclusion constraint (or a transactional re-check) rejects overlapping
inserts. The mock reproduces that by checking for overlap and inserting
under one lock.
"""

import logging
import threading
import uuid
from datetime import date, datetime, timezone
from typing import Optional, TypedDict

from src.schemas.booking_schema import (
    BookingQuote,
    ClientDetails,
    ExistingReservation,
    ReservationRecord,
)
from src.tools import schedule

logger = logging.getLogger(__name__)


class ReservationResult(TypedDict, total=False):
    """Result from create_reservation or cancel_reservation."""

    success: bool
    conflict: bool
    message: str
    reservation_id: str
    details: ReservationRecord


_reservations: dict[str, ReservationRecord] = {}
_lock = threading.Lock()


def _active(shop_id: str) -> list[ReservationRecord]:
    """Confirmed records of a shop. Callers must hold `_lock`."""
    return [
        r for r in _reservations.values()
        if r.shop_id == shop_id and r.status == "confirmed"
    ]


def get_reservations(
    shop_id: str, start: Optional[date] = None, end: Optional[date] = None
) -> list[ExistingReservation]:
    """Confirmed reservations of a shop touching the inclusive date range."""
    with _lock:
        records = _active(shop_id)

    result = []
    for record in records:
        existing = record.to_existing()
        if end is not None and existing.starts_at.date() > end:
            continue
        if start is not None and existing.ends_at.date() < start:
            continue
        result.append(existing)
    return sorted(result, key=lambda r: r.starts_at)


def create_reservation(
    shop_id: str,
    slot_start: datetime,
    duration_minutes: int,
    frozen_quote: BookingQuote,
    client: Optional[ClientDetails] = None,
) -> ReservationResult:
    """Insert a reservation unless it overlaps a confirmed one."""
    if duration_minutes <= 0:
        return {
            "success": False,
            "conflict": False,
            "message": f"Cannot create reservation - invalid duration: {duration_minutes}.",
        }

    record = ReservationRecord(
        id=f"RS-{uuid.uuid4().hex[:8].upper()}",
        shop_id=shop_id,
        starts_at=slot_start,
        duration_minutes=duration_minutes,
        quote=frozen_quote.model_copy(deep=True),
        client=client,
        timezone=schedule.get_opening_hours(shop_id).timezone,
        created_at=datetime.now(timezone.utc),
    )
    wanted = record.to_existing()

    with _lock:
        for other in _active(shop_id):
            taken = other.to_existing()
            if wanted.starts_at < taken.ends_at and taken.starts_at < wanted.ends_at:
                logger.info(
                    "Reservation conflict for shop %s at %s (overlaps %s)",
                    shop_id, slot_start, other.id,
                )
                return {
                    "success": False,
                    "conflict": True,
                    "message": "This slot is no longer available, please pick another.",
                }
        _reservations[record.id] = record

    logger.info(
        "Reservation created: %s for shop %s at %s (%d min)",
        record.id, shop_id, slot_start, duration_minutes,
    )
    return {
        "success": True,
        "conflict": False,
        "reservation_id": record.id,
        "message": f"Reservation confirmed. Reference: {record.id}.",
        "details": record,
    }


def cancel_reservation(reservation_id: str) -> ReservationResult:
    """Cancel a reservation, freeing its slot."""
    with _lock:
        record = _reservations.get(reservation_id)
        if record is None:
            return {"success": False, "conflict": False, "message": f"Reservation {reservation_id} not found."}
        record.status = "cancelled"
    logger.info("Reservation cancelled: %s", reservation_id)
    return {
        "success": True,
        "conflict": False,
        "reservation_id": reservation_id,
        "message": f"Reservation {reservation_id} has been cancelled.",
    }


def get_reservation(reservation_id: str) -> Optional[ReservationRecord]:
    """Retrieve a reservation by id."""
    with _lock:
        return _reservations.get(reservation_id)


def reset() -> None:
    """Clear all reservations. Used by test fixtures for isolation."""
    with _lock:
        _reservations.clear()
