"""
Booking session: cart, vehicle size, slot and client details up to confirmation.

Follows a Collect -> Validate -> Confirm pattern. The reservation is only
written by ``confirm()``, which recomputes the quote from the current catalog,
re-checks the chosen slot against freshly read reservations and hands a frozen
copy of the quote to the reservation store.

Usage:
    session = BookingSession("nomad-lab")
    session.select_service("full-detail", formula_id="confort")
    session.set_vehicle_size("medium")
    slots = session.available_slots(now=now)
    session.choose_slot(slots[0], now=now)
    session.set_client_detail("name", "Jeanne Martin")
    session.set_client_detail("phone", "06 12 34 56 78")
    ok, message = session.confirm(now=now)
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, Optional

from src.booking.availability import compute_bookable_slots, is_slot_bookable
from src.booking.pricing import compute_quote, format_quote_summary
from src.config import settings
from src.logging_context import get_session_logger, set_session_context
from src.schemas.booking_schema import BookingQuote, CartLine, ClientDetails
from src.tools import catalog, reservations, schedule
from src.utils import format_duration, normalize_phone

logger = get_session_logger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SessionStatus(str, Enum):
    """Lifecycle status of a booking session."""

    SELECTING = "selecting"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


def _validate_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def _validate_phone(value: str) -> bool:
    digits = re.sub(r"[^\d]", "", value)
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def _validate_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value.strip()))


@dataclass(frozen=True)
class ClientField:
    """Schema for one client detail to collect."""

    name: str
    display_name: str
    required: bool = True
    validator: Optional[Callable[[str], bool]] = None


class BookingSession:
    """
    Collects a booking and writes it once every required detail is set.

    A session only ever holds one line per service: selecting a service
    again replaces its formula and add-ons.
    """

    CLIENT_FIELDS: list[ClientField] = [
        ClientField(name="name", display_name="name", validator=_validate_name),
        ClientField(name="phone", display_name="phone number", validator=_validate_phone),
        ClientField(name="email", display_name="email", required=False, validator=_validate_email),
        ClientField(name="address", display_name="address", required=False),
        ClientField(name="notes", display_name="notes", required=False),
    ]

    def __init__(
        self,
        shop_id: str,
        session_id: Optional[str] = None,
        slot_granularity_minutes: Optional[int] = None,
    ) -> None:
        self.shop_id = shop_id
        self.slot_granularity_minutes = slot_granularity_minutes
        self.session_id = session_id or f"BS-{uuid.uuid4().hex[:6].upper()}"
        self.status = SessionStatus.SELECTING
        self.vehicle_size_id: Optional[str] = None
        self.selected_slot: Optional[datetime] = None
        self.reservation_id: Optional[str] = None
        self._lines: dict[str, CartLine] = {}
        self._client: dict[str, str] = {}
        set_session_context(shop_id, self.session_id)

    # ── Cart ────────────────────────────────────────────────────────────

    def select_service(
        self,
        service_id: str,
        formula_id: Optional[str] = None,
        add_on_ids: Iterable[str] = (),
    ) -> tuple[bool, str]:
        """
        Add a service to the cart, or replace its current selection.

        Without a formula id, the service's first formula is preselected.

        Returns:
            (success, message)
        """
        service = catalog.get_service(self.shop_id, service_id)
        if service is None or not service.is_active:
            return False, f"Service '{service_id}' is not available."

        if formula_id is None:
            default = service.default_formula()
            formula_id = default.id if default else None
        elif service.formula(formula_id) is None:
            return False, f"Formula '{formula_id}' is not offered for {service.name or service.id}."

        self._lines[service_id] = CartLine(
            service_id=service_id,
            vehicle_size_id=self.vehicle_size_id,
            formula_id=formula_id,
            add_on_ids=frozenset(add_on_ids),
        )
        self._invalidate_slot()
        logger.debug("Service '%s' selected (formula=%s)", service_id, formula_id)
        return True, f"Added {service.name or service.id}."

    def remove_service(self, service_id: str) -> tuple[bool, str]:
        if self._lines.pop(service_id, None) is None:
            return False, f"Service '{service_id}' is not in the cart."
        self._invalidate_slot()
        return True, f"Removed {service_id}."

    def set_vehicle_size(self, vehicle_size_id: str) -> tuple[bool, str]:
        sizes = {size.id: size for size in catalog.get_vehicle_sizes(self.shop_id)}
        if vehicle_size_id not in sizes:
            return False, f"Vehicle size '{vehicle_size_id}' is not offered."
        self.vehicle_size_id = vehicle_size_id
        self._lines = {
            sid: line.model_copy(update={"vehicle_size_id": vehicle_size_id})
            for sid, line in self._lines.items()
        }
        self._invalidate_slot()
        return True, f"Vehicle size: {sizes[vehicle_size_id].name}"

    def cart_lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def get_quote(self) -> BookingQuote:
        """Quote of the current cart against the shop's current catalog."""
        return compute_quote(
            self.cart_lines(),
            catalog.get_services(self.shop_id),
            catalog.get_vehicle_sizes(self.shop_id),
        )

    # ── Slot ────────────────────────────────────────────────────────────

    def available_slots(self, now: Optional[datetime] = None) -> list[datetime]:
        """Bookable starts for the cart's total duration. Empty while the cart is empty."""
        duration = self.get_quote().total_duration_minutes
        if duration <= 0:
            logger.debug("No duration yet, no slots to offer")
            return []
        now = now or datetime.now()
        return list(
            compute_bookable_slots(
                schedule.get_opening_hours(self.shop_id),
                schedule.get_booking_rules(self.shop_id),
                duration,
                self._fresh_reservations(now),
                self.slot_granularity_minutes,
                now,
            )
        )

    def choose_slot(self, start: datetime, now: Optional[datetime] = None) -> tuple[bool, str]:
        """
        Select a bookable start. ``start`` may be in any zone; the session keeps
        the matching slot as offered, in the shop's zone.
        """
        duration = self.get_quote().total_duration_minutes
        if duration <= 0:
            return False, "Select a service before choosing a time."
        now = now or datetime.now()
        slot = compute_bookable_slots(
            schedule.get_opening_hours(self.shop_id),
            schedule.get_booking_rules(self.shop_id),
            duration,
            self._fresh_reservations(now),
            self.slot_granularity_minutes,
            now,
        ).find(start)
        if slot is None:
            return False, "This slot is no longer available, please pick another."
        self.selected_slot = slot
        return True, f"Slot selected: {slot:%Y-%m-%d %H:%M}"

    # ── Client details ──────────────────────────────────────────────────

    def _get_field(self, name: str) -> ClientField:
        for fld in self.CLIENT_FIELDS:
            if fld.name == name:
                return fld
        raise ValueError(f"Unknown client field: {name}")

    def set_client_detail(self, name: str, value: str) -> tuple[bool, str]:
        """
        Set a client detail with validation.

        Returns:
            (success, message). success is True if validation passed.
        """
        fld = self._get_field(name)
        if fld.validator and not fld.validator(value):
            logger.debug("Client field '%s' validation failed: '%s'", name, value)
            return False, f"The {fld.display_name} '{value}' doesn't look right."
        value = value.strip()
        if name == "phone":
            value = normalize_phone(value)
        elif name == "name":
            value = value.title()
        self._client[name] = value
        return True, f"Got {fld.display_name}: {value}"

    def client_details(self) -> Optional[ClientDetails]:
        if any(f.required and f.name not in self._client for f in self.CLIENT_FIELDS):
            return None
        return ClientDetails(**self._client)

    # ── Confirmation gate ───────────────────────────────────────────────

    def get_missing_fields(self) -> list[str]:
        """Everything still needed before the booking can be confirmed."""
        missing = []
        if not self._lines:
            missing.append("service")
        if self.vehicle_size_id is None and catalog.get_vehicle_sizes(self.shop_id):
            missing.append("vehicle size")
        if self.selected_slot is None:
            missing.append("time slot")
        missing.extend(
            f.display_name
            for f in self.CLIENT_FIELDS
            if f.required and f.name not in self._client
        )
        return missing

    def get_confirmation_summary(self) -> str:
        """Read-back text shown before confirmation."""
        quote = self.get_quote()
        lines = [format_quote_summary(quote, settings.pricing.currency)]
        if self.selected_slot is not None:
            ends = self.selected_slot + timedelta(minutes=quote.total_duration_minutes)
            lines.append(
                f"Appointment: {self.selected_slot:%Y-%m-%d %H:%M} - {ends:%H:%M} "
                f"({format_duration(quote.total_duration_minutes)})"
            )
        for fld in self.CLIENT_FIELDS:
            if fld.name in self._client:
                lines.append(f"  {fld.display_name}: {self._client[fld.name]}")
        return "\n".join(lines)

    def confirm(self, now: Optional[datetime] = None) -> tuple[bool, str]:
        """
        Write the reservation with a frozen quote.

        The slot is re-validated against fresh reservations first; the store
        still has the last word and may report a conflict.
        """
        if self.status != SessionStatus.SELECTING:
            return False, f"Session is already {self.status.value}."

        missing = self.get_missing_fields()
        if missing:
            return False, f"Still need: {', '.join(missing)}."

        now = now or datetime.now()
        quote = self.get_quote()
        if quote.is_empty:
            return False, "None of the selected services can be booked anymore."

        ok, reason = self._check_slot(self.selected_slot, now)  # type: ignore[arg-type]
        if not ok:
            self.selected_slot = None
            return False, reason

        result = reservations.create_reservation(
            self.shop_id,
            self.selected_slot,  # type: ignore[arg-type]
            quote.total_duration_minutes,
            quote,
            self.client_details(),
        )
        if not result["success"]:
            if result.get("conflict"):
                self.selected_slot = None
            return False, result["message"]

        self.reservation_id = result["reservation_id"]
        self.status = SessionStatus.CONFIRMED
        logger.info("Booking confirmed as %s", self.reservation_id)
        return True, result["message"]

    def cancel(self) -> None:
        """Discard the selection."""
        self._lines.clear()
        self._client.clear()
        self.vehicle_size_id = None
        self.selected_slot = None
        self.status = SessionStatus.CANCELLED
        logger.info("Booking session cancelled")

    # ── Helpers ─────────────────────────────────────────────────────────

    def _invalidate_slot(self) -> None:
        if self.selected_slot is not None:
            logger.debug("Cart changed, clearing selected slot")
        self.selected_slot = None

    def _fresh_reservations(self, now: datetime):
        rules = schedule.get_booking_rules(self.shop_id)
        start = now.date() - timedelta(days=1)
        end = now.date() + timedelta(days=rules.max_horizon_days + 1)
        return reservations.get_reservations(self.shop_id, start, end)

    def _check_slot(self, start: datetime, now: datetime) -> tuple[bool, str]:
        duration = self.get_quote().total_duration_minutes
        if duration <= 0:
            return False, "Select a service before choosing a time."
        bookable = is_slot_bookable(
            schedule.get_opening_hours(self.shop_id),
            schedule.get_booking_rules(self.shop_id),
            duration,
            start,
            self._fresh_reservations(now),
            self.slot_granularity_minutes,
            now,
        )
        if not bookable:
            return False, "This slot is no longer available, please pick another."
        return True, ""
