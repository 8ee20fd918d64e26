"""Cart, quote and reservation data models."""

import datetime as dt
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, computed_field


class CartLine(BaseModel):
    """One selected service with its vehicle size, formula and add-ons."""

    model_config = ConfigDict(frozen=True)

    service_id: str = Field(min_length=1)
    vehicle_size_id: Optional[str] = None
    formula_id: Optional[str] = None
    add_on_ids: frozenset[str] = Field(default_factory=frozenset)


class AddOnCharge(BaseModel):
    """Price and duration contributed by one selected add-on."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    price: Decimal
    duration: int


class LineBreakdown(BaseModel):
    """Per-line detail of a quote, each contribution kept separate."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    service_name: str = ""
    vehicle_size_id: Optional[str] = None
    base_price: Decimal
    base_duration: int
    size_price: Decimal = Decimal("0")
    size_duration: int = 0
    formula_id: Optional[str] = None
    formula_name: Optional[str] = None
    formula_price: Decimal = Decimal("0")
    formula_duration: int = 0
    add_ons: tuple[AddOnCharge, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def add_ons_price(self) -> Decimal:
        return sum((a.price for a in self.add_ons), Decimal("0"))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def add_ons_duration(self) -> int:
        return sum(a.duration for a in self.add_ons)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_price(self) -> Decimal:
        return self.base_price + self.size_price + self.formula_price + self.add_ons_price

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration(self) -> int:
        return self.base_duration + self.size_duration + self.formula_duration + self.add_ons_duration


class BookingQuote(BaseModel):
    """Total price and duration of a cart, with its line breakdown."""

    model_config = ConfigDict(frozen=True)

    total_price: Decimal = Decimal("0")
    total_duration_minutes: int = 0
    breakdown: tuple[LineBreakdown, ...] = ()

    @classmethod
    def empty(cls) -> "BookingQuote":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.breakdown


class ExistingReservation(BaseModel):
    """A committed reservation, used to exclude overlapping slots."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    start_time: time
    duration_minutes: int = Field(ge=0)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)


class ClientDetails(BaseModel):
    """Contact details captured at the end of the booking flow."""

    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class ReservationRecord(BaseModel):
    """Persisted reservation with its frozen quote snapshot."""

    id: str
    shop_id: str
    starts_at: datetime
    duration_minutes: int
    quote: BookingQuote
    client: Optional[ClientDetails] = None
    status: str = "confirmed"
    timezone: Optional[str] = None
    created_at: datetime

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)

    def to_existing(self) -> ExistingReservation:
        """View of this record as seen by the availability engine, in shop wall-clock time."""
        local = self.starts_at
        if local.tzinfo is not None:
            if self.timezone:
                local = local.astimezone(ZoneInfo(self.timezone))
            local = local.replace(tzinfo=None)
        return ExistingReservation(
            date=local.date(),
            start_time=local.time(),
            duration_minutes=self.duration_minutes,
        )
