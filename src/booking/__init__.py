from src.booking.availability import (
    BookableSlots,
    InvalidSlotRequestError,
    bookable_days,
    compute_bookable_slots,
    is_slot_bookable,
)
from src.booking.pricing import MalformedCartLineError, compute_quote, format_quote_summary

__all__ = [
    "compute_quote",
    "format_quote_summary",
    "MalformedCartLineError",
    "compute_bookable_slots",
    "is_slot_bookable",
    "bookable_days",
    "BookableSlots",
    "InvalidSlotRequestError",
]
