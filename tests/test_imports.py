"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_catalog_schema(self):
        from src.schemas.catalog_schema import AddOn, Formula, ServiceCatalogItem, VehicleSize
        assert ServiceCatalogItem is not None

    def test_import_schedule_schema(self):
        from src.schemas.schedule_schema import BookingRules, Weekday, WeeklySchedule
        assert len(Weekday) == 7

    def test_import_booking_schema(self):
        from src.schemas.booking_schema import BookingQuote, CartLine, ExistingReservation
        assert BookingQuote.empty().is_empty


class TestBookingImports:
    def test_booking_package_reexports(self):
        from src.booking import (
            BookableSlots,
            InvalidSlotRequestError,
            MalformedCartLineError,
            bookable_days,
            compute_bookable_slots,
            compute_quote,
            format_quote_summary,
            is_slot_bookable,
        )
        assert callable(compute_quote)
        assert callable(compute_bookable_slots)

    def test_import_session(self):
        from src.booking.session import BookingSession, SessionStatus
        assert SessionStatus.SELECTING == "selecting"


class TestToolImports:
    def test_import_catalog(self):
        from src.tools.catalog import DEMO_SHOP_ID, get_services, get_vehicle_sizes
        assert get_services(DEMO_SHOP_ID)

    def test_import_schedule(self):
        from src.tools.schedule import get_booking_rules, get_opening_hours
        assert callable(get_opening_hours)

    def test_import_reservations(self):
        from src.tools.reservations import create_reservation, get_reservations
        assert callable(create_reservation)


class TestConfigImport:
    def test_import_config(self):
        from src.config import settings
        assert settings.scheduling.slot_granularity_minutes >= 1
        assert settings.pricing.currency
        assert settings.app_name
