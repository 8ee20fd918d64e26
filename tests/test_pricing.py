"""Tests for quote computation: totals, breakdown and unresolved references."""

from decimal import Decimal

import pytest

from src.booking.pricing import MalformedCartLineError, compute_quote, format_quote_summary
from src.schemas.booking_schema import BookingQuote, CartLine
from tests.conftest import make_service


class TestScenarios:
    """Worked quotes for the demo detailing service."""

    def test_medium_size_with_confort_formula(self, detailing_service, vehicle_sizes):
        line = CartLine(service_id="full-detail", vehicle_size_id="medium", formula_id="confort")
        quote = compute_quote([line], [detailing_service], vehicle_sizes)
        assert quote.total_price == Decimal("80")
        assert quote.total_duration_minutes == 85

    def test_large_size_premium_formula_and_add_on(self, detailing_service, vehicle_sizes):
        line = CartLine(
            service_id="full-detail",
            vehicle_size_id="large",
            formula_id="premium",
            add_on_ids=frozenset({"pet-hair"}),
        )
        quote = compute_quote([line], [detailing_service], vehicle_sizes)
        assert quote.total_price == Decimal("125")
        # 60 base + 20 size + 30 formula + 20 add-on
        assert quote.total_duration_minutes == 130


class TestEmptyCart:
    def test_empty_cart_is_zero_quote(self, detailing_service):
        quote = compute_quote([], [detailing_service])
        assert quote.total_price == 0
        assert quote.total_duration_minutes == 0
        assert quote.breakdown == ()
        assert quote.is_empty

    def test_empty_cart_with_empty_catalog(self):
        assert compute_quote([], []) == BookingQuote.empty()


class TestTotals:
    """Price and duration sums across lines and add-ons."""

    def test_totals_equal_sum_of_contributions(self, detailing_service, vehicle_sizes):
        second = make_service("interior", base_price="45", base_duration=45)
        lines = [
            CartLine(service_id="full-detail", vehicle_size_id="large", formula_id="confort",
                     add_on_ids=frozenset({"pet-hair", "headlights"})),
            CartLine(service_id="interior", vehicle_size_id="medium"),
        ]
        quote = compute_quote(lines, [detailing_service, second], vehicle_sizes)

        price = sum(
            (e.base_price + e.size_price + e.formula_price + e.add_ons_price for e in quote.breakdown),
            Decimal("0"),
        )
        duration = sum(
            e.base_duration + e.size_duration + e.formula_duration + e.add_ons_duration
            for e in quote.breakdown
        )
        assert quote.total_price == price
        assert quote.total_duration_minutes == duration
        assert quote.total_price == Decimal("50") + 20 + 20 + 15 + 35 + 45 + 10

    def test_breakdown_keeps_contributions_separate(self, detailing_service, vehicle_sizes):
        line = CartLine(
            service_id="full-detail",
            vehicle_size_id="large",
            formula_id="premium",
            add_on_ids=frozenset({"headlights"}),
        )
        entry = compute_quote([line], [detailing_service], vehicle_sizes).breakdown[0]
        assert (entry.base_price, entry.base_duration) == (Decimal("50"), 60)
        assert (entry.size_price, entry.size_duration) == (Decimal("20"), 20)
        assert (entry.formula_price, entry.formula_duration) == (Decimal("40"), 30)
        assert entry.formula_name == "Premium"
        assert [a.id for a in entry.add_ons] == ["headlights"]
        assert entry.total_price == Decimal("145")
        assert entry.total_duration == 155

    def test_add_ons_listed_in_catalog_order(self, detailing_service):
        line = CartLine(service_id="full-detail", add_on_ids=frozenset({"headlights", "pet-hair"}))
        entry = compute_quote([line], [detailing_service]).breakdown[0]
        assert [a.id for a in entry.add_ons] == ["pet-hair", "headlights"]

    def test_identical_inputs_give_identical_quotes(self, detailing_service, vehicle_sizes):
        lines = [CartLine(service_id="full-detail", vehicle_size_id="medium", formula_id="confort")]
        first = compute_quote(lines, [detailing_service], vehicle_sizes)
        second = compute_quote(lines, [detailing_service], vehicle_sizes)
        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_catalog_accepted_as_mapping(self, detailing_service):
        line = CartLine(service_id="full-detail")
        quote = compute_quote([line], {"full-detail": detailing_service})
        assert quote.total_price == Decimal("50")


class TestUnresolvedReferences:
    """Unknown ids contribute nothing and are logged."""

    def test_unknown_service_is_skipped(self, detailing_service):
        lines = [CartLine(service_id="deleted-service"), CartLine(service_id="full-detail")]
        quote = compute_quote(lines, [detailing_service])
        assert [e.service_id for e in quote.breakdown] == ["full-detail"]
        assert quote.total_price == Decimal("50")

    def test_only_unknown_services_gives_zero_quote(self, detailing_service):
        quote = compute_quote([CartLine(service_id="gone")], [detailing_service])
        assert quote == BookingQuote.empty()

    def test_missing_vehicle_size_uses_base_only(self, detailing_service):
        quote = compute_quote([CartLine(service_id="full-detail")], [detailing_service])
        assert quote.total_price == Decimal("50")
        assert quote.total_duration_minutes == 60

    def test_size_without_variation_adds_nothing(self, detailing_service, vehicle_sizes):
        line = CartLine(service_id="full-detail", vehicle_size_id="small")
        entry = compute_quote([line], [detailing_service], vehicle_sizes).breakdown[0]
        assert entry.size_price == 0
        assert entry.vehicle_size_id == "small"

    def test_size_missing_from_size_catalog_adds_nothing(self, detailing_service):
        line = CartLine(service_id="full-detail", vehicle_size_id="large")
        sizes_without_large = []
        entry = compute_quote([line], [detailing_service], sizes_without_large).breakdown[0]
        assert entry.size_price == 0
        assert entry.vehicle_size_id is None

    def test_unknown_formula_adds_nothing(self, detailing_service):
        line = CartLine(service_id="full-detail", formula_id="platinum")
        entry = compute_quote([line], [detailing_service]).breakdown[0]
        assert entry.formula_id is None
        assert entry.formula_price == 0

    def test_formula_matched_by_id_not_name(self, detailing_service):
        line = CartLine(service_id="full-detail", formula_id="Premium")
        entry = compute_quote([line], [detailing_service]).breakdown[0]
        assert entry.formula_price == 0

    def test_unknown_add_on_ignored(self, detailing_service):
        line = CartLine(service_id="full-detail", add_on_ids=frozenset({"pet-hair", "wax"}))
        entry = compute_quote([line], [detailing_service]).breakdown[0]
        assert [a.id for a in entry.add_ons] == ["pet-hair"]
        assert entry.total_price == Decimal("65")


class TestMalformedLines:
    def test_mapping_lines_are_accepted(self, detailing_service):
        quote = compute_quote(
            [{"service_id": "full-detail", "formula_id": "confort", "add_on_ids": ["pet-hair"]}],
            [detailing_service],
        )
        assert quote.total_price == Decimal("85")

    def test_missing_service_id_raises(self, detailing_service):
        with pytest.raises(MalformedCartLineError, match="Cart line 0"):
            compute_quote([{"vehicle_size_id": "medium"}], [detailing_service])

    def test_empty_service_id_raises(self, detailing_service):
        with pytest.raises(MalformedCartLineError):
            compute_quote([{"service_id": ""}], [detailing_service])

    def test_non_mapping_line_raises(self, detailing_service):
        with pytest.raises(MalformedCartLineError, match="must be a CartLine"):
            compute_quote(["full-detail"], [detailing_service])

    def test_malformed_error_is_value_error(self):
        assert issubclass(MalformedCartLineError, ValueError)


class TestQuoteSummary:
    """One line per service, then the total."""

    def test_summary_lists_lines_and_total(self, detailing_service, vehicle_sizes):
        line = CartLine(
            service_id="full-detail",
            vehicle_size_id="medium",
            formula_id="confort",
            add_on_ids=frozenset({"pet-hair"}),
        )
        summary = format_quote_summary(compute_quote([line], [detailing_service], vehicle_sizes))
        assert "Full detail (Confort): 95.00 EUR, 1h45" in summary
        assert "+ Pet hair: 15.00 EUR" in summary
        assert summary.endswith("Total: 95.00 EUR, 1h45")

    def test_summary_of_empty_quote(self):
        assert format_quote_summary(BookingQuote.empty()) == "No service selected."
