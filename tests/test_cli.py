"""Tests for the command-line demo."""

import json

from main import main
from src.schemas.schedule_schema import WeeklySchedule
from src.tools import schedule
from src.tools.catalog import DEMO_SHOP_ID


class TestQuoteCommand:
    """The quote summary of the cart given on the command line."""

    def test_prints_quote(self, capsys):
        assert main(["quote", "--formula", "confort", "--size", "medium"]) == 0
        out = capsys.readouterr().out
        assert "Nettoyage complet (Confort): 80.00 EUR, 1h25" in out
        assert out.strip().endswith("Total: 80.00 EUR, 1h25")

    def test_unknown_service_prints_empty_quote(self, capsys):
        assert main(["quote", "--service", "nope"]) == 0
        assert "No service selected." in capsys.readouterr().out


class TestSlotsCommand:
    """Bookable starts for the cart duration, one line per day."""

    def test_prints_first_day(self, capsys):
        code = main([
            "slots", "--formula", "confort", "--size", "medium",
            "--now", "2025-03-17T08:00", "--days", "1",
        ])
        assert code == 0
        out = capsys.readouterr().out.splitlines()
        assert out[-1].startswith("Mon 2025-03-17: 10:00 10:15 10:30 14:00")
        assert out[-1].endswith("16:30")

    def test_empty_cart_fails(self, capsys):
        assert main(["slots", "--service", "nope", "--now", "2025-03-17T08:00"]) == 1

    def test_closed_shop(self, capsys):
        schedule.save_schedule(DEMO_SHOP_ID, WeeklySchedule.closed())
        assert main(["slots", "--now", "2025-03-17T08:00"]) == 0
        assert capsys.readouterr().out.strip().endswith("No availability.")


class TestHoursCommand:
    """Weekly opening hours, as text or as stored JSON."""

    def test_prints_each_weekday(self, capsys):
        assert main(["hours"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert len(out) == 7
        assert out[0] == "Monday: 09:00-12:00 14:00-18:00 (7h)"
        assert out[5] == "Saturday: 09:30-13:00 (3h30)"
        assert out[6] == "Sunday: closed"

    def test_json_output(self, capsys):
        assert main(["hours", "--json"]) == 0
        mapping = json.loads(capsys.readouterr().out)
        assert mapping["monday"]["isOpen"] is True
        assert mapping["friday"]["timeframes"][1] == {"from": "14:00", "to": "19:00"}
        assert mapping["sunday"] == {"isOpen": False, "timeframes": []}

    def test_closed_all_week(self, capsys):
        schedule.save_schedule(DEMO_SHOP_ID, WeeklySchedule.closed())
        assert main(["hours"]) == 0
        assert capsys.readouterr().out == "Closed all week.\n"

    def test_unknown_shop_is_closed(self, capsys):
        assert main(["hours", "--shop", "unknown-shop"]) == 0
        assert capsys.readouterr().out == "Closed all week.\n"
