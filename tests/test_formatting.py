"""Tests for date badges and share links."""

from datetime import UTC, datetime, timedelta

import pytest

from eventspark import formatting
from eventspark.core.config import settings
from eventspark.models import Event

NOW = datetime(2030, 3, 14, 9, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def display_in_utc(monkeypatch):
    monkeypatch.setattr(settings, "display_timezone", "UTC")


class TestRelativeDate:
    """Tests for the card date badge."""

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(hours=-30), "Past"),
            (timedelta(hours=-1), "Today"),
            (timedelta(hours=20), "Tomorrow"),
            (timedelta(days=3), "In 3 days"),
            (timedelta(days=9), "Next week"),
            (timedelta(days=21), "In 3 weeks"),
        ],
    )
    def test_relative_date(self, delta, expected):
        assert formatting.relative_date(NOW + delta, now=NOW) == expected

    def test_far_future_shows_date(self):
        assert formatting.relative_date(datetime(2030, 6, 1, 10, 0, tzinfo=UTC), now=NOW) == "Sat 1 Jun"

    def test_naive_datetimes_are_utc(self):
        assert formatting.relative_date(datetime(2030, 3, 17, 9, 0), now=NOW) == "In 3 days"


class TestDateFormatting:
    """Tests for event date ranges."""

    def test_single_time(self):
        start = datetime(2030, 3, 14, 19, 30, tzinfo=UTC)
        assert formatting.format_date_range(start, None) == "Thu 14 Mar at 7:30 pm"

    def test_same_day_range(self):
        start = datetime(2030, 3, 14, 9, 0, tzinfo=UTC)
        end = datetime(2030, 3, 14, 12, 15, tzinfo=UTC)
        assert formatting.format_date_range(start, end) == "Thu 14 Mar, 9:00 am - 12:15 pm"

    def test_multi_day_range(self):
        start = datetime(2030, 3, 14, 9, 0, tzinfo=UTC)
        end = datetime(2030, 3, 16, 17, 0, tzinfo=UTC)
        assert formatting.format_date_range(start, end) == "Thu 14 Mar - Sat 16 Mar"


class TestShareLinks:
    """Tests for share text and social URLs."""

    @pytest.fixture
    def event(self) -> Event:
        return Event(
            id="evt-1",
            title="Jazz & Wine",
            start_date=datetime(2030, 3, 14, 19, 30, tzinfo=UTC),
            venue_name="Pennyweight Winery",
        )

    def test_share_url(self):
        assert formatting.share_url("evt-1", "https://eventspark.app/") == "https://eventspark.app/event/evt-1"

    def test_share_text_with_venue(self, event: Event):
        assert formatting.share_text(event) == "Check out Jazz & Wine on Thu 14 Mar at Pennyweight Winery!"

    def test_share_text_falls_back_to_location(self, event: Event):
        event.venue_name = None
        event.location = "Beechworth VIC"
        assert formatting.share_text(event).endswith("at Beechworth VIC!")

    def test_share_text_without_place(self, event: Event):
        event.venue_name = None
        assert formatting.share_text(event) == "Check out Jazz & Wine on Thu 14 Mar!"

    def test_social_urls_are_encoded(self, event: Event):
        urls = formatting.social_share_urls(event, "https://eventspark.app/event/evt-1")
        assert urls["facebook"] == (
            "https://www.facebook.com/sharer/sharer.php?u=https%3A%2F%2Feventspark.app%2Fevent%2Fevt-1"
        )
        assert "Jazz%20%26%20Wine" in urls["twitter"]
        assert urls["whatsapp"].startswith("https://wa.me/?text=Check%20out")
        assert urls["email"].startswith("mailto:?subject=Jazz%20%26%20Wine&body=")



class TestDisplayTimezone:
    """Tests for showing dates in the events' own timezone."""

    @pytest.fixture(autouse=True)
    def melbourne(self, monkeypatch):
        monkeypatch.setattr(settings, "display_timezone", "Australia/Melbourne")

    def test_time_shown_in_local_time(self):
        """Test a UTC morning is the same evening in Melbourne (AEDT, UTC+11)."""
        start = datetime(2030, 3, 14, 8, 30, tzinfo=UTC)
        assert formatting.format_date_range(start, None) == "Thu 14 Mar at 7:30 pm"

    def test_date_rolls_over(self):
        """Test a late UTC time lands on the next local day."""
        start = datetime(2030, 3, 14, 20, 0, tzinfo=UTC)
        assert formatting.format_date(start) == "Fri 15 Mar"

    def test_same_local_day_range(self):
        """Test the same-day check uses local dates, not UTC dates."""
        start = datetime(2030, 6, 14, 23, 0, tzinfo=UTC)  # AEST, UTC+10
        end = datetime(2030, 6, 15, 3, 0, tzinfo=UTC)
        assert formatting.format_date_range(start, end) == "Sat 15 Jun, 9:00 am - 1:00 pm"
