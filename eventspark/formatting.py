"""Date and share-link helpers used by the page templates.

Dates and times are shown in DISPLAY_TIMEZONE, the timezone of the events
themselves, whatever timezone they are stored in.
"""

import math
from datetime import UTC, datetime
from urllib.parse import quote
from zoneinfo import ZoneInfo

from eventspark.core.config import settings
from eventspark.models import Event
from eventspark.models.event import utc


def display_zone() -> ZoneInfo:
    return ZoneInfo(settings.display_timezone)


def to_local(value: datetime) -> datetime:
    return utc(value).astimezone(display_zone())


def format_date(value: datetime) -> str:
    """e.g. 'Sat 14 Mar'."""
    value = to_local(value)
    return f"{value:%a} {value.day} {value:%b}"


def format_time(value: datetime) -> str:
    """e.g. '7:30 pm'."""
    value = to_local(value)
    hour = value.hour % 12 or 12
    suffix = "am" if value.hour < 12 else "pm"
    return f"{hour}:{value:%M} {suffix}"


def format_date_range(start: datetime, end: datetime | None) -> str:
    if end is None:
        return f"{format_date(start)} at {format_time(start)}"
    if to_local(start).date() == to_local(end).date():
        return f"{format_date(start)}, {format_time(start)} - {format_time(end)}"
    return f"{format_date(start)} - {format_date(end)}"


def days_until(value: datetime, now: datetime | None = None) -> int:
    now = now or datetime.now(UTC)
    return math.ceil((utc(value) - now).total_seconds() / 86400)


def relative_date(value: datetime, now: datetime | None = None) -> str:
    """Badge text for a card: 'Today', 'Tomorrow', 'In 3 days', ..."""
    days = days_until(value, now)
    if days < 0:
        return "Past"
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    if days < 7:
        return f"In {days} days"
    if days < 14:
        return "Next week"
    if days < 30:
        return f"In {days // 7} weeks"
    return format_date(value)


def share_url(event_id: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/event/{event_id}"


def share_text(event: Event) -> str:
    venue = event.venue_name or event.location or ""
    date = format_date(event.start_date)
    if venue:
        return f"Check out {event.title} on {date} at {venue}!"
    return f"Check out {event.title} on {date}!"


def social_share_urls(event: Event, url: str) -> dict[str, str]:
    text = quote(share_text(event), safe="")
    encoded_url = quote(url, safe="")
    return {
        "facebook": f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}",
        "twitter": f"https://twitter.com/intent/tweet?url={encoded_url}&text={text}",
        "whatsapp": f"https://wa.me/?text={text}%20{encoded_url}",
        "email": f"mailto:?subject={quote(event.title, safe='')}&body={text}%0A%0A{encoded_url}",
    }
