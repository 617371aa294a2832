#!/usr/bin/env python3
"""
Seed the local database with sample Beechworth events.

Events are created through the database event source, so they go through
the same validation as events created from the admin pages. Start dates
are relative to now. Events whose title already exists are skipped.

Usage:
    python scripts/seed_events.py [--dry-run]

Options:
    --dry-run    Show what would be created without making changes
"""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import UTC, datetime, timedelta

from sqlmodel import Session, select

from eventspark.core.database import create_db_and_tables, engine
from eventspark.models import Event
from eventspark.source import DatabaseEventSource

UNSPLASH = "https://images.unsplash.com/{}?w=800&h=600&fit=crop"

SAMPLE_EVENTS = [
    {
        "title": "Beechworth Farmers Market",
        "description": (
            "The monthly Beechworth Farmers Market features local produce, artisan goods, "
            "fresh baked treats, and live music. Meet local farmers and producers while "
            "enjoying the historic town center atmosphere."
        ),
        "image_url": UNSPLASH.format("photo-1488459716781-31db52582fe9"),
        "days": 2,
        "location": "Ford Street, Beechworth VIC 3747",
        "venue_name": "Beechworth Town Center",
        "category": "market",
        "is_free": True,
    },
    {
        "title": "Jazz in the Vines",
        "description": (
            "An evening of smooth jazz surrounded by the beautiful vineyards of the Beechworth "
            "wine region. Local and interstate jazz musicians perform under the stars. BYO "
            "picnic or purchase from local food vendors."
        ),
        "image_url": UNSPLASH.format("photo-1514525253161-7a46d19cd819"),
        "days": 5,
        "location": "Pennyweight Winery, Beechworth VIC",
        "venue_name": "Pennyweight Winery",
        "category": "music",
        "ticket_url": "https://example.com/tickets",
        "is_free": False,
        "price": "$45 per person",
    },
    {
        "title": "Historic Gold Mine Tour",
        "description": (
            "Explore the rich gold mining history of Beechworth with a guided tour of the old "
            "gold mines. Learn about the Chinese miners and the impact of the gold rush on "
            "the region."
        ),
        "image_url": UNSPLASH.format("photo-1518709766631-a6a7f45921c3"),
        "days": 1,
        "location": "Historic Precinct, Beechworth VIC",
        "venue_name": "Burke Museum",
        "category": "community",
        "is_free": False,
        "price": "$20 adults / $10 kids",
    },
    {
        "title": "Community Yoga in the Park",
        "description": (
            "Start your Sunday morning with a relaxing yoga session in the beautiful Lake "
            "Sambell park. All levels welcome. Bring your own mat and water bottle."
        ),
        "image_url": UNSPLASH.format("photo-1544367567-0f2fcb009e0b"),
        "days": 3,
        "location": "Lake Sambell, Beechworth VIC",
        "venue_name": "Lake Sambell Park",
        "category": "sport",
        "is_free": True,
    },
    {
        "title": "Beechworth Bakery Masterclass",
        "description": (
            "Learn the secrets of the famous Beechworth Bakery! Join our bakers for a hands-on "
            "bread making workshop. Take home your creations and a recipe booklet."
        ),
        "image_url": UNSPLASH.format("photo-1509440159596-0249088772ff"),
        "days": 7,
        "location": "27 Camp St, Beechworth VIC 3747",
        "venue_name": "Beechworth Bakery",
        "category": "workshop",
        "ticket_url": "https://example.com/bakery",
        "is_free": False,
        "price": "$85 per person",
    },
    {
        "title": "Ned Kelly Historical Walk",
        "description": (
            "Walk through the historic streets of Beechworth and visit the sites associated "
            "with the famous bushranger Ned Kelly. See the courthouse where he was tried and "
            "the gaol where he was held."
        ),
        "image_url": UNSPLASH.format("photo-1506905925346-21bda4d32df4"),
        "days": 4,
        "location": "Beechworth Historic Precinct",
        "venue_name": "Beechworth Visitor Centre",
        "category": "community",
        "is_free": True,
    },
    {
        "title": "Local Art Exhibition Opening",
        "description": (
            "Celebrate the opening of a new exhibition featuring works by local Beechworth and "
            "North East Victorian artists. Wine and cheese provided."
        ),
        "image_url": UNSPLASH.format("photo-1531243269054-5ebf6f34081e"),
        "days": 6,
        "location": "Gallery 101, Beechworth VIC",
        "venue_name": "Beechworth Art Gallery",
        "category": "art",
        "is_free": True,
    },
    {
        "title": "Golden Horseshoes Festival",
        "description": (
            "Annual celebration of Beechworth's gold mining heritage with live entertainment, "
            "historical reenactments, food stalls, and activities for the whole family."
        ),
        "image_url": UNSPLASH.format("photo-1533174072545-7a4b6ad7a6c3"),
        "days": 14,
        "end_days": 16,
        "location": "Beechworth Town Center",
        "venue_name": "Various Locations",
        "category": "festival",
        "ticket_url": "https://example.com/festival",
        "is_free": False,
        "price": "$15 day pass",
    },
]


def event_input(sample: dict, now: datetime) -> dict:
    """Sample entry -> event input, with dates offset from now."""
    data = {key: value for key, value in sample.items() if key not in ("days", "end_days")}
    data["start_date"] = now + timedelta(days=sample["days"])
    if "end_days" in sample:
        data["end_date"] = now + timedelta(days=sample["end_days"])
    return data


def main(dry_run: bool = False):
    """Create any sample events not already in the database."""
    create_db_and_tables()
    now = datetime.now(UTC).replace(minute=0, second=0, microsecond=0)

    with Session(engine) as session:
        existing = set(session.exec(select(Event.title)).all())
        pending = [sample for sample in SAMPLE_EVENTS if sample["title"] not in existing]

        if not pending:
            print("All sample events already exist.")
            return

        print(f"{len(pending)} sample event(s) to create:\n")
        for sample in pending:
            print(f"  {sample['title']} (in {sample['days']} days)")
        print()

        if dry_run:
            print("--- DRY RUN: No changes made ---")
            return

        source = DatabaseEventSource(session)
        success_count = 0
        fail_count = 0

        for sample in pending:
            print(f"Creating '{sample['title']}'...", end=" ")
            result = source.create(event_input(sample, now))
            if result.ok:
                print("OK")
                success_count += 1
            else:
                print(f"FAILED: {result.error.message}")
                fail_count += 1

        print(f"\nComplete: {success_count} succeeded, {fail_count} failed")


if __name__ == "__main__":
    dry_run = "--dry-run" in sys.argv
    main(dry_run=dry_run)
