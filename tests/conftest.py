"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from eventspark.core.config import settings
from eventspark.core.database import get_session
from eventspark.core.middleware import rate_limiter
from eventspark.deck import DecisionStore, DeckSessions, MemoryStorage
from eventspark.main import app
from eventspark.models import Event
from eventspark.routes.deps import get_deck_sessions, get_engine

ADMIN_PASSWORD = "test-admin-password"


def make_event(title: str, days: float, **fields) -> Event:
    """An event starting ``days`` from now."""
    return Event(
        title=title,
        start_date=datetime.now(UTC) + timedelta(days=days),
        **fields,
    )


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="deck_sessions")
def deck_sessions_fixture():
    sessions = DeckSessions()
    yield sessions
    sessions.clear()


@pytest.fixture(name="client")
def client_fixture(session: Session, engine, deck_sessions: DeckSessions, monkeypatch):
    """Create a test client with the test database and a fresh deck registry.

    Button swipes finish instantly and admin login is enabled.
    """

    def get_session_override():
        return session

    monkeypatch.setattr(settings, "exit_duration", 0.0)
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    monkeypatch.setattr(settings, "event_source", "database")
    rate_limiter.clear()

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_deck_sessions] = lambda: deck_sessions
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    rate_limiter.clear()


@pytest.fixture(name="admin_client")
def admin_client_fixture(client: TestClient) -> TestClient:
    """Test client signed in as the admin."""
    response = client.post(
        "/admin/login",
        data={"email": settings.admin_email, "password": ADMIN_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client


@pytest.fixture(name="store")
def store_fixture() -> DecisionStore:
    return DecisionStore(MemoryStorage())


@pytest.fixture(name="events")
def events_fixture(session: Session) -> list[Event]:
    """Three upcoming events, soonest first."""
    events = [
        make_event("Beechworth Farmers Market", 1, category="market", venue_name="Town Center"),
        make_event("Jazz in the Vines", 5, category="music", is_free=False, price="$45"),
        make_event("Golden Horseshoes Festival", 14, category="festival"),
    ]
    for event in events:
        session.add(event)
    session.commit()
    for event in events:
        session.refresh(event)
    return events


@pytest.fixture(name="past_event")
def past_event_fixture(session: Session) -> Event:
    event = make_event("Last Week's Market", -7, category="market")
    session.add(event)
    session.commit()
    session.refresh(event)
    return event
