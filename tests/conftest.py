"""Shared test fixtures."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from volunteer_hub.core.config import settings
from volunteer_hub.core.database import configure_sqlite, get_session
from volunteer_hub.main import app
from volunteer_hub.models import Event, Registration, RegistrationStatus

ORGANIZER_KEY = "test-organizer-key"


@pytest.fixture(autouse=True)
def organizer_key(monkeypatch):
    """Enable organizer access with a known key."""
    monkeypatch.setattr(settings, "organizer_api_key", ORGANIZER_KEY)
    return ORGANIZER_KEY


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = configure_sqlite(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with the test database session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="organizer_headers")
def organizer_headers_fixture() -> dict[str, str]:
    return {"Authorization": f"Bearer {ORGANIZER_KEY}"}


def _make_event(session: Session, **overrides) -> Event:
    fields = {
        "title": "Park Cleanup",
        "description": "Bring gloves",
        "location": "Central Park",
        "date": date.today() + timedelta(days=7),
        "max_participants": 2,
    }
    fields.update(overrides)
    event = Event(**fields)
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


def _holder(n: int = 1, **overrides) -> dict:
    fields = {
        "first_name": f"Volunteer{n}",
        "last_name": "Test",
        "email": f"volunteer{n}@example.com",
        "phone_number": f"06 12 34 56 {n:02d}",
    }
    fields.update(overrides)
    return fields


@pytest.fixture(name="sample_event")
def sample_event_fixture(session: Session) -> Event:
    """An upcoming event with two places."""
    return _make_event(session)


@pytest.fixture(name="archived_event")
def archived_event_fixture(session: Session) -> Event:
    """An archived event from last week."""
    return _make_event(
        session,
        title="Archived Event",
        date=date.today() - timedelta(days=7),
        archived=True,
    )


@pytest.fixture(name="registered")
def registered_fixture(session: Session, sample_event: Event) -> Registration:
    """One present volunteer on the sample event, kept consistent with the counter."""
    registration = Registration(
        token="a1b2c3d4e5f60718",
        event_id=sample_event.id,
        status=RegistrationStatus.PRESENT,
        **_holder(1),
    )
    sample_event.current_participants = 1
    session.add(registration)
    session.add(sample_event)
    session.commit()
    session.refresh(registration)
    return registration


@pytest.fixture(name="make_event")
def make_event_fixture(session: Session):
    """Factory for events; keyword arguments override the defaults."""

    def make(**overrides) -> Event:
        return _make_event(session, **overrides)

    return make


@pytest.fixture(name="holder")
def holder_fixture():
    """Factory for registration identity payloads, numbered to stay unique."""
    return _holder
