"""Tests for the event repository."""

from datetime import date, time, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func
from sqlmodel import Session, select

from volunteer_hub.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from volunteer_hub.core.security import ORGANIZER, VOLUNTEER
from volunteer_hub.ledger import events as repository
from volunteer_hub.ledger import registrations as ledger
from volunteer_hub.models import (
    Availability,
    Event,
    EventFilter,
    EventSort,
    Registration,
    RegistrationStatus,
    TimeWindow,
    VolunteerComment,
)

TODAY = date(2025, 6, 15)


class TestCreateEvent:
    """Tests for publishing events."""

    def test_create(self, session: Session):
        event = repository.create_event(
            session,
            ORGANIZER,
            {
                "title": "Beach Cleanup",
                "location": "North Beach",
                "date": "2025-07-01",
                "start_time": "09:00",
                "end_time": "12:00",
                "max_participants": 20,
            },
        )

        assert event.id is not None
        assert event.current_participants == 0
        assert event.archived is False
        assert event.date == date(2025, 7, 1)
        assert event.start_time == time(9, 0)
        assert session.get(Event, event.id) is not None

    def test_ignores_supplied_counter(self, session: Session):
        """Organizers cannot seed the participant counter."""
        event = repository.create_event(
            session,
            ORGANIZER,
            {
                "title": "Food Drive",
                "location": "Hall",
                "date": "2025-07-01",
                "max_participants": 5,
                "current_participants": 4,
            },
        )
        assert event.current_participants == 0

    def test_requires_organizer(self, session: Session):
        with pytest.raises(PermissionDeniedError):
            repository.create_event(
                session,
                VOLUNTEER,
                {"title": "X", "location": "Y", "date": "2025-07-01", "max_participants": 1},
            )
        assert session.exec(select(func.count(Event.id))).one() == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "X", "location": "Y", "date": "2025-07-01", "max_participants": 0},
            {"title": "", "location": "Y", "date": "2025-07-01", "max_participants": 3},
            {"title": "X", "location": "Y", "max_participants": 3},
            {"title": "X", "location": "Y", "date": "not a date", "max_participants": 3},
        ],
    )
    def test_invalid_input(self, session: Session, payload: dict):
        with pytest.raises(ValidationError):
            repository.create_event(session, ORGANIZER, payload)


class TestUpdateEvent:
    """Tests for editing events."""

    def test_partial_update(self, session: Session, sample_event: Event):
        updated = repository.update_event(
            session, ORGANIZER, sample_event.id, {"location": "Riverside"}
        )

        assert updated.location == "Riverside"
        assert updated.title == "Park Cleanup"
        assert updated.updated_at >= updated.created_at

    def test_raise_capacity(self, session: Session, registered: Registration, sample_event: Event):
        updated = repository.update_event(
            session, ORGANIZER, sample_event.id, {"max_participants": 10}
        )
        assert updated.max_participants == 10
        assert updated.current_participants == 1

    def test_lower_capacity_to_present_count(
        self, session: Session, registered: Registration, sample_event: Event
    ):
        updated = repository.update_event(
            session, ORGANIZER, sample_event.id, {"max_participants": 1}
        )
        assert updated.max_participants == 1
        assert updated.is_full

    def test_lower_capacity_below_present_count(
        self, session: Session, sample_event: Event, holder
    ):
        ledger.register(session, sample_event.id, holder(1))
        ledger.register(session, sample_event.id, holder(2))

        with pytest.raises(ValidationError) as exc_info:
            repository.update_event(
                session,
                ORGANIZER,
                sample_event.id,
                {"max_participants": 1, "title": "Renamed"},
            )

        assert "already registered" in exc_info.value.message
        session.refresh(sample_event)
        assert sample_event.max_participants == 2
        assert sample_event.title == "Park Cleanup"

    def test_cannot_clear_required_fields(self, session: Session, sample_event: Event):
        with pytest.raises(ValidationError):
            repository.update_event(session, ORGANIZER, sample_event.id, {"title": None})

    def test_end_time_checked_against_stored_start(
        self, session: Session, make_event
    ):
        event = make_event(start_time=time(10, 0), end_time=time(12, 0))
        with pytest.raises(ValidationError):
            repository.update_event(session, ORGANIZER, event.id, {"end_time": "09:00"})

    def test_unknown_event(self, session: Session):
        with pytest.raises(NotFoundError):
            repository.update_event(session, ORGANIZER, uuid4(), {"title": "X"})

    def test_requires_organizer(self, session: Session, sample_event: Event):
        with pytest.raises(PermissionDeniedError):
            repository.update_event(session, VOLUNTEER, sample_event.id, {"title": "X"})


class TestArchive:
    def test_archive_and_restore(
        self, session: Session, registered: Registration, sample_event: Event
    ):
        archived = repository.set_archived(session, ORGANIZER, sample_event.id, True)
        assert archived.archived is True
        assert len(ledger.list_by_event(session, sample_event.id)) == 1

        restored = repository.set_archived(session, ORGANIZER, sample_event.id, False)
        assert restored.archived is False

    def test_requires_organizer(self, session: Session, sample_event: Event):
        with pytest.raises(PermissionDeniedError):
            repository.set_archived(session, VOLUNTEER, sample_event.id, True)


class TestDeleteEvent:
    """Tests for deleting events."""

    def test_cascades(
        self, session: Session, registered: Registration, sample_event: Event, make_event, holder
    ):
        other = make_event(title="Food Bank")
        kept = ledger.register(session, other.id, holder(2))
        ledger.add_comment(session, ORGANIZER, registered.token, "Great help")
        ledger.add_comment(session, ORGANIZER, kept.token, "Also great")
        event_id = sample_event.id

        repository.delete_event(session, ORGANIZER, event_id)

        assert session.get(Event, event_id) is None
        remaining = session.exec(select(Registration)).all()
        assert [r.token for r in remaining] == [kept.token]
        comments = session.exec(select(VolunteerComment)).all()
        assert [c.content for c in comments] == ["Also great"]

    def test_unknown_event(self, session: Session):
        with pytest.raises(NotFoundError):
            repository.delete_event(session, ORGANIZER, uuid4())

    def test_requires_organizer(self, session: Session, sample_event: Event):
        with pytest.raises(PermissionDeniedError):
            repository.delete_event(session, VOLUNTEER, sample_event.id)
        assert session.get(Event, sample_event.id) is not None


@pytest.fixture(name="calendar")
def calendar_fixture(make_event) -> dict[str, Event]:
    """A spread of events around TODAY; only Beach Cleanup has a description."""
    return {
        "past": make_event(
            title="Spring Planting",
            description=None,
            location="Community Garden",
            date=TODAY - timedelta(days=30),
            max_participants=10,
            current_participants=10,
        ),
        "today": make_event(
            title="Beach Cleanup",
            location="North Beach",
            description="Bags and gloves provided",
            date=TODAY,
            max_participants=4,
            current_participants=1,
        ),
        "soon": make_event(
            title="Food Drive",
            description=None,
            location="Town Hall",
            date=TODAY + timedelta(days=3),
            max_participants=2,
            current_participants=2,
        ),
        "later": make_event(
            title="Book Sale",
            description=None,
            location="Library",
            date=TODAY + timedelta(days=20),
            max_participants=50,
            current_participants=5,
        ),
        "archived": make_event(
            title="Old Fair",
            description=None,
            location="Fairground",
            date=TODAY - timedelta(days=90),
            max_participants=5,
            archived=True,
        ),
    }


def titles(events: list[Event]) -> list[str]:
    return [event.title for event in events]


class TestListEvents:
    """Tests for filtering and sorting the event list."""

    def test_default_lists_active_by_date(self, session: Session, calendar):
        events = repository.list_events(session, today=TODAY)
        assert titles(events) == ["Spring Planting", "Beach Cleanup", "Food Drive", "Book Sale"]

    def test_upcoming_includes_today(self, session: Session, calendar):
        events = repository.list_events(session, {"when": "upcoming"}, today=TODAY)
        assert titles(events) == ["Beach Cleanup", "Food Drive", "Book Sale"]

    def test_past(self, session: Session, calendar):
        events = repository.list_events(
            session, EventFilter(when=TimeWindow.PAST, archived=None), today=TODAY
        )
        assert titles(events) == ["Old Fair", "Spring Planting"]

    def test_archived_only(self, session: Session, calendar):
        events = repository.list_events(session, {"archived": True}, today=TODAY)
        assert titles(events) == ["Old Fair"]

    def test_full_and_available(self, session: Session, calendar):
        full = repository.list_events(
            session, EventFilter(availability=Availability.FULL), today=TODAY
        )
        assert titles(full) == ["Spring Planting", "Food Drive"]

        available = repository.list_events(
            session, {"availability": "available", "when": "upcoming"}, today=TODAY
        )
        assert titles(available) == ["Beach Cleanup", "Book Sale"]

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("beach", ["Beach Cleanup"]),
            ("HALL", ["Food Drive"]),
            ("gloves", ["Beach Cleanup"]),
            ("100%", []),
        ],
    )
    def test_search(self, session: Session, calendar, query: str, expected: list[str]):
        events = repository.list_events(session, {"q": query}, today=TODAY)
        assert titles(events) == expected

    def test_sort_by_popularity(self, session: Session, calendar):
        events = repository.list_events(
            session, EventFilter(sort=EventSort.POPULARITY), today=TODAY
        )
        assert titles(events) == ["Spring Planting", "Book Sale", "Food Drive", "Beach Cleanup"]

    def test_sort_by_fill_ratio(self, session: Session, calendar):
        events = repository.list_events(session, {"sort": "fill_ratio"}, today=TODAY)
        assert titles(events) == ["Spring Planting", "Food Drive", "Beach Cleanup", "Book Sale"]

    def test_reverse(self, session: Session, calendar):
        events = repository.list_events(session, {"reverse": True}, today=TODAY)
        assert titles(events) == ["Book Sale", "Food Drive", "Beach Cleanup", "Spring Planting"]

    def test_invalid_filter(self, session: Session):
        with pytest.raises(ValidationError):
            repository.list_events(session, {"when": "tomorrow"})
