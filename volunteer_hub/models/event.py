"""Event model for organizer-published volunteering activities.

This module defines the Event table along with the request and response
schemas built on top of it. An event is the unit of capacity: the number
of volunteers who may declare themselves present is capped by
``max_participants``, and ``current_participants`` mirrors how many
currently do.
"""

import datetime as dt
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from pydantic import computed_field, field_validator, model_validator
from sqlmodel import Field, Relationship, SQLModel

from volunteer_hub.models.common import utcnow

if TYPE_CHECKING:
    from volunteer_hub.models.registration import Registration


class EventBase(SQLModel):
    title: str = Field(max_length=200)
    description: str | None = None
    location: str = Field(max_length=200)
    date: dt.date
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    image_url: str | None = Field(default=None, max_length=2048)
    max_participants: int


class Event(EventBase, table=True):
    """A volunteering event with a capacity limit.

    Events are created by organizers. Volunteers register against them and
    the ledger keeps ``current_participants`` equal to the number of
    registrations whose status is "present". Archived events are hidden
    from default listings and refuse new registrations but keep their
    roster for reference.

    Attributes:
        id: Unique identifier (UUID).
        title: Short public name of the event.
        description: Optional free text shown on the event page.
        location: Where volunteers should go.
        date: Calendar day of the event (timezone-naive).
        start_time: Optional time of day the event starts.
        end_time: Optional time of day the event ends.
        image_url: Optional illustration.
        max_participants: Maximum number of present registrations (>= 1).
        current_participants: Present-count maintained by the ledger. Only
            the ledger writes this column after creation.
        archived: If True, the event is soft-removed from listings.
        created_at: When the organizer created the event.
        updated_at: Last organizer edit.
        registrations: Volunteers registered for this event.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    current_participants: int = Field(default=0)
    archived: bool = Field(default=False, index=True)
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)

    # Relationship
    registrations: list["Registration"] = Relationship(back_populates="event")

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants


def _require_text(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _check_image_url(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return value


class EventCreate(EventBase):
    """Fields an organizer submits to publish an event."""
    max_participants: int = Field(ge=1)

    strip_required = field_validator("title", "location")(_require_text)
    normalize_image_url = field_validator("image_url")(_check_image_url)

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class EventUpdate(SQLModel):
    """Partial update; only the fields that are set are applied."""
    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    location: str | None = Field(default=None, max_length=200)
    date: dt.date | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    image_url: str | None = Field(default=None, max_length=2048)
    max_participants: int | None = Field(default=None, ge=1)

    strip_required = field_validator("title", "location")(_require_text)
    normalize_image_url = field_validator("image_url")(_check_image_url)


class EventRead(EventBase):
    id: UUID
    current_participants: int
    archived: bool
    created_at: dt.datetime
    updated_at: dt.datetime

    @computed_field
    @property
    def available_spots(self) -> int:
        return max(self.max_participants - self.current_participants, 0)

    @computed_field
    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants


class TimeWindow(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"


class Availability(str, Enum):
    ALL = "all"
    FULL = "full"
    AVAILABLE = "available"


class EventSort(str, Enum):
    DATE = "date"
    POPULARITY = "popularity"
    FILL_RATIO = "fill_ratio"


class EventFilter(SQLModel):
    """Listing options for events.

    ``archived=None`` lists archived and active events together.
    """
    when: TimeWindow = TimeWindow.ALL
    archived: bool | None = False
    availability: Availability = Availability.ALL
    q: str | None = None
    sort: EventSort = EventSort.DATE
    reverse: bool = False
