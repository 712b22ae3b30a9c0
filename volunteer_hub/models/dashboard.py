"""Read-only rollups returned by the organizer dashboard."""

import datetime as dt
from uuid import UUID

from sqlmodel import SQLModel

from volunteer_hub.models.common import RegistrationStatus


class DashboardOverview(SQLModel):
    total_events: int = 0
    upcoming_events: int = 0
    past_events: int = 0
    archived_events: int = 0
    full_events: int = 0
    total_registrations: int = 0
    total_present: int = 0
    unique_volunteers: int = 0
    average_present_per_event: float = 0.0
    participation_rate: float = 0.0  # percent of summed capacity


class VolunteerEvent(SQLModel):
    event_id: UUID
    title: str
    date: dt.date
    status: RegistrationStatus
    registration_date: dt.datetime


class VolunteerHistory(SQLModel):
    """Every registration made by one person, across events."""
    key: str
    name: str
    email: str | None = None
    phone_number: str | None = None
    total_events: int = 0
    present_events: int = 0
    absent_events: int = 0
    undecided_events: int = 0
    first_registration: dt.datetime
    events: list[VolunteerEvent] = []


class MonthlyRate(SQLModel):
    month: str  # "YYYY-MM"
    events: int = 0
    present: int = 0
    capacity: int = 0
    participation_rate: float = 0.0
