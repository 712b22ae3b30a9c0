"""Organizer dashboard rollups.

Everything here is read-only and computed from the registrations
themselves rather than from the events' stored counters, so a drifted
counter shows up as a discrepancy to repair instead of skewing the
statistics.

Volunteers are grouped across events by a canonical key: the lower-cased
email when there is one, otherwise the phone number stripped of spaces,
dots and dashes.
"""
import datetime as dt
import logging
import re
from collections import Counter, defaultdict

from sqlmodel import Session, select

from volunteer_hub.models import Event, Registration, RegistrationStatus
from volunteer_hub.models.dashboard import (
    DashboardOverview,
    MonthlyRate,
    VolunteerEvent,
    VolunteerHistory,
)

logger = logging.getLogger(__name__)

PHONE_SEPARATORS = re.compile(r"[\s.\-]")


def volunteer_key(registration: Registration) -> str:
    """Identity under which a person's registrations are grouped."""
    if registration.email:
        return registration.email.strip().lower()
    if registration.phone_number:
        return PHONE_SEPARATORS.sub("", registration.phone_number)
    # Unreachable through the ledger, which requires a contact; keep the
    # row on its own rather than merging it with other anonymous rows.
    return f"token:{registration.token}"


def _present_by_event(registrations: list[Registration]) -> Counter:
    return Counter(
        r.event_id for r in registrations if r.status is RegistrationStatus.PRESENT
    )


def overview(session: Session, today: dt.date | None = None) -> DashboardOverview:
    """Headline numbers across every event."""
    today = today or dt.date.today()
    events = session.exec(select(Event)).all()
    registrations = session.exec(select(Registration)).all()

    present = _present_by_event(registrations)
    total_present = sum(present.values())
    total_capacity = sum(event.max_participants for event in events)

    stats = DashboardOverview(
        total_events=len(events),
        upcoming_events=sum(1 for e in events if not e.archived and e.date >= today),
        past_events=sum(1 for e in events if e.date < today),
        archived_events=sum(1 for e in events if e.archived),
        full_events=sum(1 for e in events if present[e.id] >= e.max_participants),
        total_registrations=len(registrations),
        total_present=total_present,
        unique_volunteers=len({volunteer_key(r) for r in registrations}),
        average_present_per_event=round(total_present / len(events), 2) if events else 0.0,
        participation_rate=(
            round(total_present / total_capacity * 100, 1) if total_capacity else 0.0
        ),
    )

    drifted = [e.id for e in events if e.current_participants != present[e.id]]
    if drifted:
        logger.warning(f"{len(drifted)} events have a stale participant count: {drifted}")
    return stats


def volunteer_history(session: Session, q: str | None = None) -> list[VolunteerHistory]:
    """
    Every volunteer with their registrations across all events.

    Sorted by number of events (most first), then name. ``q`` keeps only the
    volunteers whose name, email or phone contains it (case-insensitive).
    """
    statement = (
        select(Registration, Event)
        .join(Event, Registration.event_id == Event.id)
        .order_by(Registration.registration_date, Registration.token)
    )
    grouped: dict[str, list[tuple[Registration, Event]]] = defaultdict(list)
    for registration, event in session.exec(statement).all():
        grouped[volunteer_key(registration)].append((registration, event))

    history = []
    for key, rows in grouped.items():
        # Latest registration carries the most recent contact details
        latest, _ = rows[-1]
        statuses = Counter(registration.status for registration, _ in rows)
        history.append(
            VolunteerHistory(
                key=key,
                name=latest.full_name,
                email=latest.email,
                phone_number=latest.phone_number,
                total_events=len(rows),
                present_events=statuses[RegistrationStatus.PRESENT],
                absent_events=statuses[RegistrationStatus.ABSENT],
                undecided_events=statuses[RegistrationStatus.UNDECIDED],
                first_registration=rows[0][0].registration_date,
                events=[
                    VolunteerEvent(
                        event_id=event.id,
                        title=event.title,
                        date=event.date,
                        status=registration.status,
                        registration_date=registration.registration_date,
                    )
                    for registration, event in rows
                ],
            )
        )

    query = (q or "").strip().lower()
    if query:
        history = [
            h
            for h in history
            if query in h.name.lower()
            or query in (h.email or "")
            or query in (h.phone_number or "")
        ]

    history.sort(key=lambda h: (-h.total_events, h.name.lower()))
    return history


def _month_start(day: dt.date, months_back: int) -> dt.date:
    index = day.year * 12 + day.month - 1 - months_back
    return dt.date(index // 12, index % 12 + 1, 1)


def monthly_participation(
    session: Session, months: int = 6, today: dt.date | None = None
) -> list[MonthlyRate]:
    """
    Participation rate for each of the last ``months`` calendar months,
    the current month included, oldest first.

    The rate is present volunteers over the summed capacity of the events
    dated in that month, as a percentage.
    """
    today = today or dt.date.today()
    months = max(months, 1)
    first_day = _month_start(today, months - 1)

    buckets = {
        _month_start(today, back).strftime("%Y-%m"): MonthlyRate(
            month=_month_start(today, back).strftime("%Y-%m")
        )
        for back in range(months - 1, -1, -1)
    }

    events = session.exec(select(Event).where(Event.date >= first_day)).all()
    registrations = session.exec(
        select(Registration)
        .join(Event, Registration.event_id == Event.id)
        .where(Event.date >= first_day)
    ).all()
    present = _present_by_event(registrations)

    for event in events:
        bucket = buckets.get(event.date.strftime("%Y-%m"))
        if bucket is None:
            continue  # dated after the current month
        bucket.events += 1
        bucket.capacity += event.max_participants
        bucket.present += present[event.id]

    for bucket in buckets.values():
        if bucket.capacity:
            bucket.participation_rate = round(bucket.present / bucket.capacity * 100, 1)

    return list(buckets.values())
