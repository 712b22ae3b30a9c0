"""Event repository.

CRUD over events. This module never moves ``current_participants`` itself:
it is 0 when an event is created and belongs to the registration ledger
afterwards. The one place it reads it is the capacity edit, which may not
drop ``max_participants`` below the number of volunteers already present.
"""
import datetime as dt
import logging
from uuid import UUID

from sqlalchemy import Float, cast, delete, func, or_, update
from sqlmodel import Session, select

from volunteer_hub.core.database import atomic
from volunteer_hub.core.errors import NotFoundError, ValidationError, validate_input
from volunteer_hub.core.security import Actor, require_organizer
from volunteer_hub.models import (
    Availability,
    Event,
    EventCreate,
    EventFilter,
    EventSort,
    EventUpdate,
    Registration,
    TimeWindow,
    VolunteerComment,
)
from volunteer_hub.models.common import utcnow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "location", "date", "max_participants")


def get_event(session: Session, event_id: UUID) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


def create_event(session: Session, actor: Actor, data: EventCreate | dict) -> Event:
    """Publish a new event with no participants."""
    require_organizer(actor)
    data = validate_input(EventCreate, data)

    event = Event(**data.model_dump(), current_participants=0, archived=False)
    with atomic(session):
        session.add(event)

    session.refresh(event)
    logger.info(f"Created event {event.id} ({event.title}) with {event.max_participants} places")
    return event


def update_event(
    session: Session, actor: Actor, event_id: UUID, data: EventUpdate | dict
) -> Event:
    """
    Apply a partial update to an event.

    Lowering ``max_participants`` below the current present-count raises
    ValidationError and leaves the event untouched. The capacity is written
    with a conditional UPDATE, so a registration racing with the edit
    cannot end up over the new limit.
    """
    require_organizer(actor)
    data = validate_input(EventUpdate, data)
    changes = data.model_dump(exclude_unset=True)

    cleared = [name for name in REQUIRED_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise ValidationError(f"Required fields cannot be cleared: {', '.join(cleared)}")

    event = get_event(session, event_id)

    start_time = changes.get("start_time", event.start_time)
    end_time = changes.get("end_time", event.end_time)
    if start_time and end_time and end_time <= start_time:
        raise ValidationError("end_time must be after start_time")

    new_max = changes.pop("max_participants", None)

    with atomic(session):
        if new_max is not None:
            result = session.exec(
                update(Event)
                .where(Event.id == event_id)
                .where(Event.current_participants <= new_max)
                .values(max_participants=new_max)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                present = session.exec(
                    select(Event.current_participants).where(Event.id == event_id)
                ).one()
                raise ValidationError(
                    f"Capacity cannot be lowered to {new_max}: "
                    f"{present} volunteers are already registered as present"
                )

        for name, value in changes.items():
            setattr(event, name, value)
        event.updated_at = utcnow()
        session.add(event)

    session.refresh(event)
    logger.info(f"Updated event {event_id}: {sorted(data.model_fields_set)}")
    return event


def set_archived(session: Session, actor: Actor, event_id: UUID, archived: bool) -> Event:
    """Archive or restore an event. Registrations are left as they are."""
    require_organizer(actor)
    event = get_event(session, event_id)

    with atomic(session):
        event.archived = archived
        event.updated_at = utcnow()
        session.add(event)

    session.refresh(event)
    logger.info(f"Event {event_id} {'archived' if archived else 'restored'}")
    return event


def delete_event(session: Session, actor: Actor, event_id: UUID) -> None:
    """
    Delete an event together with its registrations and their comments.

    Everything goes in one transaction; no registration is left pointing
    at a deleted event.
    """
    require_organizer(actor)
    event = get_event(session, event_id)

    tokens = select(Registration.token).where(Registration.event_id == event_id)
    with atomic(session):
        session.exec(
            delete(VolunteerComment)
            .where(VolunteerComment.registration_token.in_(tokens))
            .execution_options(synchronize_session=False)
        )
        removed = session.exec(
            delete(Registration)
            .where(Registration.event_id == event_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        session.exec(
            delete(Event)
            .where(Event.id == event_id)
            .execution_options(synchronize_session=False)
        )

    # Bulk deletes bypass the identity map
    session.expunge(event)
    session.expire_all()
    logger.info(f"Deleted event {event_id} and {removed} registrations")


def list_events(
    session: Session,
    filters: EventFilter | dict | None = None,
    today: dt.date | None = None,
) -> list[Event]:
    """
    List events matching ``filters``.

    ``today`` decides what counts as upcoming (date on or after it) and past
    (date before it); it defaults to the server's current date.
    """
    filters = validate_input(EventFilter, filters or {})
    today = today or dt.date.today()

    statement = select(Event)

    if filters.archived is not None:
        statement = statement.where(Event.archived == filters.archived)

    if filters.when is TimeWindow.UPCOMING:
        statement = statement.where(Event.date >= today)
    elif filters.when is TimeWindow.PAST:
        statement = statement.where(Event.date < today)

    if filters.availability is Availability.FULL:
        statement = statement.where(Event.current_participants >= Event.max_participants)
    elif filters.availability is Availability.AVAILABLE:
        statement = statement.where(Event.current_participants < Event.max_participants)

    query = (filters.q or "").strip().lower()
    if query:
        statement = statement.where(
            or_(
                func.lower(Event.title).contains(query, autoescape=True),
                func.lower(Event.location).contains(query, autoescape=True),
                func.lower(func.coalesce(Event.description, "")).contains(
                    query, autoescape=True
                ),
            )
        )

    if filters.sort is EventSort.POPULARITY:
        primary = Event.current_participants
        descending = True
    elif filters.sort is EventSort.FILL_RATIO:
        primary = cast(Event.current_participants, Float) / Event.max_participants
        descending = True
    else:
        primary = Event.date
        descending = False

    if filters.reverse:
        descending = not descending

    statement = statement.order_by(
        primary.desc() if descending else primary.asc(),
        Event.date,
        Event.start_time,
        Event.title,
    )
    return list(session.exec(statement).all())
