"""Event routes for publishing and browsing events."""
from enum import Enum
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from volunteer_hub.core.database import get_session
from volunteer_hub.core.security import Actor, get_actor
from volunteer_hub.ledger import events as repository
from volunteer_hub.ledger.registrations import registration_stats
from volunteer_hub.models import (
    Availability,
    EventCreate,
    EventFilter,
    EventRead,
    EventSort,
    EventUpdate,
    RegistrationStats,
    TimeWindow,
)

router = APIRouter(prefix="/events", tags=["events"])


class ArchiveScope(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    ALL = "all"


ARCHIVED_FLAG = {ArchiveScope.ACTIVE: False, ArchiveScope.ARCHIVED: True, ArchiveScope.ALL: None}


@router.get("", response_model=list[EventRead])
async def list_events(
    when: TimeWindow = TimeWindow.ALL,
    scope: ArchiveScope = ArchiveScope.ACTIVE,
    availability: Availability = Availability.ALL,
    q: str | None = None,
    sort: EventSort = EventSort.DATE,
    reverse: bool = False,
    session: Session = Depends(get_session),
):
    """
    List events.

    Active events are listed by default; ``scope=archived`` shows the
    archive and ``scope=all`` both. ``when`` narrows to upcoming (today or
    later) or past events, ``availability`` to full or open ones, and ``q``
    searches title, location and description. Sorting is by date (soonest
    first), popularity (most present volunteers first) or fill ratio.
    """
    filters = EventFilter(
        when=when,
        archived=ARCHIVED_FLAG[scope],
        availability=availability,
        q=q,
        sort=sort,
        reverse=reverse,
    )
    return repository.list_events(session, filters)


@router.post("", response_model=EventRead, status_code=201)
async def create_event(
    payload: EventCreate,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Publish a new event. Organizer only."""
    return repository.create_event(session, actor, payload)


@router.get("/{event_id}", response_model=EventRead)
async def event_detail(event_id: UUID, session: Session = Depends(get_session)):
    """Return a single event with its current participant count."""
    return repository.get_event(session, event_id)


@router.patch("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Edit an event. Organizer only.

    Returns 422 when the new capacity is below the number of volunteers
    already registered as present.
    """
    return repository.update_event(session, actor, event_id, payload)


@router.post("/{event_id}/archive", response_model=EventRead)
async def archive_event(
    event_id: UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Archive an event.

    Archived events disappear from the default listing and stop accepting
    registrations. Their roster is kept.
    """
    return repository.set_archived(session, actor, event_id, True)


@router.post("/{event_id}/unarchive", response_model=EventRead)
async def unarchive_event(
    event_id: UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Restore an archived event to the listings."""
    return repository.set_archived(session, actor, event_id, False)


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Delete an event along with all of its registrations and comments."""
    repository.delete_event(session, actor, event_id)
    return Response(status_code=204)


@router.get("/{event_id}/stats", response_model=RegistrationStats)
async def event_stats(event_id: UUID, session: Session = Depends(get_session)):
    """Registration counts per status for one event."""
    return registration_stats(session, event_id)
