"""Registration routes: sign-up, self-service status changes, rosters."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from volunteer_hub.core.database import get_session
from volunteer_hub.core.security import Actor, get_actor, require_organizer
from volunteer_hub.ledger import registrations as ledger
from volunteer_hub.models import (
    CommentCreate,
    CommentRead,
    Registration,
    RegistrationCreate,
    RegistrationRead,
    RegistrationReceipt,
    RegistrationView,
    RegistrationWithComments,
    StatusUpdate,
)

router = APIRouter(tags=["registrations"])


def _with_comments(registration: Registration) -> RegistrationWithComments:
    return RegistrationWithComments.model_validate(registration, from_attributes=True)


@router.post(
    "/events/{event_id}/registrations",
    response_model=RegistrationReceipt,
    status_code=201,
)
async def register(
    event_id: UUID,
    payload: RegistrationCreate,
    session: Session = Depends(get_session),
):
    """
    Register for an event.

    The response carries the registration token. It is shown only this
    once and is the sole way to change the registration later, so clients
    must display it to the volunteer right away. Returns 409 when
    registering as present for a full event.
    """
    registration = ledger.register(session, event_id, payload, payload.status)
    return RegistrationReceipt(
        token=registration.token,
        registration=RegistrationRead.model_validate(registration, from_attributes=True),
    )


@router.get(
    "/events/{event_id}/registrations",
    response_model=list[RegistrationWithComments],
)
async def event_roster(
    event_id: UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """List an event's registrations with their comments. Organizer only."""
    require_organizer(actor)
    return [_with_comments(r) for r in ledger.list_by_event(session, event_id)]


@router.put(
    "/events/{event_id}/registrations/{token}/status",
    response_model=RegistrationRead,
)
async def override_status(
    event_id: UUID,
    token: str,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Set a volunteer's status on their behalf. Organizer only."""
    return ledger.override_status(session, actor, event_id, token, payload.status)


@router.delete("/events/{event_id}/registrations/{token}", status_code=204)
async def delete_registration(
    event_id: UUID,
    token: str,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Remove a volunteer from an event, freeing their place if they were present."""
    ledger.delete_registration(session, actor, event_id, token)
    return Response(status_code=204)


@router.get("/registrations/{token}", response_model=RegistrationView)
async def my_registration(token: str, session: Session = Depends(get_session)):
    """Show the token holder their registration and the event it is for."""
    registration = ledger.get_registration(session, token)
    event = registration.event
    return RegistrationView(
        **RegistrationRead.model_validate(registration, from_attributes=True).model_dump(),
        event_title=event.title,
        event_date=event.date,
        event_location=event.location,
    )


@router.put("/registrations/{token}/status", response_model=RegistrationRead)
async def change_my_status(
    token: str,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Change your own status using your registration token.

    Returns 409 with "The event is full" when switching to present on a
    full event, and 404 when the token is unknown.
    """
    return ledger.change_status(session, token, payload.status)


@router.get("/registrations/{token}/comments", response_model=list[CommentRead])
async def list_comments(
    token: str,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Organizer comments on a registration, oldest first. Organizer only."""
    require_organizer(actor)
    return ledger.list_comments(session, token)


@router.post(
    "/registrations/{token}/comments",
    response_model=RegistrationWithComments,
    status_code=201,
)
async def add_comment(
    token: str,
    payload: CommentCreate,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Attach a comment to a registration. Organizer only."""
    registration = ledger.add_comment(session, actor, token, payload)
    return _with_comments(registration)
