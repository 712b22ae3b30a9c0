"""Registration ledger.

The ledger owns every registration and is the only code that moves an
event's ``current_participants`` counter after creation. The counter must
always equal the number of "present" registrations for the event, and may
never exceed ``max_participants``.

Concurrency model:
    Taking a seat is a single conditional UPDATE
    (``current_participants < max_participants``) executed in the same
    transaction as the registration write. Whichever transaction gets the
    row first wins; the others see zero affected rows and fail with
    CapacityError, having written nothing.

    A status change first swaps the registration's status with a
    compare-and-set on the status it read. If another request changed the
    status in between, the swap affects no row and the change is retried
    against the fresh value, so two concurrent transitions can never both
    move the counter.
"""
import logging
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from volunteer_hub.core.config import settings
from volunteer_hub.core.database import atomic
from volunteer_hub.core.errors import (
    CapacityError,
    ConflictError,
    NotFoundError,
    ValidationError,
    validate_input,
)
from volunteer_hub.core.security import Actor, require_organizer
from volunteer_hub.ledger.events import get_event
from volunteer_hub.ledger.tokens import generate_token
from volunteer_hub.models import (
    CommentCreate,
    Event,
    HolderInfo,
    Registration,
    RegistrationStats,
    RegistrationStatus,
    VolunteerComment,
)

logger = logging.getLogger(__name__)

PRESENT = RegistrationStatus.PRESENT

HOLDER_FIELDS = {"first_name", "last_name", "email", "phone_number"}

# Token lookups never say more than this, whatever the token looked like.
REGISTRATION_NOT_FOUND = "Registration not found"


def _claim_seat(session: Session, event_id: UUID) -> bool:
    """Take one present slot on the event if one is free."""
    result = session.exec(
        update(Event)
        .where(Event.id == event_id)
        .where(Event.current_participants < Event.max_participants)
        .values(current_participants=Event.current_participants + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _release_seat(session: Session, event_id: UUID) -> None:
    session.exec(
        update(Event)
        .where(Event.id == event_id)
        .where(Event.current_participants > 0)
        .values(current_participants=Event.current_participants - 1)
        .execution_options(synchronize_session=False)
    )


def _swap_status(
    session: Session,
    token: str,
    expected: RegistrationStatus,
    new_status: RegistrationStatus,
) -> bool:
    """Set the status only if it is still ``expected``."""
    result = session.exec(
        update(Registration)
        .where(Registration.token == token)
        .where(Registration.status == expected)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_registration(session: Session, token: str, fresh: bool = False) -> Registration:
    """
    Look a registration up by its token, across all events.

    With ``fresh`` the row is re-read even if this session already holds a
    copy, so decisions are made on the status as it is now.
    """
    registration = (
        session.get(Registration, token, populate_existing=fresh) if token else None
    )
    if not registration:
        raise NotFoundError(REGISTRATION_NOT_FOUND)
    return registration


def _get_event_registration(
    session: Session, event_id: UUID, token: str, fresh: bool = False
) -> Registration:
    registration = get_registration(session, token, fresh)
    if registration.event_id != event_id:
        raise NotFoundError(REGISTRATION_NOT_FOUND)
    return registration


def register(
    session: Session,
    event_id: UUID,
    holder: HolderInfo | dict,
    status: RegistrationStatus = PRESENT,
) -> Registration:
    """
    Register a volunteer for an event.

    A present registration takes a slot on the event in the same
    transaction; if the event is full, CapacityError is raised and nothing
    is written. Absent and undecided registrations never touch the counter.

    Returns the persisted registration. Its token is the volunteer's only
    credential and cannot be looked up again by any other means.
    """
    holder = validate_input(HolderInfo, holder)
    status = RegistrationStatus(status)
    fields = holder.model_dump(include=HOLDER_FIELDS)

    for attempt in range(1, settings.token_retry_attempts + 1):
        token = generate_token()
        try:
            with atomic(session):
                event = get_event(session, event_id)
                if event.archived:
                    raise ValidationError("Registrations are closed for archived events")

                if status is PRESENT and not _claim_seat(session, event_id):
                    logger.warning(f"Event {event_id} is full, refusing present registration")
                    raise CapacityError()

                registration = Registration(
                    token=token, event_id=event_id, status=status, **fields
                )
                session.add(registration)
                session.flush()
        except IntegrityError as e:
            # The event was deleted between the lookup and the insert.
            if session.get(Event, event_id, populate_existing=True) is None:
                raise NotFoundError("Event not found") from e
            if session.get(Registration, token) is None:
                raise
            logger.warning(f"Registration token collision (attempt {attempt}), retrying")
            continue

        session.refresh(registration)
        logger.info(
            f"Registered {registration.full_name} for event {event_id} as {status.value}"
        )
        return registration

    raise ConflictError("Could not allocate a registration token, please try again")


def change_status(
    session: Session, token: str, new_status: RegistrationStatus
) -> Registration:
    """
    Change the status of the registration identified by ``token``.

    Moving into "present" takes a slot (CapacityError if the event is full,
    in which case the status is left as it was). Moving out of "present"
    frees one. Setting the status the registration already has is a no-op
    that succeeds.
    """
    new_status = RegistrationStatus(new_status)

    for attempt in range(1, settings.status_change_retry_attempts + 1):
        registration = get_registration(session, token, fresh=True)
        old_status = registration.status
        event_id = registration.event_id

        if old_status == new_status:
            return registration

        with atomic(session):
            swapped = _swap_status(session, token, old_status, new_status)
            if swapped:
                if new_status is PRESENT:
                    if not _claim_seat(session, event_id):
                        logger.warning(
                            f"Event {event_id} is full, refusing status change to present"
                        )
                        raise CapacityError()
                elif old_status is PRESENT:
                    _release_seat(session, event_id)

        session.refresh(registration)
        if swapped:
            logger.info(
                f"Registration for event {event_id} changed "
                f"from {old_status.value} to {new_status.value}"
            )
            return registration

        logger.info(f"Registration changed concurrently (attempt {attempt}), retrying")

    raise ConflictError("The registration was changed by someone else, please try again")


def override_status(
    session: Session,
    actor: Actor,
    event_id: UUID,
    token: str,
    new_status: RegistrationStatus,
) -> Registration:
    """Organizer version of change_status, scoped to one event's roster."""
    require_organizer(actor)
    _get_event_registration(session, event_id, token)
    return change_status(session, token, new_status)


def delete_registration(session: Session, actor: Actor, event_id: UUID, token: str) -> None:
    """
    Remove a registration and its comments from an event.

    Frees the volunteer's slot if they were present.
    """
    require_organizer(actor)

    for attempt in range(1, settings.status_change_retry_attempts + 1):
        registration = _get_event_registration(session, event_id, token, fresh=True)
        status = registration.status

        with atomic(session):
            session.exec(
                delete(VolunteerComment)
                .where(VolunteerComment.registration_token == token)
                .execution_options(synchronize_session=False)
            )
            result = session.exec(
                delete(Registration)
                .where(Registration.token == token)
                .where(Registration.status == status)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount == 1
            if deleted and status is PRESENT:
                _release_seat(session, event_id)

        if deleted:
            session.expunge(registration)
            logger.info(f"Deleted {status.value} registration from event {event_id}")
            return

        # Status moved under us; the comment delete was rolled back with it.
        logger.info(f"Registration changed during delete (attempt {attempt}), retrying")

    raise ConflictError("The registration was changed by someone else, please try again")


def add_comment(
    session: Session, actor: Actor, token: str, content: str | CommentCreate
) -> Registration:
    """Append an organizer comment to a registration and return the registration."""
    require_organizer(actor)
    if isinstance(content, str):
        content = {"content": content}
    comment_in = validate_input(CommentCreate, content)
    registration = get_registration(session, token)

    with atomic(session):
        session.add(VolunteerComment(registration_token=token, content=comment_in.content))

    session.refresh(registration)
    logger.info(f"Comment added to a registration for event {registration.event_id}")
    return registration


def list_comments(session: Session, token: str) -> list[VolunteerComment]:
    get_registration(session, token)
    statement = (
        select(VolunteerComment)
        .where(VolunteerComment.registration_token == token)
        .order_by(VolunteerComment.created_at)
    )
    return list(session.exec(statement).all())


def list_by_event(session: Session, event_id: UUID) -> list[Registration]:
    """All registrations for an event, oldest first, with comments loaded."""
    get_event(session, event_id)
    statement = (
        select(Registration)
        .where(Registration.event_id == event_id)
        .options(selectinload(Registration.comments))
        .order_by(Registration.registration_date, Registration.token)
    )
    return list(session.exec(statement).all())


def present_count(session: Session, event_id: UUID) -> int:
    """Live count of present registrations, independent of the stored counter."""
    statement = (
        select(func.count(Registration.token))
        .where(Registration.event_id == event_id)
        .where(Registration.status == PRESENT)
    )
    return session.exec(statement).one()


def registration_stats(session: Session, event_id: UUID) -> RegistrationStats:
    """Registration counts per status for one event."""
    get_event(session, event_id)
    statement = (
        select(Registration.status, func.count(Registration.token))
        .where(Registration.event_id == event_id)
        .group_by(Registration.status)
    )
    counts = {status: count for status, count in session.exec(statement).all()}
    return RegistrationStats(
        total=sum(counts.values()),
        present=counts.get(RegistrationStatus.PRESENT, 0),
        absent=counts.get(RegistrationStatus.ABSENT, 0),
        undecided=counts.get(RegistrationStatus.UNDECIDED, 0),
    )


def recount_participants(session: Session, event_id: UUID | None = None) -> dict[UUID, int]:
    """
    Recompute stored present-counts from the registrations themselves.

    Repairs counters that drifted (for example after rows were edited
    outside the ledger). Each event is fixed with one UPDATE whose new value
    is a live count subquery, so a registration landing concurrently cannot
    be lost.

    Returns the corrected count of every event that had drifted.
    """
    live_count = (
        select(func.count(Registration.token))
        .where(Registration.event_id == Event.id)
        .where(Registration.status == PRESENT)
        .scalar_subquery()
    )

    drifted_statement = select(Event.id, live_count).where(
        Event.current_participants != live_count
    )
    if event_id is not None:
        get_event(session, event_id)
        drifted_statement = drifted_statement.where(Event.id == event_id)

    with atomic(session):
        drifted = {eid: count for eid, count in session.exec(drifted_statement).all()}
        if drifted:
            session.exec(
                update(Event)
                .where(Event.id.in_(list(drifted)))
                .values(current_participants=live_count)
                .execution_options(synchronize_session=False)
            )

    for eid, count in drifted.items():
        logger.warning(f"Participant count for event {eid} drifted, reset to {count}")
    session.expire_all()
    return drifted
