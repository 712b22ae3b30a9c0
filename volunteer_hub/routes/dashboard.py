"""Organizer dashboard routes."""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from volunteer_hub.core.database import get_session
from volunteer_hub.core.security import Actor, get_actor, require_organizer
from volunteer_hub.ledger import dashboard
from volunteer_hub.ledger.registrations import recount_participants
from volunteer_hub.models.dashboard import DashboardOverview, MonthlyRate, VolunteerHistory

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOverview)
async def overview(
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Headline statistics across all events."""
    require_organizer(actor)
    return dashboard.overview(session)


@router.get("/volunteers", response_model=list[VolunteerHistory])
async def volunteers(
    q: str | None = None,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Every volunteer with their per-event history, most active first."""
    require_organizer(actor)
    return dashboard.volunteer_history(session, q)


@router.get("/participation", response_model=list[MonthlyRate])
async def participation(
    months: int = Query(default=6, ge=1, le=36),
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """Monthly participation rate (present over capacity), oldest month first."""
    require_organizer(actor)
    return dashboard.monthly_participation(session, months)


@router.post("/recount")
async def recount(
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_actor),
):
    """
    Recompute every event's participant count from its registrations.

    Returns the events whose stored count had drifted, with the corrected
    value.
    """
    require_organizer(actor)
    drifted = recount_participants(session)
    return {"repaired": {str(event_id): count for event_id, count in drifted.items()}}
