"""Authorization status routes."""
from fastapi import APIRouter, Depends

from volunteer_hub.core.config import settings
from volunteer_hub.core.security import Actor, get_actor

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/status")
async def auth_status(actor: Actor = Depends(get_actor)):
    """
    Report which role the request acts as.

    Returns JSON with the resolved role and whether organizer access is
    configured on this server at all.
    """
    return {
        "role": actor.role.value,
        "organizer_access_configured": bool(settings.organizer_api_key),
    }
