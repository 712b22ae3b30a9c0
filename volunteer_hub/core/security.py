"""Organizer authorization.

Authentication itself is handled outside this service. A request acts as
organizer when it presents the configured organizer API key as a bearer
token; every other request acts as a plain volunteer. The resulting
``Actor`` is passed explicitly into the organizer-only ledger operations.
"""

import secrets
from dataclasses import dataclass
from enum import Enum

from fastapi import Header

from volunteer_hub.core.config import settings
from volunteer_hub.core.errors import PermissionDeniedError


class Role(str, Enum):
    ORGANIZER = "organizer"
    VOLUNTEER = "volunteer"


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation."""
    role: Role = Role.VOLUNTEER

    @property
    def is_organizer(self) -> bool:
        return self.role is Role.ORGANIZER


ORGANIZER = Actor(role=Role.ORGANIZER)
VOLUNTEER = Actor(role=Role.VOLUNTEER)


def require_organizer(actor: Actor) -> None:
    """Raise PermissionDeniedError unless the actor is an organizer."""
    if not actor.is_organizer:
        raise PermissionDeniedError()


def actor_from_api_key(api_key: str | None) -> Actor:
    expected = settings.organizer_api_key
    if expected and api_key and secrets.compare_digest(api_key, expected):
        return ORGANIZER
    return VOLUNTEER


def get_actor(authorization: str | None = Header(default=None)) -> Actor:
    """Dependency resolving the acting identity from the Authorization header."""
    if not authorization:
        return VOLUNTEER
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return VOLUNTEER
    return actor_from_api_key(credentials.strip())
