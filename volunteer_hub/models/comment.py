"""Organizer comments attached to a registration."""

import datetime as dt
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from pydantic import field_validator
from sqlmodel import Field, Relationship, SQLModel

from volunteer_hub.models.common import utcnow

if TYPE_CHECKING:
    from volunteer_hub.models.registration import Registration


class VolunteerComment(SQLModel, table=True):
    """A note an organizer left about a volunteer.

    Comments are append-only: there is no edit or delete other than the
    cascade when the registration itself is removed.

    Attributes:
        id: Unique identifier (UUID).
        registration_token: Foreign key to the Registration commented on.
        content: Free text.
        created_at: Server-assigned timestamp; defines the ordering.
        registration: Reference to the parent Registration object.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    registration_token: str = Field(foreign_key="registration.token", index=True)
    content: str = Field(max_length=2000)
    created_at: dt.datetime = Field(default_factory=utcnow)

    # Relationship
    registration: Optional["Registration"] = Relationship(back_populates="comments")


class CommentCreate(SQLModel):
    content: str = Field(max_length=2000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class CommentRead(SQLModel):
    id: UUID
    content: str
    created_at: dt.datetime
