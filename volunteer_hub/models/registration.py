"""Registration model for volunteers signing up to events.

A registration records one person's intent for one event. It is keyed by
an opaque token handed to the volunteer once, at creation time; whoever
holds the token can view the registration and change its status.
"""

import datetime as dt
import re
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import field_validator, model_validator
from sqlmodel import Field, Relationship, SQLModel

from volunteer_hub.models.comment import CommentRead
from volunteer_hub.models.common import RegistrationStatus, utcnow

if TYPE_CHECKING:
    from volunteer_hub.models.comment import VolunteerComment
    from volunteer_hub.models.event import Event

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 .\-]{5,19}$")


class HolderBase(SQLModel):
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str | None = Field(default=None, max_length=254, index=True)
    phone_number: str | None = Field(default=None, max_length=32)


class Registration(HolderBase, table=True):
    """A volunteer's registration for an event.

    Attributes:
        token: Bearer credential and primary key. Generated from a
            cryptographically strong source, never derived from the
            holder's identity, and never expires.
        event_id: Foreign key to the Event registered for.
        first_name: Holder's first name.
        last_name: Holder's last name.
        email: Holder's email, lower-cased. Optional if a phone is given.
        phone_number: Holder's phone. Optional if an email is given.
        status: "present", "absent" or "undecided". Only present
            registrations count against the event's capacity.
        registration_date: When the registration was created. Immutable.
        event: Reference to the parent Event object.
        comments: Organizer notes, in creation order.
    """
    token: str = Field(primary_key=True, max_length=64)
    event_id: UUID = Field(foreign_key="event.id", index=True)
    status: RegistrationStatus = Field(default=RegistrationStatus.UNDECIDED, index=True)
    registration_date: dt.datetime = Field(default_factory=utcnow)

    # Relationships
    event: Optional["Event"] = Relationship(back_populates="registrations")
    comments: list["VolunteerComment"] = Relationship(
        back_populates="registration",
        sa_relationship_kwargs={"order_by": "VolunteerComment.created_at"},
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class HolderInfo(HolderBase):
    """Identity and contact details supplied by the person registering."""

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("invalid email address")
        return value

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not PHONE_PATTERN.match(value):
            raise ValueError("invalid phone number")
        return value

    @model_validator(mode="after")
    def require_contact(self):
        if not self.email and not self.phone_number:
            raise ValueError("an email or a phone number is required")
        return self


class RegistrationCreate(HolderInfo):
    status: RegistrationStatus = RegistrationStatus.PRESENT


class RegistrationRead(HolderBase):
    token: str
    event_id: UUID
    status: RegistrationStatus
    registration_date: dt.datetime


class RegistrationWithComments(RegistrationRead):
    comments: list[CommentRead] = []


class RegistrationReceipt(SQLModel):
    """Returned once, when the registration is created.

    The token cannot be recovered afterwards; clients must show it to the
    volunteer right away.
    """
    token: str
    registration: RegistrationRead


class RegistrationView(RegistrationRead):
    """What a token holder sees about their own registration."""
    event_title: str
    event_date: dt.date
    event_location: str


class StatusUpdate(SQLModel):
    status: RegistrationStatus


class RegistrationStats(SQLModel):
    total: int = 0
    present: int = 0
    absent: int = 0
    undecided: int = 0
