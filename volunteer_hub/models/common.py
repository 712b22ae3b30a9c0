"""Types shared by the event, registration and comment models."""

from datetime import UTC, datetime
from enum import Enum


class RegistrationStatus(str, Enum):
    """Presence status a volunteer declares for an event."""
    PRESENT = "present"
    ABSENT = "absent"
    UNDECIDED = "undecided"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)
