from volunteer_hub.models.comment import CommentCreate, CommentRead, VolunteerComment
from volunteer_hub.models.common import RegistrationStatus
from volunteer_hub.models.event import (
    Availability,
    Event,
    EventCreate,
    EventFilter,
    EventRead,
    EventSort,
    EventUpdate,
    TimeWindow,
)
from volunteer_hub.models.registration import (
    HolderInfo,
    Registration,
    RegistrationCreate,
    RegistrationRead,
    RegistrationReceipt,
    RegistrationStats,
    RegistrationView,
    RegistrationWithComments,
    StatusUpdate,
)

__all__ = [
    "Availability",
    "CommentCreate",
    "CommentRead",
    "Event",
    "EventCreate",
    "EventFilter",
    "EventRead",
    "EventSort",
    "EventUpdate",
    "HolderInfo",
    "Registration",
    "RegistrationCreate",
    "RegistrationRead",
    "RegistrationReceipt",
    "RegistrationStats",
    "RegistrationStatus",
    "RegistrationView",
    "RegistrationWithComments",
    "StatusUpdate",
    "TimeWindow",
    "VolunteerComment",
]
