from app.schemas.event import (
    NewEventRequest, UpdateEventUserRequest, UpdateEventAdminRequest,
    EventFullResponse, EventShortResponse, EventView,
)
from app.schemas.request import (
    ParticipationRequestResponse, EventRequestStatusUpdateRequest, EventRequestStatusUpdateResult,
)
from app.schemas.stats import HitCreate, ViewStats

__all__ = [
    "NewEventRequest", "UpdateEventUserRequest", "UpdateEventAdminRequest",
    "EventFullResponse", "EventShortResponse", "EventView",
    "ParticipationRequestResponse", "EventRequestStatusUpdateRequest", "EventRequestStatusUpdateResult",
    "HitCreate", "ViewStats",
]
