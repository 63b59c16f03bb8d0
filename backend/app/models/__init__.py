from app.models.user import User
from app.models.category import Category
from app.models.event import Event, EventState, StateAction
from app.models.request import ParticipationRequest, RequestStatus
from app.models.hit import Hit

__all__ = [
    "User", "Category",
    "Event", "EventState", "StateAction",
    "ParticipationRequest", "RequestStatus",
    "Hit",
]
