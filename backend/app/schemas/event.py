"""
Pydantic schemas for event-related request/response validation,
the EventView read model, and the pure conversion functions between them.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.core import clock
from app.core.clock import FormattedDateTime
from app.models.category import Category
from app.models.event import Event, EventState, StateAction
from app.models.user import User
from app.schemas.base import CamelModel

OWNER_ACTIONS = {StateAction.NONE, StateAction.SEND_TO_REVIEW, StateAction.CANCEL_REVIEW}
ADMIN_ACTIONS = {StateAction.NONE, StateAction.PUBLISH_EVENT, StateAction.REJECT_EVENT}


def _must_be_future(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value <= clock.now():
        raise ValueError("Event date must be in the future")
    return value


class Location(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class NewEventRequest(CamelModel):
    annotation: str = Field(..., min_length=20, max_length=2000)
    category: int = Field(..., gt=0)
    description: str = Field(..., min_length=20, max_length=7000)
    event_date: FormattedDateTime
    location: Location
    paid: bool = False
    participant_limit: int = Field(0, ge=0)
    request_moderation: bool = True
    title: str = Field(..., min_length=3, max_length=120)

    @field_validator("annotation", "description", "title")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Field must not be blank")
        return value

    @field_validator("event_date")
    @classmethod
    def event_date_in_future(cls, value: datetime) -> datetime:
        return _must_be_future(value)


class UpdateEventRequest(CamelModel):
    """Partial update: omitted (None) fields and blank text fields are left unchanged."""

    annotation: Optional[str] = Field(None, min_length=20, max_length=2000)
    category: Optional[int] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=20, max_length=7000)
    event_date: Optional[FormattedDateTime] = None
    location: Optional[Location] = None
    paid: Optional[bool] = None
    participant_limit: Optional[int] = Field(None, ge=0)
    request_moderation: Optional[bool] = None
    state_action: Optional[StateAction] = None
    title: Optional[str] = Field(None, min_length=3, max_length=120)

    @field_validator("event_date")
    @classmethod
    def event_date_in_future(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _must_be_future(value)


class UpdateEventUserRequest(UpdateEventRequest):
    @field_validator("state_action")
    @classmethod
    def owner_action(cls, value: Optional[StateAction]) -> Optional[StateAction]:
        if value is not None and value not in OWNER_ACTIONS:
            raise ValueError("Owner can only use SEND_TO_REVIEW or CANCEL_REVIEW")
        return value


class UpdateEventAdminRequest(UpdateEventRequest):
    @field_validator("state_action")
    @classmethod
    def admin_action(cls, value: Optional[StateAction]) -> Optional[StateAction]:
        if value is not None and value not in ADMIN_ACTIONS:
            raise ValueError("Administrator can only use PUBLISH_EVENT or REJECT_EVENT")
        return value


class CategoryResponse(CamelModel):
    id: int
    name: str


class UserShortResponse(CamelModel):
    id: int
    name: str


class EventShortResponse(CamelModel):
    annotation: str
    category: CategoryResponse
    confirmed_requests: int
    event_date: FormattedDateTime
    id: int
    initiator: UserShortResponse
    paid: bool
    title: str
    views: int


class EventFullResponse(EventShortResponse):
    created_on: FormattedDateTime
    description: str
    location: Location
    participant_limit: int
    published_on: Optional[FormattedDateTime] = None
    request_moderation: bool
    state: EventState


class EventSort(str, enum.Enum):
    EVENT_DATE = "EVENT_DATE"
    VIEWS = "VIEWS"


@dataclass
class PublicEventFilter:
    text: Optional[str] = None
    categories: Optional[list[int]] = None
    paid: Optional[bool] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    only_available: bool = False
    sort: Optional[EventSort] = None
    offset: int = 0
    size: int = 10


@dataclass
class AdminEventFilter:
    users: Optional[list[int]] = None
    states: Optional[list[EventState]] = None
    categories: Optional[list[int]] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    offset: int = 0
    size: int = 10


@dataclass
class EventView:
    """Read model: an event with its references and per-read derived counters."""

    event: Event
    category: Category
    initiator: User
    views: int = 0
    confirmed_requests: int = 0


def _short_fields(view: EventView) -> dict:
    event = view.event
    return {
        "annotation": event.annotation,
        "category": CategoryResponse(id=view.category.id, name=view.category.name),
        "confirmed_requests": view.confirmed_requests,
        "event_date": event.event_date,
        "id": event.id,
        "initiator": UserShortResponse(id=view.initiator.id, name=view.initiator.name),
        "paid": event.paid,
        "title": event.title,
        "views": view.views,
    }


def to_short_response(view: EventView) -> EventShortResponse:
    return EventShortResponse(**_short_fields(view))


def to_full_response(view: EventView) -> EventFullResponse:
    event = view.event
    return EventFullResponse(
        **_short_fields(view),
        created_on=event.created_on,
        description=event.description,
        location=Location(lat=event.lat, lon=event.lon),
        participant_limit=event.participant_limit,
        published_on=event.published_on,
        request_moderation=event.request_moderation,
        state=EventState(event.state),
    )
