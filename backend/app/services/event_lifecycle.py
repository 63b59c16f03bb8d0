"""
Event moderation lifecycle as a pure state machine.

    PENDING  --PUBLISH_EVENT (admin)-->   PUBLISHED   (now + 1h < event_date)
    PENDING  --REJECT_EVENT (admin)-->    CANCELED
    PENDING  --SEND_TO_REVIEW (owner)-->  PENDING     (now + 2h < event_date)
    CANCELED --SEND_TO_REVIEW (owner)-->  PENDING     (now + 2h < event_date)
    PENDING  --CANCEL_REVIEW (owner)-->   CANCELED    (now + 2h < event_date)
    CANCELED --CANCEL_REVIEW (owner)-->   CANCELED    (now + 2h < event_date)
    PUBLISHED is terminal.

The guards apply to every edit by that actor, including edits that carry no
state action. Nothing here touches the database; event_service owns I/O.
"""

from datetime import datetime, timedelta
from typing import Optional

from app.core.exceptions import ConflictStateError, ValidationFailedError
from app.models.event import Event, EventState, StateAction

OWNER_EDIT_LEAD_TIME = timedelta(hours=2)
ADMIN_PUBLISH_LEAD_TIME = timedelta(hours=1)

OWNER_EDITABLE_STATES = {EventState.PENDING.value, EventState.CANCELED.value}
ADMIN_EDITABLE_STATES = {EventState.PENDING.value}

OWNER_TRANSITIONS = {
    StateAction.SEND_TO_REVIEW: EventState.PENDING,
    StateAction.CANCEL_REVIEW: EventState.CANCELED,
}
ADMIN_TRANSITIONS = {
    StateAction.PUBLISH_EVENT: EventState.PUBLISHED,
    StateAction.REJECT_EVENT: EventState.CANCELED,
}


def _hours_left(event: Event, now: datetime) -> float:
    return round((event.event_date - now).total_seconds() / 3600, 1)


def check_owner_can_edit(event: Event, now: datetime) -> None:
    if event.state not in OWNER_EDITABLE_STATES:
        raise ConflictStateError(
            f"Only pending or canceled events can be changed; current state is {event.state}"
        )
    if not now + OWNER_EDIT_LEAD_TIME < event.event_date:
        raise ConflictStateError(
            "Event date must be at least 2 hours ahead to change the event; "
            f"hours left: {_hours_left(event, now)}"
        )


def check_admin_can_edit(event: Event, now: datetime) -> None:
    if event.state not in ADMIN_EDITABLE_STATES:
        raise ConflictStateError(
            f"Only pending events can be published or rejected; current state is {event.state}"
        )
    if not now + ADMIN_PUBLISH_LEAD_TIME < event.event_date:
        raise ConflictStateError(
            "Event date must be at least 1 hour ahead of publication; "
            f"hours left: {_hours_left(event, now)}"
        )


def apply_owner_action(event: Event, action: Optional[StateAction]) -> Optional[EventState]:
    """Apply an owner state action; returns the new state, or None when nothing moved."""
    if action is None or action == StateAction.NONE:
        return None
    target = OWNER_TRANSITIONS.get(action)
    if target is None:
        raise ValidationFailedError(f"Owner cannot use state action {action.value}")

    event.state = target.value
    return target


def apply_admin_action(event: Event, action: Optional[StateAction], now: datetime) -> Optional[EventState]:
    """Apply an admin state action; publishing stamps published_on."""
    if action is None or action == StateAction.NONE:
        return None
    target = ADMIN_TRANSITIONS.get(action)
    if target is None:
        raise ValidationFailedError(f"Administrator cannot use state action {action.value}")

    event.state = target.value
    if target == EventState.PUBLISHED:
        event.published_on = now
    return target
