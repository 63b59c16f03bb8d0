"""
Event service: creation, owner/admin edits and the event queries.

Lifecycle guards and transitions live in event_lifecycle; this module loads
rows, applies partial updates and records the transition.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import clock
from app.core.exceptions import NotFoundError, ValidationFailedError
from app.core.logging import get_logger
from app.core.metrics import record_transition
from app.models.category import Category
from app.models.event import Event, EventState
from app.models.request import ParticipationRequest, RequestStatus
from app.schemas.event import (
    AdminEventFilter,
    EventSort,
    NewEventRequest,
    PublicEventFilter,
    UpdateEventAdminRequest,
    UpdateEventRequest,
    UpdateEventUserRequest,
)
from app.services.event_lifecycle import (
    apply_admin_action,
    apply_owner_action,
    check_admin_can_edit,
    check_owner_can_edit,
)
from app.services.request_service import get_user

logger = get_logger(__name__)

TEXT_FIELDS = ("annotation", "description", "title")


async def _get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError(f"Category with id={category_id} was not found")
    return category


async def create_event(db: AsyncSession, owner_id: int, draft: NewEventRequest) -> Event:
    """Create a new event in PENDING state."""
    await get_user(db, owner_id)
    await _get_category(db, draft.category)

    event = Event(
        initiator_id=owner_id,
        category_id=draft.category,
        title=draft.title,
        annotation=draft.annotation,
        description=draft.description,
        lat=draft.location.lat,
        lon=draft.location.lon,
        event_date=draft.event_date,
        created_on=clock.now(),
        participant_limit=draft.participant_limit,
        request_moderation=draft.request_moderation,
        paid=draft.paid,
        state=EventState.PENDING.value,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, owner_id=owner_id, title=event.title)
    return event


async def _apply_patch(db: AsyncSession, event: Event, patch: UpdateEventRequest) -> None:
    """Copy set fields onto the event; None and blank text leave the field unchanged."""
    for name in TEXT_FIELDS:
        value = getattr(patch, name)
        if value is not None and value.strip():
            setattr(event, name, value)

    if patch.category is not None:
        await _get_category(db, patch.category)
        event.category_id = patch.category
    if patch.event_date is not None:
        event.event_date = patch.event_date
    if patch.location is not None:
        event.lat = patch.location.lat
        event.lon = patch.location.lon
    if patch.paid is not None:
        event.paid = patch.paid
    if patch.participant_limit is not None:
        event.participant_limit = patch.participant_limit
    if patch.request_moderation is not None:
        event.request_moderation = patch.request_moderation


async def get_owner_event(
    db: AsyncSession,
    owner_id: int,
    event_id: int,
    for_update: bool = False,
) -> Event:
    await get_user(db, owner_id)
    query = select(Event).where(Event.id == event_id, Event.initiator_id == owner_id)
    if for_update:
        # Serializes with admin moderation on the same row
        query = query.with_for_update()
    result = await db.execute(query)
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError(f"Event with id={event_id} was not found for user id={owner_id}")
    return event


async def list_owner_events(db: AsyncSession, owner_id: int, offset: int = 0, size: int = 10) -> list[Event]:
    await get_user(db, owner_id)
    result = await db.execute(
        select(Event)
        .where(Event.initiator_id == owner_id)
        .order_by(Event.id.desc())
        .offset(offset)
        .limit(size)
    )
    return list(result.scalars().all())


async def update_event_by_owner(
    db: AsyncSession,
    owner_id: int,
    event_id: int,
    patch: UpdateEventUserRequest,
) -> Event:
    """Owner edit: allowed on PENDING/CANCELED events at least 2 hours ahead."""
    event = await get_owner_event(db, owner_id, event_id, for_update=True)
    check_owner_can_edit(event, clock.now())

    await _apply_patch(db, event, patch)
    new_state = apply_owner_action(event, patch.state_action)

    await db.flush()
    await db.refresh(event)

    if new_state is not None:
        record_transition("owner", patch.state_action.value)
    logger.info(
        "event_updated_by_owner",
        event_id=event.id,
        owner_id=owner_id,
        action=patch.state_action.value if patch.state_action else None,
        state=event.state,
    )
    return event


async def update_event_by_admin(db: AsyncSession, event_id: int, patch: UpdateEventAdminRequest) -> Event:
    """Admin edit: only PENDING events at least 1 hour ahead; may publish or reject."""
    result = await db.execute(select(Event).where(Event.id == event_id).with_for_update())
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError(f"Event with id={event_id} was not found")

    now = clock.now()
    check_admin_can_edit(event, now)

    await _apply_patch(db, event, patch)
    new_state = apply_admin_action(event, patch.state_action, now)

    await db.flush()
    await db.refresh(event)

    if new_state is not None:
        record_transition("admin", patch.state_action.value)
    if new_state == EventState.PUBLISHED:
        logger.info("event_published", event_id=event.id, published_on=str(event.published_on))
    else:
        logger.info(
            "event_updated_by_admin",
            event_id=event.id,
            action=patch.state_action.value if patch.state_action else None,
            state=event.state,
        )
    return event


async def get_published_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(
        select(Event).where(Event.id == event_id, Event.state == EventState.PUBLISHED.value)
    )
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return event


def _check_range(range_start, range_end) -> None:
    if range_start is not None and range_end is not None and range_end <= range_start:
        raise ValidationFailedError("rangeEnd must be after rangeStart")


def _date_range(query, range_start, range_end, upcoming_by_default: bool):
    if range_start is None and range_end is None:
        if upcoming_by_default:
            query = query.where(Event.event_date > clock.now())
        return query
    if range_start is not None:
        query = query.where(Event.event_date >= range_start)
    if range_end is not None:
        query = query.where(Event.event_date <= range_end)
    return query


def _confirmed_count_subquery():
    return (
        select(func.count(ParticipationRequest.id))
        .where(
            ParticipationRequest.event_id == Event.id,
            ParticipationRequest.status == RequestStatus.CONFIRMED.value,
        )
        .correlate(Event)
        .scalar_subquery()
    )


async def list_published_events(db: AsyncSession, filters: PublicEventFilter) -> list[Event]:
    """
    Public listing of PUBLISHED events.
    Uses ix_events_state_event_date. VIEWS ordering is applied by the caller
    after enrichment; EVENT_DATE sorts here, otherwise by id.
    """
    _check_range(filters.range_start, filters.range_end)

    query = select(Event).where(Event.state == EventState.PUBLISHED.value)

    if filters.text:
        text = filters.text.lower()
        query = query.where(
            or_(
                func.lower(Event.annotation).contains(text, autoescape=True),
                func.lower(Event.description).contains(text, autoescape=True),
            )
        )
    if filters.categories:
        query = query.where(Event.category_id.in_(filters.categories))
    if filters.paid is not None:
        query = query.where(Event.paid == filters.paid)

    query = _date_range(query, filters.range_start, filters.range_end, upcoming_by_default=True)

    if filters.only_available:
        query = query.where(
            or_(
                Event.participant_limit == 0,
                _confirmed_count_subquery() < Event.participant_limit,
            )
        )

    if filters.sort == EventSort.EVENT_DATE:
        query = query.order_by(Event.event_date.asc(), Event.id.asc())
    else:
        query = query.order_by(Event.id.asc())

    result = await db.execute(query.offset(filters.offset).limit(filters.size))
    return list(result.scalars().all())


async def list_events_admin(db: AsyncSession, filters: AdminEventFilter) -> list[Event]:
    """Administrative search over events in any state."""
    _check_range(filters.range_start, filters.range_end)

    query = select(Event)
    if filters.users:
        query = query.where(Event.initiator_id.in_(filters.users))
    if filters.states:
        query = query.where(Event.state.in_([state.value for state in filters.states]))
    if filters.categories:
        query = query.where(Event.category_id.in_(filters.categories))
    query = _date_range(query, filters.range_start, filters.range_end, upcoming_by_default=False)

    result = await db.execute(
        query.order_by(Event.id.asc()).offset(filters.offset).limit(filters.size)
    )
    return list(result.scalars().all())
