"""
Participation request ledger.

Creation rules, each with its own failure:
  - requester must not be the event initiator          -> AlreadyExistsError
  - event must be PUBLISHED                            -> AlreadyExistsError
  - one request per (requester, event)                 -> AlreadyExistsError
  - with a limit, confirmed count must be below it     -> ConflictStateError

The confirmed count is read after locking the event row
(SELECT ... FOR UPDATE), so a request that is auto-confirmed cannot race a
concurrent allocation batch past the limit.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AlreadyExistsError, ConflictStateError, NotFoundError
from app.core.logging import get_logger
from app.core.metrics import participation_requests
from app.models.event import Event, EventState
from app.models.request import ParticipationRequest, RequestStatus
from app.models.user import User

logger = get_logger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with id={user_id} was not found")
    return user


async def count_confirmed(db: AsyncSession, event_id: int) -> int:
    """Number of CONFIRMED requests for one event."""
    result = await db.execute(
        select(func.count(ParticipationRequest.id)).where(
            ParticipationRequest.event_id == event_id,
            ParticipationRequest.status == RequestStatus.CONFIRMED.value,
        )
    )
    return result.scalar() or 0


async def count_confirmed_by_event(db: AsyncSession, event_ids: list[int]) -> dict[int, int]:
    """Confirmed counts for a batch of events; events without confirmations are absent."""
    if not event_ids:
        return {}

    result = await db.execute(
        select(ParticipationRequest.event_id, func.count(ParticipationRequest.id))
        .where(
            ParticipationRequest.event_id.in_(event_ids),
            ParticipationRequest.status == RequestStatus.CONFIRMED.value,
        )
        .group_by(ParticipationRequest.event_id)
    )
    return {event_id: count for event_id, count in result.all()}


async def create_request(db: AsyncSession, requester_id: int, event_id: int) -> ParticipationRequest:
    """Submit a participation request for a published event."""
    await get_user(db, requester_id)

    result = await db.execute(select(Event).where(Event.id == event_id).with_for_update())
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError(f"Event with id={event_id} was not found")

    if event.initiator_id == requester_id:
        raise AlreadyExistsError("Initiator cannot request participation in their own event")

    if event.state != EventState.PUBLISHED.value:
        raise AlreadyExistsError("Cannot participate in an unpublished event")

    existing = await db.execute(
        select(ParticipationRequest.id).where(
            ParticipationRequest.requester_id == requester_id,
            ParticipationRequest.event_id == event_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadyExistsError("Participation request for this event already exists")

    if event.participant_limit > 0:
        confirmed = await count_confirmed(db, event_id)
        if confirmed >= event.participant_limit:
            logger.warning(
                "request_rejected_limit_reached",
                event_id=event_id,
                limit=event.participant_limit,
                confirmed=confirmed,
            )
            raise ConflictStateError(f"Participant limit reached for event id={event_id}")

    if event.participant_limit == 0 or not event.request_moderation:
        status = RequestStatus.CONFIRMED
    else:
        status = RequestStatus.PENDING

    request = ParticipationRequest(
        requester_id=requester_id,
        event_id=event_id,
        status=status.value,
    )
    db.add(request)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race against an identical request on uq_requester_event
        raise AlreadyExistsError("Participation request for this event already exists")
    await db.refresh(request)

    participation_requests.labels(status=status.value).inc()
    logger.info(
        "request_created",
        request_id=request.id,
        requester_id=requester_id,
        event_id=event_id,
        status=status.value,
    )
    return request


async def cancel_request(db: AsyncSession, requester_id: int, request_id: int) -> ParticipationRequest:
    """
    Cancel the requester's own request.
    Not idempotent: cancelling a CANCELED (or REJECTED) request fails.
    """
    await get_user(db, requester_id)

    result = await db.execute(
        select(ParticipationRequest)
        .where(ParticipationRequest.id == request_id)
        .with_for_update()
    )
    request = result.scalar_one_or_none()

    if not request or request.requester_id != requester_id:
        raise NotFoundError(f"Request with id={request_id} was not found")

    if request.status in (RequestStatus.CANCELED.value, RequestStatus.REJECTED.value):
        raise ConflictStateError(f"Request with status {request.status} cannot be canceled")

    request.status = RequestStatus.CANCELED.value
    await db.flush()
    await db.refresh(request)

    logger.info(
        "request_canceled",
        request_id=request.id,
        requester_id=requester_id,
        event_id=request.event_id,
    )
    return request


async def list_user_requests(db: AsyncSession, requester_id: int) -> list[ParticipationRequest]:
    """All requests made by a user."""
    await get_user(db, requester_id)

    result = await db.execute(
        select(ParticipationRequest)
        .where(ParticipationRequest.requester_id == requester_id)
        .order_by(ParticipationRequest.id)
    )
    return list(result.scalars().all())


async def list_event_requests(db: AsyncSession, event_id: int, owner_id: int) -> list[ParticipationRequest]:
    """All requests for an event, visible to its initiator only."""
    result = await db.execute(
        select(Event.id).where(Event.id == event_id, Event.initiator_id == owner_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError(f"Event with id={event_id} was not found for user id={owner_id}")

    result = await db.execute(
        select(ParticipationRequest)
        .where(ParticipationRequest.event_id == event_id)
        .order_by(ParticipationRequest.id)
    )
    return list(result.scalars().all())
