"""
Capacity allocator: the event initiator resolves a batch of pending
participation requests to CONFIRMED or REJECTED.

CONCURRENCY STRATEGY: Pessimistic row lock on the event
=========================================================

Problem:
  Two owner batches for the same event run at the same time.
  Both count confirmed = 8 against limit = 10, both confirm 2.
  Result: 12 confirmed seats on a 10-seat event.

Solution:
  The event row is read with SELECT ... FOR UPDATE before the confirmed
  count is taken. A second batch (and any auto-confirming request creation,
  see request_service.create_request) blocks on that lock until the first
  transaction commits, then recounts and sees the seats already taken.
  The targeted request rows are locked too, so a concurrent cancel cannot
  flip a row the allocator is about to confirm.

  Seat counts are derived from the requests table, never stored on the
  event, so there is no counter to drift; the lock is what serializes the
  read-then-write.

Batch semantics:
  1. limit already reached                -> ConflictStateError, nothing changes
  2. any targeted row is not PENDING      -> ConflictStateError, nothing changes
  3. limit == 0 or moderation disabled    -> every row CONFIRMED
  4. otherwise, in caller order: confirm while seats remain and the target
     is CONFIRMED; reject the rest
"""

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictStateError, NotFoundError, ValidationFailedError
from app.core.logging import get_logger
from app.core.metrics import allocation_batches, record_allocation
from app.models.event import Event
from app.models.request import ParticipationRequest, RequestStatus
from app.services.request_service import count_confirmed

logger = get_logger(__name__)


@dataclass
class AllocationResult:
    confirmed: list[ParticipationRequest] = field(default_factory=list)
    rejected: list[ParticipationRequest] = field(default_factory=list)


def _conflict(event_id: int, message: str) -> ConflictStateError:
    allocation_batches.labels(result="conflict").inc()
    logger.warning("requests_resolution_rejected", event_id=event_id, reason=message)
    return ConflictStateError(message)


async def resolve_request_batch(
    db: AsyncSession,
    owner_id: int,
    event_id: int,
    request_ids: list[int],
    target_status: RequestStatus,
) -> AllocationResult:
    """Confirm or reject a batch of pending requests against the event's seat limit."""
    if target_status not in (RequestStatus.CONFIRMED, RequestStatus.REJECTED):
        raise ValidationFailedError("Status can only be CONFIRMED or REJECTED")

    result = await db.execute(
        select(Event)
        .where(Event.id == event_id, Event.initiator_id == owner_id)
        .with_for_update()
    )
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError(f"Event with id={event_id} was not found for user id={owner_id}")

    limit = event.participant_limit
    confirmed_count = await count_confirmed(db, event_id)
    if limit > 0 and confirmed_count >= limit:
        raise _conflict(event_id, f"Participant limit reached for event id={event_id}")

    ordered_ids = list(dict.fromkeys(request_ids))
    result = await db.execute(
        select(ParticipationRequest)
        .where(
            ParticipationRequest.id.in_(ordered_ids),
            ParticipationRequest.event_id == event_id,
        )
        .with_for_update()
    )
    by_id = {r.id: r for r in result.scalars().all()}

    missing = [request_id for request_id in ordered_ids if request_id not in by_id]
    if missing:
        raise NotFoundError(f"Requests {missing} were not found for event id={event_id}")

    requests = [by_id[request_id] for request_id in ordered_ids]
    for request in requests:
        if request.status != RequestStatus.PENDING.value:
            raise _conflict(
                event_id,
                f"Only PENDING requests can be resolved; request id={request.id} is {request.status}",
            )

    allocation = AllocationResult()

    if limit == 0 or not event.request_moderation:
        for request in requests:
            request.status = RequestStatus.CONFIRMED.value
        allocation.confirmed = requests
    else:
        available_slots = limit - confirmed_count
        for request in requests:
            if available_slots > 0 and target_status == RequestStatus.CONFIRMED:
                request.status = RequestStatus.CONFIRMED.value
                allocation.confirmed.append(request)
                available_slots -= 1
            else:
                request.status = RequestStatus.REJECTED.value
                allocation.rejected.append(request)

    await db.flush()

    record_allocation(len(allocation.confirmed), len(allocation.rejected))
    logger.info(
        "requests_resolved",
        event_id=event_id,
        target=target_status.value,
        confirmed=len(allocation.confirmed),
        rejected=len(allocation.rejected),
        limit=limit,
    )
    return allocation
