"""
Initiator endpoints: an owner's own events and the requests made to them.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.infrastructure.stats_client import StatsClient, get_stats_client
from app.schemas.event import (
    EventFullResponse,
    EventShortResponse,
    NewEventRequest,
    UpdateEventUserRequest,
    to_full_response,
    to_short_response,
)
from app.schemas.request import (
    EventRequestStatusUpdateRequest,
    EventRequestStatusUpdateResult,
    ParticipationRequestResponse,
    to_request_responses,
)
from app.services.allocation_service import resolve_request_batch
from app.services.cache_service import invalidate_listing_cache
from app.services.event_service import (
    create_event,
    get_owner_event,
    list_owner_events,
    update_event_by_owner,
)
from app.services.request_service import list_event_requests
from app.services.view_service import build_event_view, build_event_views

router = APIRouter(prefix="/users/{user_id}/events", tags=["Private events"])


@router.get("", response_model=list[EventShortResponse])
async def list_own_events(
    user_id: int,
    offset: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    events = await list_owner_events(db, user_id, offset, size)
    views = await build_event_views(db, stats_client, events)
    return [to_short_response(view) for view in views]


@router.post("", response_model=EventFullResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    user_id: int,
    draft: NewEventRequest,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """Create an event; it starts PENDING and is invisible publicly until published."""
    event = await create_event(db, user_id, draft)
    view = await build_event_view(db, stats_client, event)
    return to_full_response(view)


@router.get("/{event_id}", response_model=EventFullResponse)
async def get_own_event(
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    event = await get_owner_event(db, user_id, event_id)
    view = await build_event_view(db, stats_client, event)
    return to_full_response(view)


@router.patch("/{event_id}", response_model=EventFullResponse)
async def update_own_event(
    user_id: int,
    event_id: int,
    patch: UpdateEventUserRequest,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    event = await update_event_by_owner(db, user_id, event_id, patch)
    await invalidate_listing_cache()
    view = await build_event_view(db, stats_client, event)
    return to_full_response(view)


@router.get("/{event_id}/requests", response_model=list[ParticipationRequestResponse])
async def list_requests_for_event(
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    requests = await list_event_requests(db, event_id, user_id)
    return to_request_responses(requests)


@router.patch("/{event_id}/requests", response_model=EventRequestStatusUpdateResult)
async def resolve_requests(
    user_id: int,
    event_id: int,
    update: EventRequestStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm or reject pending requests in caller order.
    All-or-nothing: a full event or a non-PENDING request changes nothing (409).
    """
    allocation = await resolve_request_batch(db, user_id, event_id, update.request_ids, update.status)
    await invalidate_listing_cache()
    return EventRequestStatusUpdateResult(
        confirmed_requests=to_request_responses(allocation.confirmed),
        rejected_requests=to_request_responses(allocation.rejected),
    )
