"""
Administrator endpoints: event search and moderation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import parse_query_datetime, split_ints, split_values
from app.core.exceptions import ValidationFailedError
from app.db.session import get_db
from app.infrastructure.stats_client import StatsClient, get_stats_client
from app.models.event import EventState
from app.schemas.event import AdminEventFilter, EventFullResponse, UpdateEventAdminRequest, to_full_response
from app.services.cache_service import invalidate_listing_cache
from app.services.event_service import list_events_admin, update_event_by_admin
from app.services.view_service import build_event_view, build_event_views

router = APIRouter(prefix="/admin/events", tags=["Admin events"])


def _parse_states(values: Optional[list[str]]) -> Optional[list[EventState]]:
    try:
        states = [EventState(item) for item in split_values(values)]
    except ValueError:
        raise ValidationFailedError(
            f"Parameter 'states' must be one of {[state.value for state in EventState]}"
        )
    return states or None


@router.get("", response_model=list[EventFullResponse])
async def search_events(
    users: Optional[list[str]] = Query(None),
    states: Optional[list[str]] = Query(None),
    categories: Optional[list[str]] = Query(None),
    range_start: Optional[str] = Query(None, alias="rangeStart"),
    range_end: Optional[str] = Query(None, alias="rangeEnd"),
    offset: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    filters = AdminEventFilter(
        users=split_ints(users, "users") or None,
        states=_parse_states(states),
        categories=split_ints(categories, "categories") or None,
        range_start=parse_query_datetime(range_start, "rangeStart"),
        range_end=parse_query_datetime(range_end, "rangeEnd"),
        offset=offset,
        size=size,
    )
    events = await list_events_admin(db, filters)
    views = await build_event_views(db, stats_client, events)
    return [to_full_response(view) for view in views]


@router.patch("/{event_id}", response_model=EventFullResponse)
async def moderate_event(
    event_id: int,
    patch: UpdateEventAdminRequest,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """Edit, publish or reject a PENDING event at least 1 hour before it starts."""
    event = await update_event_by_admin(db, event_id, patch)
    await invalidate_listing_cache()
    view = await build_event_view(db, stats_client, event)
    return to_full_response(view)
