"""
Public event endpoints. Listings are cached in Redis; every successful read
submits a hit to the statistics service after the response is sent.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import parse_query_datetime, split_ints
from app.core.logging import get_logger
from app.db.session import get_db
from app.infrastructure.stats_client import StatsClient, get_stats_client
from app.schemas.event import (
    EventFullResponse,
    EventShortResponse,
    EventSort,
    PublicEventFilter,
    to_full_response,
    to_short_response,
)
from app.services.cache_service import get_cached_listing, set_cached_listing
from app.services.event_service import get_published_event, list_published_events
from app.services.view_service import build_event_view, build_event_views, record_view, sort_by_views

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Public events"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.get("", response_model=list[EventShortResponse])
async def list_events_endpoint(
    request: Request,
    background_tasks: BackgroundTasks,
    text: Optional[str] = Query(None),
    categories: Optional[list[str]] = Query(None),
    paid: Optional[bool] = Query(None),
    range_start: Optional[str] = Query(None, alias="rangeStart"),
    range_end: Optional[str] = Query(None, alias="rangeEnd"),
    only_available: bool = Query(False, alias="onlyAvailable"),
    sort: Optional[EventSort] = Query(None),
    offset: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """
    Search published events.
    Results are cached in Redis for REDIS_CACHE_TTL seconds.
    """
    filters = PublicEventFilter(
        text=text,
        categories=split_ints(categories, "categories") or None,
        paid=paid,
        range_start=parse_query_datetime(range_start, "rangeStart"),
        range_end=parse_query_datetime(range_end, "rangeEnd"),
        only_available=only_available,
        sort=sort,
        offset=offset,
        size=size,
    )

    response_data = await get_cached_listing(filters)
    if response_data is None:
        events = await list_published_events(db, filters)
        views = await build_event_views(db, stats_client, events)
        if filters.sort == EventSort.VIEWS:
            views = sort_by_views(views)
        response_data = [
            to_short_response(view).model_dump(mode="json", by_alias=True) for view in views
        ]
        await set_cached_listing(filters, response_data)
    else:
        logger.info("events_list_cache_hit", offset=offset, size=size)

    if response_data:
        background_tasks.add_task(record_view, stats_client, request.url.path, _client_ip(request))
    return response_data


@router.get("/{event_id}", response_model=EventFullResponse)
async def get_event_endpoint(
    event_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """Get a published event with live views and confirmed counts. Not cached."""
    event = await get_published_event(db, event_id)
    view = await build_event_view(db, stats_client, event)
    background_tasks.add_task(record_view, stats_client, request.url.path, _client_ip(request))
    return to_full_response(view)
