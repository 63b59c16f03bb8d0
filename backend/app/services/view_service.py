"""
View enrichment: turns Event rows into EventView read models.

For a batch of events this issues exactly one stats lookup (unique views for
every "/events/{id}" URI over the look-back window) and one grouped
confirmed-count query, plus one fetch each for the referenced categories and
initiators. Ids missing from either counter map default to 0: an event that
was never viewed simply has no hits.
"""

from datetime import timedelta
from typing import Iterable, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import clock
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import hit_submissions
from app.infrastructure.stats_client import StatsClient
from app.models.category import Category
from app.models.event import Event
from app.models.user import User
from app.schemas.event import EventView
from app.services.request_service import count_confirmed_by_event

logger = get_logger(__name__)
settings = get_settings()

EVENT_URI_PREFIX = "/events/"


def event_uri(event_id: int) -> str:
    return f"{EVENT_URI_PREFIX}{event_id}"


def _event_id_from_uri(uri: str) -> Optional[int]:
    if not uri.startswith(EVENT_URI_PREFIX):
        return None
    try:
        return int(uri[len(EVENT_URI_PREFIX):])
    except ValueError:
        return None


async def get_views(stats_client: StatsClient, event_ids: list[int]) -> dict[int, int]:
    """Unique-IP view counts keyed by event id."""
    if not event_ids:
        return {}

    end = clock.now()
    start = end - timedelta(days=settings.STATS_LOOKBACK_DAYS)
    stats = await stats_client.get_stats(
        start,
        end,
        uris=[event_uri(event_id) for event_id in event_ids],
        unique=True,
    )

    views: dict[int, int] = {}
    for stat in stats:
        event_id = _event_id_from_uri(stat.uri)
        if event_id is not None:
            # Rows arrive sorted by hits desc; keep the first per event
            views.setdefault(event_id, stat.hits)
    return views


async def _load_by_ids(db: AsyncSession, model, ids: Iterable[int]) -> dict:
    ids = set(ids)
    if not ids:
        return {}
    result = await db.execute(select(model).where(model.id.in_(ids)))
    return {row.id: row for row in result.scalars().all()}


async def build_event_views(
    db: AsyncSession,
    stats_client: StatsClient,
    events: list[Event],
) -> list[EventView]:
    if not events:
        return []

    event_ids = [event.id for event in events]
    categories = await _load_by_ids(db, Category, (e.category_id for e in events))
    initiators = await _load_by_ids(db, User, (e.initiator_id for e in events))
    views = await get_views(stats_client, event_ids)
    confirmed = await count_confirmed_by_event(db, event_ids)

    return [
        EventView(
            event=event,
            category=categories[event.category_id],
            initiator=initiators[event.initiator_id],
            views=views.get(event.id, 0),
            confirmed_requests=confirmed.get(event.id, 0),
        )
        for event in events
    ]


async def build_event_view(db: AsyncSession, stats_client: StatsClient, event: Event) -> EventView:
    views = await build_event_views(db, stats_client, [event])
    return views[0]


def sort_by_views(views: list[EventView]) -> list[EventView]:
    """Most viewed first; ties keep their fetched order."""
    return sorted(views, key=lambda view: view.views, reverse=True)


async def record_view(stats_client: StatsClient, uri: str, ip: str) -> None:
    """
    Submit a hit for a public read. Runs as a background task after the
    response; a failed submission is logged and counted, never raised.
    """
    try:
        await stats_client.hit(settings.STATS_APP_NAME, uri, ip, clock.now())
    except httpx.HTTPError as e:
        hit_submissions.labels(result="failed").inc()
        logger.warning("hit_submission_failed", uri=uri, error=str(e), error_type=type(e).__name__)
