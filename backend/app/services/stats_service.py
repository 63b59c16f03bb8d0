"""
Hit store and aggregator for the statistics service.

The hits table is an append-only log. Aggregation is read-only and runs one
GROUP BY over the requested window:

  SELECT app, uri, COUNT(ip)            -- unique = false
  SELECT app, uri, COUNT(DISTINCT ip)   -- unique = true
  FROM hits
  WHERE timestamp BETWEEN :start AND :end      (inclusive on both ends)
    [AND uri IN :uris]                         (only when uris is non-empty)
  GROUP BY app, uri
  ORDER BY hits DESC

Ties in the hit count come back in whatever order the database chooses.
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import desc, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationFailedError
from app.core.logging import get_logger
from app.core.metrics import hits_recorded
from app.models.hit import Hit
from app.schemas.stats import ViewStats

logger = get_logger(__name__)


async def record_hit(
    db: AsyncSession,
    app: str,
    uri: str,
    ip: str,
    timestamp: datetime,
) -> Hit:
    """Append one hit. The caller has already checked the timestamp is not in the future."""
    hit = Hit(app=app, uri=uri, ip=ip, timestamp=timestamp)
    db.add(hit)
    await db.flush()

    hits_recorded.inc()
    logger.debug("hit_recorded", app=app, uri=uri)
    return hit


async def aggregate_hits(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    uris: Optional[Sequence[str]] = None,
    unique: bool = False,
) -> list[ViewStats]:
    """
    Count hits per (app, uri) inside [start, end].
    An empty result is a normal outcome, not an error.
    """
    if end <= start:
        raise ValidationFailedError("End of the range must be after its start")

    counted = func.count(distinct(Hit.ip)) if unique else func.count(Hit.ip)
    hits = counted.label("hits")

    query = (
        select(Hit.app, Hit.uri, hits)
        .where(Hit.timestamp >= start, Hit.timestamp <= end)
        .group_by(Hit.app, Hit.uri)
        .order_by(desc("hits"))
    )
    if uris:
        query = query.where(Hit.uri.in_(list(uris)))

    result = await db.execute(query)
    stats = [ViewStats(app=row.app, uri=row.uri, hits=row.hits) for row in result.all()]

    logger.debug(
        "hits_aggregated",
        start=start,
        end=end,
        uris=len(uris or ()),
        unique=unique,
        groups=len(stats),
    )
    return stats
