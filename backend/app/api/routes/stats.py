"""
Statistics service endpoints: hit ingestion and aggregated view counts.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_query_datetime, split_values
from app.db.session import get_db
from app.schemas.stats import HitCreate, ViewStats
from app.services.stats_service import aggregate_hits, record_hit

router = APIRouter(tags=["Statistics"])


@router.post("/hit", status_code=status.HTTP_201_CREATED)
async def create_hit(
    hit: HitCreate,
    db: AsyncSession = Depends(get_db),
):
    """Append one hit. Responds 201 with an empty body."""
    await record_hit(db, hit.app, hit.uri, hit.ip, hit.timestamp)
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("/stats", response_model=list[ViewStats])
async def get_stats(
    start: str = Query(...),
    end: str = Query(...),
    uris: Optional[list[str]] = Query(None),
    unique: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """
    Hits per (app, uri) within [start, end], most hit first.
    With unique=true each IP counts once per group.
    """
    return await aggregate_hits(
        db,
        require_query_datetime(start, "start"),
        require_query_datetime(end, "end"),
        uris=split_values(uris) or None,
        unique=unique,
    )
