"""
HTTP client for the statistics service.

View counts are non-critical telemetry: a failed lookup must never break the
read path, so `get_stats` degrades to an empty result. The degradation is
made visible through a `stats_lookup_degraded` warning and the
`stats_lookups_total{result="degraded"}` counter rather than being silent.
"""

from datetime import datetime
from typing import Optional, Sequence

import httpx
import structlog
from pydantic import ValidationError

from app.core.clock import format_datetime
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import hit_submissions, record_stats_lookup
from app.schemas.stats import ViewStats

logger = get_logger(__name__)
settings = get_settings()


def _correlation_headers() -> dict:
    request_id = structlog.contextvars.get_contextvars().get("request_id")
    return {"X-Request-ID": request_id} if request_id else {}


class StatsClient:
    """Async client for POST /hit and GET /stats."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def hit(self, app: str, uri: str, ip: str, timestamp: datetime) -> None:
        """
        Record one hit. Raises httpx.HTTPError on transport failure or a
        non-2xx answer; callers recording page views log and ignore it.
        """
        response = await self._client.post(
            "/hit",
            json={"app": app, "uri": uri, "ip": ip, "timestamp": format_datetime(timestamp)},
            headers=_correlation_headers(),
        )
        response.raise_for_status()
        hit_submissions.labels(result="ok").inc()

    async def get_stats(
        self,
        start: datetime,
        end: datetime,
        uris: Optional[Sequence[str]] = None,
        unique: bool = False,
    ) -> list[ViewStats]:
        """Fetch aggregated stats; returns [] (degraded) when the service is unreachable."""
        params = {
            "start": format_datetime(start),
            "end": format_datetime(end),
            "unique": str(unique).lower(),
        }
        if uris:
            params["uris"] = list(uris)

        try:
            response = await self._client.get("/stats", params=params, headers=_correlation_headers())
            response.raise_for_status()
            stats = [ViewStats.model_validate(item) for item in response.json()]
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            record_stats_lookup(degraded=True)
            logger.warning(
                "stats_lookup_degraded",
                error=str(e),
                error_type=type(e).__name__,
                uris=len(uris or ()),
            )
            return []

        record_stats_lookup(degraded=False)
        return stats

    async def close(self) -> None:
        await self._client.aclose()


_stats_client: Optional[StatsClient] = None


def get_stats_client() -> StatsClient:
    """Get or create the process-wide stats client (FastAPI dependency)."""
    global _stats_client

    if _stats_client is None:
        _stats_client = StatsClient(
            settings.STATS_SERVICE_URL,
            timeout=settings.STATS_TIMEOUT_SECONDS,
        )
        logger.info("stats_client_created", url=settings.STATS_SERVICE_URL)
    return _stats_client


async def close_stats_client() -> None:
    """Close the stats client on shutdown."""
    global _stats_client
    if _stats_client:
        await _stats_client.close()
        _stats_client = None
