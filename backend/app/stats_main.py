"""
Statistics service entry point.

Stores page hits and answers aggregated view queries. Runs as its own
process (uvicorn app.stats_main:app --port 9090) with the same database
settings as the main service.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.errors import register_exception_handlers
from app.api.router import stats_router
from app.api.middleware import RequestLoggingMiddleware

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(service="ewm-stats")
    logger = get_logger(__name__)
    logger.info("stats_service_starting", version=settings.APP_VERSION, environment=settings.ENVIRONMENT)
    yield
    logger.info("stats_service_shutdown")


app = FastAPI(
    title="Event Statistics Service",
    version=settings.APP_VERSION,
    description="Hit ingestion and view aggregation",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)
app.include_router(stats_router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.get("/metrics", tags=["Health"])
async def metrics():
    return metrics_endpoint()
