"""
Routers for the two services: the main event API and the statistics API.
"""

from fastapi import APIRouter
from app.api.routes import admin_events, private_events, public_events, requests, stats

api_router = APIRouter()
api_router.include_router(public_events.router)
api_router.include_router(private_events.router)
api_router.include_router(requests.router)
api_router.include_router(admin_events.router)

stats_router = APIRouter()
stats_router.include_router(stats.router)
