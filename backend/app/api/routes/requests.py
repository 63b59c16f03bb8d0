"""
Participation request endpoints for the requesting user.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.request import ParticipationRequestResponse, to_request_response, to_request_responses
from app.services.cache_service import invalidate_listing_cache
from app.services.request_service import cancel_request, create_request, list_user_requests

router = APIRouter(prefix="/users/{user_id}/requests", tags=["Participation requests"])


@router.get("", response_model=list[ParticipationRequestResponse])
async def list_own_requests(
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    requests = await list_user_requests(db, user_id)
    return to_request_responses(requests)


@router.post("", response_model=ParticipationRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request_endpoint(
    user_id: int,
    event_id: int = Query(..., alias="eventId"),
    db: AsyncSession = Depends(get_db),
):
    """
    Request participation in a published event.
    Auto-confirmed when the event has no limit or moderation is off.
    """
    request = await create_request(db, user_id, event_id)
    await invalidate_listing_cache()
    return to_request_response(request)


@router.patch("/{request_id}/cancel", response_model=ParticipationRequestResponse)
async def cancel_request_endpoint(
    user_id: int,
    request_id: int,
    db: AsyncSession = Depends(get_db),
):
    request = await cancel_request(db, user_id, request_id)
    await invalidate_listing_cache()
    return to_request_response(request)
