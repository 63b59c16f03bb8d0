"""
Pydantic schemas for participation requests and batch status updates.
"""

from app.core.clock import FormattedDateTime
from app.models.request import ParticipationRequest, RequestStatus
from app.schemas.base import CamelModel
from pydantic import Field, field_validator


class ParticipationRequestResponse(CamelModel):
    id: int
    created: FormattedDateTime
    event: int
    requester: int
    status: RequestStatus


class EventRequestStatusUpdateRequest(CamelModel):
    request_ids: list[int] = Field(...)
    status: RequestStatus

    @field_validator("status")
    @classmethod
    def only_resolution_statuses(cls, value: RequestStatus) -> RequestStatus:
        if value not in (RequestStatus.CONFIRMED, RequestStatus.REJECTED):
            raise ValueError("Status can only be CONFIRMED or REJECTED")
        return value


class EventRequestStatusUpdateResult(CamelModel):
    confirmed_requests: list[ParticipationRequestResponse]
    rejected_requests: list[ParticipationRequestResponse]


def to_request_response(request: ParticipationRequest) -> ParticipationRequestResponse:
    return ParticipationRequestResponse(
        id=request.id,
        created=request.created_at,
        event=request.event_id,
        requester=request.requester_id,
        status=RequestStatus(request.status),
    )


def to_request_responses(requests: list[ParticipationRequest]) -> list[ParticipationRequestResponse]:
    return [to_request_response(r) for r in requests]
