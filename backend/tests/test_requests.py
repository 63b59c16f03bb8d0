"""
Tests for participation request creation, cancellation and listings.
"""

import pytest
from httpx import AsyncClient

from app.models.event import EventState
from app.models.request import RequestStatus
from app.services.request_service import count_confirmed
from conftest import create_event, create_participation, create_user


@pytest.mark.asyncio
async def test_unlimited_event_confirms_immediately(client: AsyncClient, participant, published_event):
    """Participant limit 0 means every request is confirmed at creation."""
    response = await client.post(
        f"/users/{participant.id}/requests",
        params={"eventId": published_event.id},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "CONFIRMED"
    assert data["event"] == published_event.id
    assert data["requester"] == participant.id
    assert "created" in data


@pytest.mark.asyncio
async def test_moderated_event_starts_pending(client: AsyncClient, db_session, initiator, participant, category):
    event = await create_event(db_session, initiator, category, participant_limit=5, request_moderation=True)
    response = await client.post(f"/users/{participant.id}/requests", params={"eventId": event.id})
    assert response.status_code == 201
    assert response.json()["status"] == "PENDING"


@pytest.mark.asyncio
async def test_unmoderated_event_confirms_immediately(client: AsyncClient, db_session, initiator, participant, category):
    event = await create_event(db_session, initiator, category, participant_limit=5, request_moderation=False)
    response = await client.post(f"/users/{participant.id}/requests", params={"eventId": event.id})
    assert response.status_code == 201
    assert response.json()["status"] == "CONFIRMED"


@pytest.mark.asyncio
async def test_initiator_cannot_request_own_event(client: AsyncClient, initiator, published_event):
    response = await client.post(f"/users/{initiator.id}/requests", params={"eventId": published_event.id})
    assert response.status_code == 409
    assert response.json()["status"] == "ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_cannot_request_unpublished_event(client: AsyncClient, participant, pending_event):
    response = await client.post(f"/users/{participant.id}/requests", params={"eventId": pending_event.id})
    assert response.status_code == 409
    assert response.json()["status"] == "ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_duplicate_request(client: AsyncClient, participant, published_event):
    """Same user requesting the same event twice returns 409."""
    first = await client.post(f"/users/{participant.id}/requests", params={"eventId": published_event.id})
    assert first.status_code == 201

    second = await client.post(f"/users/{participant.id}/requests", params={"eventId": published_event.id})
    assert second.status_code == 409
    assert second.json()["status"] == "ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_request_when_limit_reached(client: AsyncClient, db_session, initiator, participant, category):
    event = await create_event(db_session, initiator, category, participant_limit=1, request_moderation=False)
    other = await create_user(db_session, "Other")
    await create_participation(db_session, event, other, RequestStatus.CONFIRMED)

    response = await client.post(f"/users/{participant.id}/requests", params={"eventId": event.id})
    assert response.status_code == 409
    assert response.json()["status"] == "CONFLICT"
    assert await count_confirmed(db_session, event.id) == 1


@pytest.mark.asyncio
async def test_request_unknown_event_or_user(client: AsyncClient, participant, published_event):
    missing_event = await client.post(f"/users/{participant.id}/requests", params={"eventId": 999})
    assert missing_event.status_code == 404

    missing_user = await client.post("/users/999/requests", params={"eventId": published_event.id})
    assert missing_user.status_code == 404


@pytest.mark.asyncio
async def test_request_requires_event_id(client: AsyncClient, participant):
    response = await client.post(f"/users/{participant.id}/requests")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cancel_request_once(client: AsyncClient, db_session, initiator, participant, category):
    """Cancelling is not idempotent: a second cancel is a conflict."""
    event = await create_event(db_session, initiator, category, participant_limit=5)
    request = await create_participation(db_session, event, participant)

    url = f"/users/{participant.id}/requests/{request.id}/cancel"
    first = await client.patch(url)
    assert first.status_code == 200
    assert first.json()["status"] == "CANCELED"

    second = await client.patch(url)
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_cancel_confirmed_request_frees_seat(client: AsyncClient, db_session, initiator, participant, category):
    event = await create_event(db_session, initiator, category, participant_limit=1)
    request = await create_participation(db_session, event, participant, RequestStatus.CONFIRMED)

    response = await client.patch(f"/users/{participant.id}/requests/{request.id}/cancel")
    assert response.status_code == 200
    assert await count_confirmed(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_cannot_cancel_rejected_request(client: AsyncClient, db_session, initiator, participant, category):
    event = await create_event(db_session, initiator, category, participant_limit=5)
    request = await create_participation(db_session, event, participant, RequestStatus.REJECTED)

    response = await client.patch(f"/users/{participant.id}/requests/{request.id}/cancel")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cannot_cancel_someone_elses_request(client: AsyncClient, db_session, initiator, participant, category):
    event = await create_event(db_session, initiator, category, participant_limit=5)
    request = await create_participation(db_session, event, participant)

    response = await client.patch(f"/users/{initiator.id}/requests/{request.id}/cancel")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_user_requests(client: AsyncClient, db_session, initiator, participant, category):
    first = await create_event(db_session, initiator, category)
    second = await create_event(db_session, initiator, category, state=EventState.PUBLISHED)
    await create_participation(db_session, first, participant, RequestStatus.CONFIRMED)
    await create_participation(db_session, second, participant)

    response = await client.get(f"/users/{participant.id}/requests")
    assert response.status_code == 200
    assert [r["event"] for r in response.json()] == [first.id, second.id]


@pytest.mark.asyncio
async def test_event_requests_visible_to_initiator_only(client: AsyncClient, db_session, initiator, participant, published_event):
    await create_participation(db_session, published_event, participant)

    own = await client.get(f"/users/{initiator.id}/events/{published_event.id}/requests")
    assert own.status_code == 200
    assert len(own.json()) == 1

    foreign = await client.get(f"/users/{participant.id}/events/{published_event.id}/requests")
    assert foreign.status_code == 404
