"""
Concurrency tests for the row locks on the event.

Each test holds one transaction open on the event row, starts a competing
transaction in a second session, then commits the first. The second must
block on the lock and then see the committed state. SQLite has no row
locks, so these run only against PostgreSQL (TEST_DATABASE_URL).
"""

import asyncio

import pytest

from app.core.exceptions import ConflictStateError
from app.models.event import Event, EventState, StateAction
from app.models.request import RequestStatus
from app.schemas.event import UpdateEventAdminRequest, UpdateEventUserRequest
from app.services.allocation_service import resolve_request_batch
from app.services.event_service import update_event_by_admin, update_event_by_owner
from app.services.request_service import count_confirmed
from conftest import TEST_DATABASE_URL, TestSessionLocal, create_event, create_participation, create_user

pytestmark = pytest.mark.skipif(
    TEST_DATABASE_URL.startswith("sqlite"),
    reason="SQLite ignores SELECT ... FOR UPDATE",
)

LOCK_WAIT_SECONDS = 0.3


@pytest.mark.asyncio
async def test_concurrent_batches_cannot_overbook(db_session, initiator, category):
    """Two batches for a 2-seat event: the second waits, recounts and finds it full."""
    event = await create_event(db_session, initiator, category, participant_limit=2)
    requests = []
    for i in range(4):
        guest = await create_user(db_session, f"Guest{i}")
        requests.append(await create_participation(db_session, event, guest))
    ids = [r.id for r in requests]

    async with TestSessionLocal() as first, TestSessionLocal() as second:
        result = await resolve_request_batch(first, initiator.id, event.id, ids[:2], RequestStatus.CONFIRMED)
        assert len(result.confirmed) == 2

        competing = asyncio.create_task(
            resolve_request_batch(second, initiator.id, event.id, ids[2:], RequestStatus.CONFIRMED)
        )
        await asyncio.sleep(LOCK_WAIT_SECONDS)
        assert not competing.done()

        await first.commit()
        with pytest.raises(ConflictStateError):
            await competing
        await second.rollback()

    async with TestSessionLocal() as check:
        assert await count_confirmed(check, event.id) == 2


@pytest.mark.asyncio
async def test_owner_edit_waits_for_admin_publication(db_session, initiator, category):
    """An owner cancel racing a publish sees PUBLISHED and fails cleanly."""
    event = await create_event(db_session, initiator, category, state=EventState.PENDING)

    async with TestSessionLocal() as admin_db, TestSessionLocal() as owner_db:
        await update_event_by_admin(
            admin_db, event.id, UpdateEventAdminRequest(state_action=StateAction.PUBLISH_EVENT)
        )

        owner_edit = asyncio.create_task(
            update_event_by_owner(
                owner_db, initiator.id, event.id,
                UpdateEventUserRequest(state_action=StateAction.CANCEL_REVIEW),
            )
        )
        await asyncio.sleep(LOCK_WAIT_SECONDS)
        assert not owner_edit.done()

        await admin_db.commit()
        with pytest.raises(ConflictStateError):
            await owner_edit
        await owner_db.rollback()

    async with TestSessionLocal() as check:
        refreshed = await check.get(Event, event.id)
        assert refreshed.state == EventState.PUBLISHED.value
        assert refreshed.published_on is not None
