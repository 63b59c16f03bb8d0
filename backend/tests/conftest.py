"""
Pytest fixtures for test database, clients, users and events.

Uses an in-memory SQLite database by default (set TEST_DATABASE_URL to run
against PostgreSQL); tables are created and dropped per test for isolation.
The stats service is replaced by FakeStatsClient unless a test wires up a
real StatsClient itself.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")

from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.stats_main import app as stats_app
from app.core import clock
from app.db.base import Base
from app.db.session import get_db
from app.infrastructure.stats_client import get_stats_client
from app.models.category import Category
from app.models.event import Event, EventState
from app.models.request import ParticipationRequest, RequestStatus
from app.models.user import User
from app.schemas.stats import ViewStats

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

if TEST_DATABASE_URL.startswith("sqlite"):
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


class FakeStatsClient:
    """In-process stand-in for StatsClient: records hits, serves canned stats."""

    def __init__(self):
        self.hits: list[dict] = []
        self.stats: list[ViewStats] = []
        self.lookups: list[dict] = []

    def set_views(self, views: dict[int, int]) -> None:
        self.stats = [
            ViewStats(app="ewm-main-service", uri=f"/events/{event_id}", hits=hits)
            for event_id, hits in views.items()
        ]

    async def hit(self, app: str, uri: str, ip: str, timestamp: datetime) -> None:
        self.hits.append({"app": app, "uri": uri, "ip": ip, "timestamp": timestamp})

    async def get_stats(
        self,
        start: datetime,
        end: datetime,
        uris: Optional[Sequence[str]] = None,
        unique: bool = False,
    ) -> list[ViewStats]:
        self.lookups.append({"start": start, "end": end, "uris": list(uris or []), "unique": unique})
        if not uris:
            return list(self.stats)
        return [stat for stat in self.stats if stat.uri in uris]


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def fake_stats() -> FakeStatsClient:
    return FakeStatsClient()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, fake_stats: FakeStatsClient) -> AsyncGenerator[AsyncClient, None]:
    """Main API client with the DB and stats client dependencies overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stats_client] = lambda: fake_stats

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def stats_api(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Statistics service client sharing the test session."""

    async def override_get_db():
        yield db_session

    stats_app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=stats_app)
    async with AsyncClient(transport=transport, base_url="http://stats") as ac:
        yield ac

    stats_app.dependency_overrides.clear()


async def create_user(db: AsyncSession, name: str) -> User:
    user = User(name=name, email=f"{name.lower()}@example.com")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_event(
    db: AsyncSession,
    initiator: User,
    category: Category,
    state: EventState = EventState.PUBLISHED,
    event_date: Optional[datetime] = None,
    participant_limit: int = 0,
    request_moderation: bool = True,
    paid: bool = False,
    title: str = "Jazz in the park",
    annotation: str = "An evening of live jazz under the open sky",
    description: str = "Three bands, food trucks and a late night jam session for everyone",
) -> Event:
    now = clock.now()
    event = Event(
        initiator_id=initiator.id,
        category_id=category.id,
        title=title,
        annotation=annotation,
        description=description,
        lat=55.75,
        lon=37.61,
        event_date=event_date or now + timedelta(days=10),
        created_on=now,
        published_on=now if state == EventState.PUBLISHED else None,
        participant_limit=participant_limit,
        request_moderation=request_moderation,
        paid=paid,
        state=state.value,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def create_participation(
    db: AsyncSession,
    event: Event,
    requester: User,
    status: RequestStatus = RequestStatus.PENDING,
) -> ParticipationRequest:
    request = ParticipationRequest(event_id=event.id, requester_id=requester.id, status=status.value)
    db.add(request)
    await db.commit()
    await db.refresh(request)
    return request


def format_date(value: datetime) -> str:
    return clock.format_datetime(value)


@pytest_asyncio.fixture
async def initiator(db_session: AsyncSession) -> User:
    return await create_user(db_session, "Initiator")


@pytest_asyncio.fixture
async def participant(db_session: AsyncSession) -> User:
    return await create_user(db_session, "Participant")


@pytest_asyncio.fixture
async def category(db_session: AsyncSession) -> Category:
    category = Category(name="Concerts")
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest_asyncio.fixture
async def published_event(db_session: AsyncSession, initiator: User, category: Category) -> Event:
    return await create_event(db_session, initiator, category)


@pytest_asyncio.fixture
async def pending_event(db_session: AsyncSession, initiator: User, category: Category) -> Event:
    return await create_event(db_session, initiator, category, state=EventState.PENDING)
