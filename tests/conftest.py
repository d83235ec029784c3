"""Shared test fixtures.

Tests run against a throwaway SQLite database per test; the schema is
created from the ORM metadata. Redis is not initialized, so notification
pushes and rate limiting are skipped.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from decimal import Decimal

os.environ.setdefault("WAYFARER_LOG_FORMAT", "console")
os.environ.setdefault("WAYFARER_JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wayfarer.auth.jwt import create_access_token
from wayfarer.config import get_settings
from wayfarer.database import close_db, create_tables, get_session_factory, init_db
from wayfarer.db.models import (
    Expense,
    JournalEntry,
    Location,
    Photo,
    PhotoComment,
    PhotoLike,
    Trip,
    User,
)
from wayfarer.gamification.seed import seed_badges

get_settings.cache_clear()


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh database with all tables created."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'wayfarer_test.db'}")
    await create_tables()
    yield get_session_factory()
    await close_db()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test setup and assertions."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """DB session with the badge catalog seeded."""
    await seed_badges(db_session)
    return db_session


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory creating committed users."""

    async def _make(role: str = "USER", deleted: bool = False) -> User:
        user = User(
            email=f"{uuid.uuid4().hex[:12]}@example.com",
            display_name="Traveler",
            role=role,
            total_points=0,
            deleted=deleted,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def user(make_user) -> User:
    return await make_user()


@pytest_asyncio.fixture
async def make_trip(db_session: AsyncSession) -> Callable[..., Awaitable[Trip]]:
    """Factory creating committed trips, optionally with a destination and expenses."""

    async def _make(
        owner: User,
        status: str = "COMPLETED",
        is_public: bool = False,
        country_code: str | None = None,
        budget: Decimal | int | None = None,
        expenses: list[int] | None = None,
        deleted: bool = False,
    ) -> Trip:
        location_id = None
        if country_code is not None:
            location = Location(name=f"City in {country_code}", country_code=country_code)
            db_session.add(location)
            await db_session.flush()
            location_id = location.id

        trip = Trip(
            owner_id=owner.id,
            title="Trip",
            trip_status=status,
            is_public=is_public,
            estimated_budget=Decimal(budget) if budget is not None else None,
            location_id=location_id,
            deleted=deleted,
        )
        db_session.add(trip)
        await db_session.flush()
        for amount in expenses or []:
            db_session.add(Expense(trip_id=trip.id, amount=Decimal(amount), category="FOOD"))
        await db_session.commit()
        return trip

    return _make


@pytest_asyncio.fixture
async def make_entry(db_session: AsyncSession) -> Callable[..., Awaitable[JournalEntry]]:
    """Factory creating a journal entry with photos, likes and comments."""

    async def _make(
        trip: Trip,
        photos: int = 0,
        likes_per_photo: int = 0,
        comments_per_photo: int = 0,
        deleted: bool = False,
    ) -> JournalEntry:
        entry = JournalEntry(trip_id=trip.id, user_id=trip.owner_id, title="Day one", deleted=deleted)
        db_session.add(entry)
        await db_session.flush()

        for i in range(photos):
            photo = Photo(journal_entry_id=entry.id, url=f"https://cdn.example.com/{i}.jpg")
            db_session.add(photo)
            await db_session.flush()
            for _ in range(likes_per_photo):
                fan = User(email=f"{uuid.uuid4().hex[:12]}@example.com")
                db_session.add(fan)
                await db_session.flush()
                db_session.add(PhotoLike(photo_id=photo.id, user_id=fan.id))
            for _ in range(comments_per_photo):
                db_session.add(PhotoComment(photo_id=photo.id, user_id=trip.owner_id, content="Lovely"))
        await db_session.commit()
        return entry

    return _make


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the test database."""
    from wayfarer.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build an Authorization header carrying an access token for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers
