"""
Shared pytest fixtures.

Provides:
- A fresh in-memory aiosqlite database per test, built from the models
- The FastAPI app wired to that database through an httpx AsyncClient
- Factories for users and channels plus bearer headers for a user

Settings are read at import time, so the environment is set before any
ceo_platform module is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ceo_platform.apps.channels.models import Channel, ChannelMember
from ceo_platform.apps.users.schemas import UserCreate
from ceo_platform.apps.users.services import create_user
from ceo_platform.db.database import get_session
from ceo_platform.db.models import Base
from ceo_platform.utils.security import create_access_token
from main import app

DEFAULT_PASSWORD = "Password123!"


@pytest.fixture
async def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """App client; every request gets its own session on the test database."""

    async def _get_test_session():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Factory: await make_user("sam@company.com", role="staff")."""

    async def _make(
        email: str = "sam@company.com",
        name: str = "Sam Patel",
        role: str = "staff",
        password: str | None = DEFAULT_PASSWORD,
        **fields,
    ):
        return await create_user(
            session,
            UserCreate(email=email, name=name, role=role, password=password, **fields),
        )

    return _make


@pytest.fixture
def make_channel(session):
    """Factory: await make_channel("general", members=[user])."""

    async def _make(name: str = "general", channel_type: str = "group", members=(), created_by=None):
        channel = await Channel.create(
            db=session, name=name, channel_type=channel_type, created_by=created_by
        )
        for member in members:
            await ChannelMember.create(db=session, channel_id=channel.id, user_id=member.id)
        return channel

    return _make


@pytest.fixture
def member_ids():
    """Raw membership rows as user ids, in join order: await member_ids(session, channel_id)."""

    async def _ids(session: AsyncSession, channel_id) -> list:
        result = await session.execute(
            select(ChannelMember.user_id)
            .where(ChannelMember.channel_id == channel_id)
            .order_by(ChannelMember.joined_at, ChannelMember.created_at)
        )
        return list(result.scalars().all())

    return _ids


def bearer(user, platform: str = "web") -> dict:
    token = create_access_token(user_id=str(user.id), role=user.role, platform=platform)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer
