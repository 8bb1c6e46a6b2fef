"""Pytest fixtures for integration tests.

Provides an in-memory SQLite database shared across connections (so the
per-step commits made by the services are visible to every session),
seeded profiles for a client, a second client and a staff member, and
the services and HTTP client built on top of them.

Production runs on PostgreSQL; the query layer only uses constructs that
behave the same on both.
"""

from __future__ import annotations

import base64
from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from geodesk.audit.ledger import AuditLedger
from geodesk.config import EmailConfig, GeodeskConfig, WebhookConfig
from geodesk.database.connection import Database, get_session_factory
from geodesk.database.models.base import Base
from geodesk.database.models.profile import Profile
from geodesk.lifecycle.authz import Actor
from geodesk.lifecycle.controller import ProjectLifecycleController
from geodesk.lifecycle.schemas import ProjectCreate
from geodesk.notifications.notifier import ProjectNotifier
from geodesk.quotes.engine import QuotationEngine
from geodesk.storage import ObjectStorage
from geodesk.web.app import create_app
from geodesk.web.auth import get_actor
from geodesk.web.dependencies import ServiceContainer, build_services

WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"integration-signing-key").decode()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with every table created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest.fixture
def database(
    engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]
) -> Database:
    return Database(engine=engine, session_factory=session_factory)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _add_profile(
    session_factory: async_sessionmaker[AsyncSession], **fields: object
) -> Profile:
    profile = Profile(id=uuid4(), **fields)
    async with session_factory() as session:
        session.add(profile)
        await session.commit()
    return profile


@pytest_asyncio.fixture
async def client_profile(session_factory: async_sessionmaker[AsyncSession]) -> Profile:
    return await _add_profile(
        session_factory,
        name="Jane Client",
        email="jane@client.example",
        role="client",
        company="Client Ltd",
        phone="876-555-0100",
    )


@pytest_asyncio.fixture
async def other_client_profile(session_factory: async_sessionmaker[AsyncSession]) -> Profile:
    return await _add_profile(
        session_factory, name="Oscar Other", email="oscar@other.example", role="client"
    )


@pytest_asyncio.fixture
async def admin_profile(session_factory: async_sessionmaker[AsyncSession]) -> Profile:
    return await _add_profile(
        session_factory, name="Ann Admin", email="ann@staff.example", role="admin"
    )


@pytest.fixture
def client_actor(client_profile: Profile) -> Actor:
    return Actor.from_profile(client_profile)


@pytest.fixture
def other_client_actor(other_client_profile: Profile) -> Actor:
    return Actor.from_profile(other_client_profile)


@pytest.fixture
def admin_actor(admin_profile: Profile) -> Actor:
    return Actor.from_profile(admin_profile)


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=ProjectNotifier)


@pytest.fixture
def storage() -> MagicMock:
    mock = MagicMock(spec=ObjectStorage)
    mock.remove = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def controller(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: MagicMock,
    storage: MagicMock,
) -> ProjectLifecycleController:
    return ProjectLifecycleController(session_factory, AuditLedger(), notifier, storage)


@pytest.fixture
def quote_engine(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: MagicMock,
) -> QuotationEngine:
    return QuotationEngine(session_factory, AuditLedger(), notifier)


@pytest.fixture
def make_request() -> Callable[..., ProjectCreate]:
    """Factory for valid request-for-quote payloads."""

    def _make(**overrides: object) -> ProjectCreate:
        data: dict[str, object] = {
            "project_name": "Harbour Survey",
            "project_description": "Topographic survey of the pier",
            "project_location": "Kingston",
            "service_type_id": "topographic",
            "survey_area_sqm": 2500,
        }
        data.update(overrides)
        return ProjectCreate(**data)

    return _make


@pytest.fixture
def config() -> GeodeskConfig:
    return GeodeskConfig(
        email=EmailConfig(
            api_key="",
            notification_to="team@staff.example",
            inbound_domain="reply.example",
        ),
        webhook=WebhookConfig(secret=WEBHOOK_SECRET),
    )


@pytest.fixture
def services(config: GeodeskConfig, database: Database) -> ServiceContainer:
    return build_services(config, database=database)


@pytest.fixture
def app(config: GeodeskConfig, services: ServiceContainer) -> FastAPI:
    """Application with services installed and authentication unset.

    Use ``act_as`` to choose the caller for subsequent requests.
    """
    application = create_app(config)
    application.state.services = services
    return application


@pytest.fixture
def act_as(app: FastAPI) -> Callable[[Actor], None]:
    """Make every following request authenticate as the given actor."""

    def _act_as(actor: Actor) -> None:
        async def _actor() -> Actor:
            return actor

        app.dependency_overrides[get_actor] = _actor

    return _act_as


@pytest_asyncio.fixture
async def http_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
