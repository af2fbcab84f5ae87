"""
Pytest fixtures for testing.
"""
import os

# Settings are read at import time
os.environ.setdefault("SESSION_SECRET", "test-secret")

import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

from httpx import AsyncClient, ASGITransport

# Import storage module BEFORE app to allow override
import portal.storage
from portal.storage import CollectionStore
from portal.api.auth import SessionStore, get_session_store
from portal.models import Application, ApplicationStatus, DiscordIdentity
from portal.services.discord import get_discord_client
from portal.services.email import get_email_service

# Now import app (after we can override storage)
from portal.main import app as fastapi_app


TEST_SESSION_SECRET = os.environ["SESSION_SECRET"]

APPLICANT = DiscordIdentity(id="111111", username="applicant", email="applicant@example.com")
ADMIN = DiscordIdentity(id="900001", username="founder")
REVIEWER = DiscordIdentity(id="900002", username="reviewer")


class FakeDiscordClient:
    """In-memory stand-in for the Discord REST client."""

    def __init__(self):
        self.roles = {}
        self.roles_error: Optional[Exception] = None
        self.dm_succeeds = True
        self.direct_messages = []
        self.channel_messages = []

    async def get_user_roles(self, user_id: str):
        if self.roles_error is not None:
            raise self.roles_error
        return list(self.roles.get(user_id, []))

    async def send_direct_message(self, user_id: str, status: str, reason: Optional[str] = None) -> bool:
        self.direct_messages.append({"user_id": user_id, "status": status, "reason": reason})
        return self.dm_succeeds

    async def send_channel_message(self, content: str, channel_id: Optional[str] = None) -> bool:
        self.channel_messages.append(content)
        return True

    async def close(self) -> None:
        pass


class FakeEmailService:
    """Records status emails instead of sending them."""

    def __init__(self):
        self.sent = []

    async def send_application_status_email(self, email, recipient_name, status, reason=None) -> bool:
        self.sent.append({"email": email, "name": recipient_name, "status": status, "reason": reason})
        return True


def make_application(
    id: str,
    user_id: str = APPLICANT.id,
    application_type: str = "whitelist",
    status: ApplicationStatus = ApplicationStatus.PENDING,
    timestamp: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    **extra,
) -> Application:
    """Build an application record for seeding collections."""
    return Application(
        id=id,
        discord=DiscordIdentity(id=user_id, username=f"user-{user_id}"),
        application_type=application_type,
        status=status,
        timestamp=timestamp or datetime(2024, 1, 1, tzinfo=timezone.utc),
        updated_at=updated_at,
        **extra,
    )


def days_ago(days: float, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


@pytest.fixture
def store(tmp_path) -> CollectionStore:
    """
    Fresh collection store in a temporary data directory.
    Replaces the app's store for the duration of the test.
    """
    test_store = CollectionStore(tmp_path / "data", fail_open=True)
    original_store = portal.storage.store
    portal.storage.store = test_store
    try:
        yield test_store
    finally:
        portal.storage.store = original_store


@pytest.fixture
def discord() -> FakeDiscordClient:
    client = FakeDiscordClient()
    client.roles[ADMIN.id] = ["Founders"]
    client.roles[REVIEWER.id] = ["Reviewer"]
    return client


@pytest.fixture
def email() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore(ttl_minutes=60)


@pytest.fixture
def app(store, discord, email, sessions):
    """The FastAPI app with collaborators replaced by fakes."""
    fastapi_app.dependency_overrides[get_discord_client] = lambda: discord
    fastapi_app.dependency_overrides[get_email_service] = lambda: email
    fastapi_app.dependency_overrides[get_session_store] = lambda: sessions
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated HTTP client for testing endpoints."""
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _client_for(app, sessions: SessionStore, identity: DiscordIdentity) -> AsyncClient:
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    # Set auth cookie on client
    client.cookies.set("auth_token", sessions.create(identity))
    return client


@pytest_asyncio.fixture
async def client(app, sessions) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as a regular applicant (no staff roles)."""
    client = await _client_for(app, sessions, APPLICANT)
    async with client:
        yield client


@pytest_asyncio.fixture
async def admin_client(app, sessions) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as a member with the admin role."""
    client = await _client_for(app, sessions, ADMIN)
    async with client:
        yield client


@pytest_asyncio.fixture
async def reviewer_client(app, sessions) -> AsyncGenerator[AsyncClient, None]:
    """Client logged in as a member with only the reviewer role."""
    client = await _client_for(app, sessions, REVIEWER)
    async with client:
        yield client
