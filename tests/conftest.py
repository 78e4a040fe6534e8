"""
Pytest configuration and shared fixtures
"""
import asyncio
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

# Must be set before config is imported anywhere
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from config import Settings
from database import init_db
from services.account_service import AccountManager
from services.account_store import AccountStore
from services.email_service import NotificationDispatcher
from services.password_service import SecretHasher
from services.session_service import SessionManager
from services.token_service import TokenIssuer

TEST_OTP = "123456"


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


class FakeClock:
    """Controllable replacement for utcnow()."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings():
    """Settings with cheap argon2 parameters so the suite stays fast"""
    return Settings(
        jwt_secret_key="test-secret-key",
        password_time_cost=1,
        password_memory_cost=1024,
        password_parallelism=1,
        app_name="Test App",
        sender_email="no-reply@example.com",
    )


@pytest.fixture
def engine():
    """In-memory SQLite database shared across threads for one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return AccountStore(engine)


@pytest.fixture
def ses_client():
    """Mock SES client that accepts every message"""
    client = MagicMock()
    client.send_email.return_value = {"MessageId": "test-message-id"}
    return client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hasher(settings):
    return SecretHasher(settings)


@pytest.fixture
def sessions(settings):
    return SessionManager(TokenIssuer(settings), settings)


@pytest.fixture
def notifications(settings, ses_client):
    return NotificationDispatcher(settings, ses_client=ses_client)


@pytest.fixture
def manager(store, hasher, sessions, notifications, settings, clock):
    return AccountManager(
        store=store,
        hasher=hasher,
        sessions=sessions,
        notifications=notifications,
        settings=settings,
        otp_generator=lambda length: TEST_OTP,
        clock=clock,
    )


@pytest.fixture
def registered(manager, ses_client):
    """An account for a@x.com / pw1, with the welcome mail already sent"""
    run(manager.register("A", "a@x.com", "pw1"))
    account = run(manager.store.find_by_email("a@x.com"))
    ses_client.send_email.reset_mock()
    return account
