"""
Shared fixtures.

Database tests run against a fresh in-memory SQLite database per test.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from fitslack.config import Settings
from fitslack.db.session import create_engine, create_session_factory, init_db
from fitslack.shared.slack import SlackClient

SLACK_TS = "1700000000.000100"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on separate connections to one SQLite file, for concurrent writers."""
    engine = create_engine(f"sqlite:///{tmp_path / 'fitslack.sqlite'}")
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        public_base_url="https://fit.example.com",
        database_url="sqlite:///:memory:",
        strava_client_id="12345",
        strava_client_secret="strava-secret",
        strava_verify_token="verify-me",
        slack_bot_token="xoxb-test",
        slack_channel_id="C0TEAMRUNS",
        fetch_pedometer_user_id="UPEDOMETER1",
        admin_token=None,
        peloton_poller_enabled=False,
    )


@pytest.fixture
def slack():
    """SlackClient double that accepts every message."""
    client = AsyncMock(spec=SlackClient)
    client.post_message.return_value = SLACK_TS
    return client
