"""Pytest configuration and shared fixtures."""
import asyncio
import sys
from pathlib import Path

# Add the backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest
from httpx import ASGITransport, AsyncClient

from alarmhub.domain.common.errors import ConfigurationError
from alarmhub.domain.notifications.models import DeliveryOutcome
from alarmhub.infra.db.base import Base, build_engine, build_sessionmaker
from alarmhub.infra.db import models  # noqa: F401  (register tables)
from alarmhub.infra.db.repositories.account_repo import AccountRepository
from alarmhub.infra.db.repositories.device_repo import DeviceRepository
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository
from alarmhub.settings import Settings


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real DB (deselect with '-m \"not integration\"')"
    )


class FakePushSink:
    """
    In-memory push sink. Records every send; per-token behaviour is scripted:
    "ok" (default), "timeout" (sleeps past any test timeout), "error" (raises),
    or any other string, returned as the failure reason.
    """

    def __init__(self, script=None, configured=True):
        self.script = dict(script or {})
        self.configured = configured
        self.sent: list[dict] = []

    def check_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Push enabled but no Firebase credentials configured")

    async def send(self, token, title, body, data=None):
        self.sent.append({"token": token, "title": title, "body": body, "data": dict(data or {})})
        behaviour = self.script.get(token, "ok")
        if behaviour == "ok":
            return DeliveryOutcome(delivered=True, message_id=f"msg-{len(self.sent)}")
        if behaviour == "timeout":
            await asyncio.sleep(30)
        if behaviour == "error":
            raise RuntimeError("connection reset")
        return DeliveryOutcome(delivered=False, error_reason=behaviour)

    @property
    def tokens(self) -> list[str]:
        return [s["token"] for s in self.sent]


@pytest.fixture
async def engine():
    """In-memory SQLite engine with all tables."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def push_sink():
    return FakePushSink()


@pytest.fixture
def app_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        push_enabled=True,
        webhook_secret="",
        auto_adopt_devices=True,
        default_account_code=None,
        alarm_cooldown_seconds=0,
        notify_battery_low=False,
        push_timeout_seconds=0.2,
        notification_locale="sv",
    )


@pytest.fixture
async def client(session_factory, app_settings, push_sink):
    """HTTP client against the app with DB, settings and push sink overridden."""
    from alarmhub.api import deps
    from alarmhub.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_app_settings] = lambda: app_settings
    app.dependency_overrides[deps.get_push_sink] = lambda: push_sink if app_settings.push_enabled else None

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def seed_account(session, code, device_ids=(), tokens=()):
    """Create an account with bound devices and push tokens."""
    await AccountRepository(session).create(code)
    for device_id in device_ids:
        await DeviceRepository(session).bind(device_id, code)
    for token in tokens:
        await PushTokenRepository(session).upsert_by_token(code, token, platform="android")


@pytest.fixture
def seed(session_factory):
    """Seeder bound to the test database: `await seed("DEMO01", ["dev-1"], ["tok-a"])`."""

    async def _seed(code, device_ids=(), tokens=()):
        async with session_factory() as session:
            await seed_account(session, code, device_ids, tokens)

    return _seed


@pytest.fixture
def make_sink():
    """Factory for scripted sinks: `make_sink({"tok-b": "timeout"})`."""
    return FakePushSink
