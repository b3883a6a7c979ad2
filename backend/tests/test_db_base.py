"""Tests for engine URL handling."""
from sqlalchemy import text

from alarmhub.infra.db.base import build_engine, normalize_async_url, url_without_sslmode


def test_sqlite_urls_are_left_alone():
    assert url_without_sslmode("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
    assert url_without_sslmode(normalize_async_url("sqlite:///./local.db")) == "sqlite+aiosqlite:///./local.db"


def test_sslmode_is_stripped_from_postgres_urls():
    url = normalize_async_url("postgres://u:p@db.example.com:5432/alarmhub?sslmode=require")
    assert url_without_sslmode(url) == "postgresql+asyncpg://u:p@db.example.com:5432/alarmhub"
    plain = "postgresql+asyncpg://u:p@localhost/alarmhub"
    assert url_without_sslmode(plain) == plain


async def test_in_memory_sqlite_engine_connects():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    try:
        async with engine.connect() as conn:
            assert (await conn.execute(text("SELECT 1"))).scalar() == 1
    finally:
        await engine.dispose()
