"""Database base configuration."""
import os
import ssl
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


# JSON everywhere, JSONB on PostgreSQL
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def normalize_async_url(url: str) -> str:
    """Ensure the URL names an async driver; managed Postgres often hands out postgresql:// (sync)."""
    u = (url or "").strip()
    if u.startswith("postgres://"):
        u = "postgresql://" + u[len("postgres://"):]
    if u.startswith("postgresql://"):
        return u.replace("postgresql://", "postgresql+asyncpg://", 1)
    if u.startswith("sqlite://") and not u.startswith("sqlite+aiosqlite://"):
        return u.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return u


def _ssl_context_no_verify() -> ssl.SSLContext:
    """SSL context that skips certificate verification (for managed hosts with odd chains)."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def async_connect_args(url: str) -> dict:
    """connect_args for the driver.

    asyncpg does not accept sslmode; translate sslmode=require into an ssl argument.
    Set DATABASE_SSL_VERIFY=true to enable strict certificate verification.
    """
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    parsed = urlparse(url)
    qs = parse_qs(parsed.query, keep_blank_values=True)
    if qs.get("sslmode") != ["require"]:
        return {}
    verify = os.environ.get("DATABASE_SSL_VERIFY", "false").strip().lower()
    if verify in ("true", "1"):
        return {"ssl": True}
    return {"ssl": _ssl_context_no_verify()}


def url_without_sslmode(url: str) -> str:
    """Return URL with sslmode removed so asyncpg does not get an unknown kwarg.

    Only PostgreSQL URLs with a query string are rewritten; urlunparse would
    drop the empty authority of sqlite:///path.
    """
    if not url.startswith("postgresql") or "?" not in url:
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query, keep_blank_values=True)
    qs.pop("sslmode", None)
    return urlunparse(parsed._replace(query=urlencode(qs, doseq=True)))


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for `database_url`."""
    url = normalize_async_url(database_url)
    kwargs: dict = {"echo": echo, "connect_args": async_connect_args(url)}
    if url.startswith("sqlite") and ":memory:" in url:
        # one shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_async_engine(url_without_sslmode(url), **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Process-wide engine, created from settings on first use."""
    global _engine, _sessionmaker
    if _engine is None:
        from alarmhub.settings import settings

        _engine = build_engine(settings.database_url, echo=settings.database_echo)
        _sessionmaker = build_sessionmaker(_engine)
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def dispose_engine() -> None:
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


# Models are imported in alarmhub/infra/db/models/__init__.py; importing them here
# would create a cycle (base -> models -> base).
