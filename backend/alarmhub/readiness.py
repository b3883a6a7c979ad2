"""Readiness checks: config, packages, database, push credentials."""
import asyncio
import logging

from sqlalchemy import text

from alarmhub.domain.common.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Result: (passed: bool, message: str)
CheckResult = tuple[bool, str]
ChecksDict = dict[str, CheckResult]


def check_config() -> CheckResult:
    """Load settings and read app_name / database_url."""
    try:
        from alarmhub.settings import get_settings
        s = get_settings()
        _ = s.app_name
        _ = s.database_url
        return True, "ok"
    except Exception as e:
        return False, str(e)


def check_packages() -> CheckResult:
    """Import critical modules: uvicorn, sqlalchemy, firebase_admin, alarmhub.main."""
    missing = []
    try:
        import uvicorn  # noqa: F401
    except ImportError:
        missing.append("uvicorn")
    try:
        import sqlalchemy  # noqa: F401
    except ImportError:
        missing.append("sqlalchemy")
    try:
        import firebase_admin  # noqa: F401
    except ImportError:
        missing.append("firebase_admin")
    try:
        import alarmhub.main  # noqa: F401
    except ImportError as e:
        missing.append(f"alarmhub.main ({e})")
    if missing:
        return False, f"missing: {', '.join(missing)}"
    return True, "ok"


async def _check_database_async() -> CheckResult:
    """Run a trivial query against the application engine."""
    from alarmhub.infra.db.base import get_engine
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True, "ok"
    except Exception as e:
        return False, str(e)


def check_database() -> CheckResult:
    """Check database connectivity using settings.database_url."""
    from alarmhub.infra.db.base import build_engine
    from alarmhub.settings import get_settings

    async def _ping() -> CheckResult:
        engine = build_engine(get_settings().database_url)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True, "ok"
        except Exception as e:
            return False, str(e)
        finally:
            await engine.dispose()

    return asyncio.run(_ping())


def check_push() -> CheckResult:
    """If push is enabled, the Firebase app must initialise; else skip."""
    from alarmhub.infra.push.sender import build_push_sink
    from alarmhub.settings import get_settings
    sink = build_push_sink(get_settings())
    if sink is None:
        return True, "skipped (push disabled)"
    try:
        sink.check_configured()
    except ConfigurationError as e:
        return False, e.message
    return True, "ok"


def run_all_checks() -> ChecksDict:
    """Run all readiness checks (sync). Returns dict of check_name -> (passed, message)."""
    return {
        "config": check_config(),
        "packages": check_packages(),
        "database": check_database(),
        "push": check_push(),
    }


async def run_all_checks_async() -> ChecksDict:
    """Run all readiness checks (async). Use from async context (e.g. GET /ready) to avoid nested event loop."""
    return {
        "config": check_config(),
        "packages": check_packages(),
        "database": await _check_database_async(),
        "push": check_push(),
    }


def is_ready(checks: ChecksDict | None = None) -> tuple[bool, dict[str, str]]:
    """
    True if all required checks pass. Push is required only when it is enabled
    (a disabled push check passes as skipped).
    Returns (ready: bool, checks_summary: dict of name -> "ok" | "skipped" | error message).
    """
    if checks is None:
        checks = run_all_checks()
    required = {"config", "packages", "database", "push"}
    summary: dict[str, str] = {}
    for name, (passed, msg) in checks.items():
        summary[name] = msg
    all_required = all(checks[n][0] for n in required if n in checks)
    return all_required, summary
