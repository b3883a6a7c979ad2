"""API dependencies."""
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.domain.common.errors import NotFoundError
from alarmhub.domain.ingestion.detector import AlarmDetector
from alarmhub.domain.ingestion.resolver import DeviceIdentityResolver
from alarmhub.domain.ingestion.services import EventIngestionService, TestAlarmService
from alarmhub.domain.notifications.fanout import NotificationFanout
from alarmhub.infra.db.repositories.account_repo import AccountRepository, normalize_code
from alarmhub.infra.db.repositories.alarm_repo import AlarmRepository
from alarmhub.infra.db.repositories.device_repo import DeviceRepository
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository
from alarmhub.infra.db.repositories.status_repo import StatusRepository
from alarmhub.infra.db.session import get_db
from alarmhub.infra.push.sender import FcmPushSink, build_push_sink
from alarmhub.settings import Settings, get_settings

logger = logging.getLogger(__name__)

__all__ = [
    "get_db",
    "get_app_settings",
    "get_push_sink",
    "get_fanout",
    "get_ingestion_service",
    "get_test_alarm_service",
    "require_account",
    "verify_webhook_secret",
]


def get_app_settings() -> Settings:
    """Current settings snapshot (overridable in tests)."""
    return get_settings()


def get_push_sink(settings: Settings = Depends(get_app_settings)) -> Optional[FcmPushSink]:
    """FCM sink, or None when push is disabled."""
    return build_push_sink(settings)


def get_fanout(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    sink: Optional[FcmPushSink] = Depends(get_push_sink),
) -> NotificationFanout:
    return NotificationFanout(
        PushTokenRepository(db),
        sink,
        timeout_seconds=settings.push_timeout_seconds,
        max_concurrency=settings.push_max_concurrency,
        prune_unregistered=settings.prune_unregistered_tokens,
    )


def get_ingestion_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    fanout: NotificationFanout = Depends(get_fanout),
) -> EventIngestionService:
    resolver = DeviceIdentityResolver(
        DeviceRepository(db),
        AccountRepository(db),
        auto_adopt=settings.auto_adopt_devices,
        default_account_code=settings.default_account_code,
    )
    return EventIngestionService(
        resolver=resolver,
        status_repo=StatusRepository(db),
        detector=AlarmDetector(AlarmRepository(db), cooldown_seconds=settings.alarm_cooldown_seconds),
        fanout=fanout,
        rollback=db.rollback,
        battery_low_threshold=settings.battery_low_threshold,
        notify_battery_low=settings.notify_battery_low,
        locale=settings.notification_locale,
    )


def get_test_alarm_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    fanout: NotificationFanout = Depends(get_fanout),
) -> TestAlarmService:
    return TestAlarmService(
        account_repo=AccountRepository(db),
        device_repo=DeviceRepository(db),
        status_repo=StatusRepository(db),
        alarm_repo=AlarmRepository(db),
        fanout=fanout,
        rollback=db.rollback,
        battery_low_threshold=settings.battery_low_threshold,
        locale=settings.notification_locale,
    )


async def verify_webhook_secret(
    authorization: Optional[str] = Header(default=None),
    x_webhook_secret: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Check the relay's shared secret when WEBHOOK_SECRET is configured."""
    expected = settings.webhook_secret
    if not expected:
        return
    provided = x_webhook_secret
    if provided is None and authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer":
            provided = value.strip()
    if provided is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing webhook secret",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Rejected webhook call with invalid secret")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid webhook secret")


async def require_account(db: AsyncSession, user_code: str) -> str:
    """Normalized code of an existing account; NotFoundError otherwise."""
    code = normalize_code(user_code)
    if not await AccountRepository(db).exists(code):
        raise NotFoundError("Account", code, message="Invalid user code")
    return code
