"""
Ingestion pipeline: webhook event -> status -> alarm -> notifications.

Stages run in order and each commits on its own. A later stage failing never
rolls back an earlier one: a stored status survives a failed alarm write, and a
recorded alarm survives a failed fan-out.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from alarmhub.domain.common.errors import ConflictError, NotFoundError, PersistenceError
from alarmhub.domain.common.types import utcnow
from alarmhub.domain.ingestion.detector import AlarmDetector
from alarmhub.domain.ingestion.models import (
    ALARM_TYPE_TEST,
    AlarmEvent,
    DeviceStatusUpdate,
    IngestionResult,
)
from alarmhub.domain.ingestion.normalizer import (
    DEFAULT_BATTERY_LOW_THRESHOLD,
    derive_battery_ok,
    extract_device_id,
    normalize,
)
from alarmhub.domain.ingestion.repositories import (
    AccountRepository,
    AlarmRepository,
    DeviceRepository,
    StatusRepository,
)
from alarmhub.domain.ingestion.resolver import DeviceIdentityResolver
from alarmhub.domain.notifications import messages
from alarmhub.domain.notifications.fanout import NotificationFanout
from alarmhub.domain.notifications.models import FanoutResult

logger = logging.getLogger(__name__)

# Signal reported for synthetic test-alarm status rows
TEST_SIGNAL_STRENGTH = 45.0


class EventIngestionService:
    """Processes one device event end to end."""

    def __init__(
        self,
        resolver: DeviceIdentityResolver,
        status_repo: StatusRepository,
        detector: AlarmDetector,
        fanout: NotificationFanout,
        rollback=None,
        battery_low_threshold: float = DEFAULT_BATTERY_LOW_THRESHOLD,
        notify_battery_low: bool = False,
        locale: str = "sv",
    ):
        self.resolver = resolver
        self.status_repo = status_repo
        self.detector = detector
        self.fanout = fanout
        # async callable restoring the session after a failed write
        self._rollback = rollback
        self.battery_low_threshold = battery_low_threshold
        self.notify_battery_low = notify_battery_low
        self.locale = locale

    async def ingest(self, payload: Any, received_at: Optional[datetime] = None) -> IngestionResult:
        # identifier is checked before anything touches the store
        device_id = extract_device_id(payload)
        update = normalize(payload, received_at or utcnow(), self.battery_low_threshold)

        try:
            resolution = await self.resolver.resolve(device_id)
        except SQLAlchemyError as e:
            await self._recover()
            logger.exception("Device lookup failed for %s", device_id)
            raise PersistenceError("Device lookup failed") from e
        account_code = resolution.account_code
        result = IngestionResult(device_id=device_id, account_code=account_code, adopted=resolution.adopted)

        try:
            await self.status_repo.upsert(device_id, account_code, update)
        except SQLAlchemyError as e:
            await self._recover()
            logger.exception("Status write failed for %s", device_id)
            raise PersistenceError("Failed to update device status") from e

        try:
            result.alarm = await self.detector.evaluate(device_id, account_code, update)
        except SQLAlchemyError:
            await self._recover()
            logger.exception("Alarm write failed for %s; status was stored", device_id)
            result.warnings.append("alarm_not_recorded")

        notification = None
        if result.alarm is not None:
            notification = messages.build_notification(
                messages.FIRE_ALARM,
                device_id,
                locale=self.locale,
                alarm_id=result.alarm.id,
                temperature=update.temperature,
            )
        elif self.notify_battery_low and update.battery_low and not update.smoke:
            notification = messages.build_notification(
                messages.BATTERY_LOW,
                device_id,
                locale=self.locale,
                battery_level=update.battery_level,
            )
        if notification is not None:
            try:
                result.fanout = await self.fanout.notify_account(account_code, notification)
            except SQLAlchemyError:
                await self._recover()
                logger.exception("Notification stage failed for %s; status and alarm were stored", device_id)
                result.warnings.append("notification_failed")

        logger.info(
            "Processed event for %s (account %s): smoke=%s alarm=%s adopted=%s",
            device_id, account_code, update.smoke,
            result.alarm.id if result.alarm else None, result.adopted,
        )
        return result

    async def _recover(self) -> None:
        if self._rollback is not None:
            await self._rollback()


class TestAlarmService:
    """Manual test alarm: bypasses the detector and injects a `test` alarm directly."""

    def __init__(
        self,
        account_repo: AccountRepository,
        device_repo: DeviceRepository,
        status_repo: StatusRepository,
        alarm_repo: AlarmRepository,
        fanout: NotificationFanout,
        rollback=None,
        battery_low_threshold: float = DEFAULT_BATTERY_LOW_THRESHOLD,
        locale: str = "sv",
    ):
        self.account_repo = account_repo
        self.device_repo = device_repo
        self.status_repo = status_repo
        self.alarm_repo = alarm_repo
        self.fanout = fanout
        self._rollback = rollback
        self.battery_low_threshold = battery_low_threshold
        self.locale = locale

    async def trigger(
        self,
        account_code: str,
        device_id: str,
        smoke: bool = True,
        temperature: float = 25.0,
        battery: float = 85.0,
    ) -> tuple[AlarmEvent, FanoutResult]:
        if not await self.account_repo.exists(account_code):
            raise NotFoundError("Account", account_code, message="Invalid user code")

        owner = await self.device_repo.get_owner(device_id)
        if owner is None:
            await self.device_repo.bind(device_id, account_code)
        elif owner != account_code:
            raise ConflictError("Device is registered to another user")

        now = utcnow()
        battery_ok = derive_battery_ok(battery, None, self.battery_low_threshold)
        raw = {
            "test": True,
            "deviceId": device_id,
            "smoke": smoke,
            "temperature": temperature,
            "battery": battery,
            "timestamp": now.isoformat(),
        }
        alarm = await self.alarm_repo.append(
            device_id=device_id,
            account_code=account_code,
            alarm_type=ALARM_TYPE_TEST,
            smoke=smoke,
            timestamp=now,
            temperature=temperature,
            battery_ok=battery_ok,
            raw_data=raw,
        )
        logger.info("Test alarm %s created for device %s (account %s)", alarm.id, device_id, account_code)

        status = DeviceStatusUpdate(
            device_id=device_id,
            online=True,
            smoke=smoke,
            timestamp=now,
            raw_data=raw,
            temperature=temperature,
            battery_level=battery,
            battery_ok=battery_ok,
            signal_strength=TEST_SIGNAL_STRENGTH,
        )
        try:
            await self.status_repo.upsert(device_id, account_code, status)
        except SQLAlchemyError:
            if self._rollback is not None:
                await self._rollback()
            logger.exception("Status write failed for test alarm on %s", device_id)

        fanout = await self.fanout.notify_account(
            account_code,
            messages.build_notification(messages.TEST_ALARM, device_id, locale=self.locale, alarm_id=alarm.id),
        )
        return alarm, fanout
