"""Alarm detection and recording."""
import logging
from datetime import timedelta
from typing import Optional

from alarmhub.domain.ingestion.models import ALARM_TYPE_SMOKE, AlarmEvent, DeviceStatusUpdate
from alarmhub.domain.ingestion.repositories import AlarmRepository

logger = logging.getLogger(__name__)


def is_alarm_worthy(update: DeviceStatusUpdate) -> bool:
    return update.smoke is True


class AlarmDetector:
    """Records a smoke alarm for every event with smoke=True.

    With `cooldown_seconds > 0`, a smoke event is not recorded when the same device
    already has a smoke alarm inside that window (measured on event timestamps).
    """

    def __init__(self, alarm_repo: AlarmRepository, cooldown_seconds: int = 0):
        self.alarm_repo = alarm_repo
        self.cooldown_seconds = cooldown_seconds

    async def evaluate(
        self, device_id: str, account_code: str, update: DeviceStatusUpdate
    ) -> Optional[AlarmEvent]:
        if not is_alarm_worthy(update):
            return None

        if self.cooldown_seconds > 0:
            since = update.timestamp - timedelta(seconds=self.cooldown_seconds)
            previous = await self.alarm_repo.latest_since(device_id, ALARM_TYPE_SMOKE, since)
            if previous is not None:
                logger.info(
                    "Suppressed smoke alarm for %s: previous alarm %s within %ss cooldown",
                    device_id, previous.id, self.cooldown_seconds,
                )
                return None

        alarm = await self.alarm_repo.append(
            device_id=device_id,
            account_code=account_code,
            alarm_type=ALARM_TYPE_SMOKE,
            smoke=True,
            timestamp=update.timestamp,
            temperature=update.temperature,
            battery_ok=update.battery_ok,
            raw_data=update.raw_data,
        )
        logger.info("Smoke alarm %s recorded for device %s (account %s)", alarm.id, device_id, account_code)
        return alarm
