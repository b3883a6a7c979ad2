"""Push notification texts for smoke, test and battery events."""
from typing import Optional

from alarmhub.domain.common.types import utcnow
from alarmhub.domain.notifications.models import NotificationPayload

FIRE_ALARM = "fire_alarm"
TEST_ALARM = "test_alarm"
BATTERY_LOW = "battery_low"

_TEXTS = {
    "sv": {
        FIRE_ALARM: ("🚨 BRANDLARM!", "RÖK UPPTÄCKT! Enhet: {device_id}"),
        TEST_ALARM: ("✅ Testalarm", "Brandvarnare {device_id} fungerar korrekt"),
        BATTERY_LOW: ("🔋 Låg batterinivå", "Brandvarnare {device_id} behöver batteribyte"),
    },
    "en": {
        FIRE_ALARM: ("🚨 FIRE ALARM!", "SMOKE DETECTED! Device: {device_id}"),
        TEST_ALARM: ("✅ Test alarm", "Smoke detector {device_id} is working"),
        BATTERY_LOW: ("🔋 Low battery", "Smoke detector {device_id} needs a new battery"),
    },
}


def build_notification(
    kind: str,
    device_id: str,
    locale: str = "sv",
    alarm_id: Optional[str] = None,
    temperature: Optional[float] = None,
    battery_level: Optional[float] = None,
) -> NotificationPayload:
    texts = _TEXTS.get(locale, _TEXTS["sv"])
    title, body = texts[kind]
    data = {
        "type": kind,
        "deviceId": device_id,
        "timestamp": utcnow().isoformat(),
    }
    if alarm_id:
        data["alarmId"] = alarm_id
    if temperature is not None:
        data["temperature"] = str(temperature)
    if battery_level is not None:
        data["battery_level"] = str(battery_level)
    return NotificationPayload(title=title, body=body.format(device_id=device_id), data=data)
