"""Ingestion contracts passed between pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from alarmhub.domain.notifications.models import FanoutResult

DeviceId = str
AccountCode = str

ALARM_TYPE_SMOKE = "smoke"
ALARM_TYPE_TEST = "test"


@dataclass(frozen=True)
class DeviceStatusUpdate:
    """Canonical status extracted from one vendor payload."""
    device_id: DeviceId
    online: bool
    smoke: bool
    timestamp: datetime
    raw_data: Any
    temperature: Optional[float] = None
    battery_level: Optional[float] = None
    battery_ok: Optional[bool] = None
    signal_strength: Optional[float] = None

    @property
    def battery_low(self) -> bool:
        return self.battery_ok is False


@dataclass(frozen=True)
class DeviceStatus:
    """Last-known snapshot of a device, as read back for the dashboard."""
    device_id: DeviceId
    account_code: AccountCode
    name: Optional[str]
    online: bool
    smoke: bool
    temperature: Optional[float]
    battery_level: Optional[float]
    battery_ok: Optional[bool]
    signal_strength: Optional[float]
    last_seen: Optional[datetime]
    raw_data: Any


@dataclass(frozen=True)
class AlarmEvent:
    """One recorded alarm occurrence."""
    id: str
    device_id: DeviceId
    account_code: AccountCode
    smoke: bool
    alarm_type: str
    timestamp: datetime
    temperature: Optional[float] = None
    battery_ok: Optional[bool] = None
    location: Optional[str] = None
    acknowledged: bool = False
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    raw_data: Any = None
    device_name: Optional[str] = None


@dataclass
class IngestionResult:
    """Outcome of processing one webhook event."""
    device_id: DeviceId
    account_code: AccountCode
    adopted: bool = False
    alarm: Optional[AlarmEvent] = None
    fanout: Optional[FanoutResult] = None
    warnings: list[str] = field(default_factory=list)
