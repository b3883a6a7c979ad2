"""Ingestion domain repository protocols."""
from datetime import datetime
from typing import Any, List, Optional, Protocol

from alarmhub.domain.ingestion.models import AlarmEvent, DeviceStatus, DeviceStatusUpdate


class AccountRepository(Protocol):
    async def exists(self, code: str) -> bool:
        ...

    async def first_available(self) -> Optional[str]:
        """Deterministic fallback owner for orphan devices."""
        ...


class DeviceRepository(Protocol):
    async def get_owner(self, device_id: str) -> Optional[str]:
        ...

    async def bind(
        self, device_id: str, account_code: str, name: Optional[str] = None
    ) -> tuple[str, bool]:
        """Returns (owner, created)."""
        ...


class StatusRepository(Protocol):
    async def upsert(self, device_id: str, account_code: str, update: DeviceStatusUpdate) -> None:
        ...

    async def get_for_account(self, account_code: str) -> List[DeviceStatus]:
        ...


class AlarmRepository(Protocol):
    async def append(
        self,
        device_id: str,
        account_code: str,
        alarm_type: str,
        smoke: bool,
        timestamp: datetime,
        temperature: Optional[float] = None,
        battery_ok: Optional[bool] = None,
        raw_data: Any = None,
        location: Optional[str] = None,
    ) -> AlarmEvent:
        ...

    async def latest_since(
        self, device_id: str, alarm_type: str, since: datetime
    ) -> Optional[AlarmEvent]:
        ...
