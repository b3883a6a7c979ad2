"""Alarm event repository."""
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.domain.common.types import as_utc, generate_id, utcnow
from alarmhub.domain.ingestion.models import AlarmEvent
from alarmhub.infra.db.models.alarm import AlarmModel
from alarmhub.infra.db.models.device import DeviceModel


def _to_entity(model: AlarmModel, device_name: Optional[str] = None) -> AlarmEvent:
    return AlarmEvent(
        id=model.id,
        device_id=model.device_id,
        account_code=model.account_code,
        smoke=bool(model.smoke),
        alarm_type=model.alarm_type,
        timestamp=as_utc(model.timestamp),
        temperature=model.temperature,
        battery_ok=model.battery_ok,
        location=model.location,
        acknowledged=bool(model.acknowledged),
        acknowledged_by=model.acknowledged_by,
        acknowledged_at=as_utc(model.acknowledged_at),
        raw_data=model.raw_data,
        device_name=device_name,
    )


class AlarmRepository:
    """Append-only alarm log."""

    def __init__(self, session: AsyncSession):
        self.session = session

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
        """Record one alarm occurrence, unacknowledged."""
        model = AlarmModel(
            id=generate_id(),
            device_id=device_id,
            account_code=account_code,
            smoke=smoke,
            temperature=temperature,
            battery_ok=battery_ok,
            alarm_type=alarm_type,
            location=location,
            acknowledged=False,
            raw_data=raw_data,
            timestamp=timestamp,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _to_entity(model)

    async def latest_since(
        self, device_id: str, alarm_type: str, since: datetime
    ) -> Optional[AlarmEvent]:
        """Newest alarm of `alarm_type` for the device at or after `since`."""
        result = await self.session.execute(
            select(AlarmModel)
            .where(
                AlarmModel.device_id == device_id,
                AlarmModel.alarm_type == alarm_type,
                AlarmModel.timestamp >= since,
            )
            .order_by(AlarmModel.timestamp.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def list_for_account(self, account_code: str, limit: int = 50) -> List[AlarmEvent]:
        """Alarms of the account's current devices, newest first."""
        result = await self.session.execute(
            select(AlarmModel, DeviceModel.name)
            .join(DeviceModel, DeviceModel.device_id == AlarmModel.device_id)
            .where(
                DeviceModel.account_code == account_code,
                AlarmModel.account_code == account_code,
            )
            .order_by(AlarmModel.timestamp.desc())
            .limit(limit)
        )
        return [_to_entity(model, name) for model, name in result.all()]

    async def acknowledge(
        self, alarm_id: str, account_code: str, acknowledged_by: Optional[str]
    ) -> Optional[AlarmEvent]:
        """Mark an alarm acknowledged. None when it does not exist for the account."""
        result = await self.session.execute(
            select(AlarmModel).where(
                AlarmModel.id == alarm_id,
                AlarmModel.account_code == account_code,
            )
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        if not model.acknowledged:
            model.acknowledged = True
            model.acknowledged_by = acknowledged_by
            model.acknowledged_at = utcnow()
            await self.session.commit()
            await self.session.refresh(model)
        return _to_entity(model)
