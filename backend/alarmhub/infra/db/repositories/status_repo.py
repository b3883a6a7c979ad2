"""Device status store."""
import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.domain.common.types import as_utc, utcnow
from alarmhub.domain.ingestion.models import DeviceStatus, DeviceStatusUpdate
from alarmhub.infra.db.models.device import DeviceModel
from alarmhub.infra.db.models.device_status import DeviceStatusModel

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class StatusRepository:
    """Last-known status per device. Snapshot, not a log."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, device_id: str, account_code: str, update: DeviceStatusUpdate) -> None:
        """Replace the whole row for `device_id` in one statement (no field-level merge)."""
        values = {
            "device_id": device_id,
            "account_code": account_code,
            "online": update.online,
            "smoke": update.smoke,
            "temperature": update.temperature,
            "battery_level": update.battery_level,
            "battery_ok": update.battery_ok,
            "signal_strength": update.signal_strength,
            "last_seen": update.timestamp,
            "raw_data": update.raw_data,
            "updated_at": utcnow(),
        }
        dialect = self.session.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            # other backends: merge() issues SELECT + INSERT/UPDATE in one transaction
            await self.session.merge(DeviceStatusModel(**values))
        else:
            stmt = insert(DeviceStatusModel).values(**values)
            replace = {k: stmt.excluded[k] for k in values if k != "device_id"}
            await self.session.execute(
                stmt.on_conflict_do_update(index_elements=["device_id"], set_=replace)
            )
        await self.session.commit()

    async def get_for_account(self, account_code: str) -> List[DeviceStatus]:
        """Current snapshot for every device the account owns, oldest binding first.

        Devices that never reported are included as offline with no readings.
        """
        result = await self.session.execute(
            select(DeviceModel, DeviceStatusModel)
            .outerjoin(DeviceStatusModel, DeviceStatusModel.device_id == DeviceModel.device_id)
            .where(DeviceModel.account_code == account_code)
            .order_by(DeviceModel.created_at.asc(), DeviceModel.device_id.asc())
        )
        statuses = []
        for device, status in result.all():
            if status is None:
                statuses.append(
                    DeviceStatus(
                        device_id=device.device_id,
                        account_code=device.account_code,
                        name=device.name,
                        online=False,
                        smoke=False,
                        temperature=None,
                        battery_level=None,
                        battery_ok=None,
                        signal_strength=None,
                        last_seen=None,
                        raw_data=None,
                    )
                )
                continue
            statuses.append(
                DeviceStatus(
                    device_id=status.device_id,
                    account_code=device.account_code,
                    name=device.name,
                    online=bool(status.online),
                    smoke=bool(status.smoke),
                    temperature=status.temperature,
                    battery_level=status.battery_level,
                    battery_ok=status.battery_ok,
                    signal_strength=status.signal_strength,
                    last_seen=as_utc(status.last_seen),
                    raw_data=status.raw_data,
                )
            )
        return statuses

    async def delete(self, device_id: str) -> bool:
        result = await self.session.execute(
            delete(DeviceStatusModel).where(DeviceStatusModel.device_id == device_id)
        )
        await self.session.commit()
        return (result.rowcount or 0) > 0
