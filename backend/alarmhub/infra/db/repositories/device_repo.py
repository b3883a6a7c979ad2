"""Device ownership repository."""
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.infra.db.models.device import DeviceModel

logger = logging.getLogger(__name__)


class DeviceRepository:
    """Device-to-account bindings."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_owner(self, device_id: str) -> Optional[str]:
        """Account code owning `device_id`, or None."""
        result = await self.session.execute(
            select(DeviceModel.account_code).where(DeviceModel.device_id == device_id)
        )
        return result.scalar_one_or_none()

    async def get(self, device_id: str) -> Optional[DeviceModel]:
        return await self.session.get(DeviceModel, device_id)

    async def bind(
        self, device_id: str, account_code: str, name: Optional[str] = None
    ) -> tuple[str, bool]:
        """Insert a binding. Returns (owner, created).

        When a concurrent request bound the device first, the unique key rejects the
        insert and the existing owner is returned with created=False.
        """
        self.session.add(DeviceModel(device_id=device_id, account_code=account_code, name=name))
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            owner = await self.get_owner(device_id)
            if owner is None:
                raise
            logger.info("Device %s was bound concurrently to %s", device_id, owner)
            return owner, False
        return account_code, True

    async def rename(self, device_id: str, name: Optional[str]) -> None:
        model = await self.get(device_id)
        if model is not None and name:
            model.name = name
            await self.session.commit()

    async def delete(self, device_id: str, account_code: str) -> bool:
        """Remove the binding if it belongs to `account_code`. Returns True if deleted."""
        result = await self.session.execute(
            delete(DeviceModel).where(
                DeviceModel.device_id == device_id,
                DeviceModel.account_code == account_code,
            )
        )
        await self.session.commit()
        return (result.rowcount or 0) > 0
