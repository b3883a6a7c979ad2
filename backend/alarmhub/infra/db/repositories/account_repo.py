"""Account repository."""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.infra.db.models.account import AccountModel
from alarmhub.infra.db.models.device import DeviceModel


def normalize_code(code: str) -> str:
    """User codes are case-insensitive and stored upper-case."""
    return (code or "").strip().upper()


class AccountRepository:
    """Account (user code) repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, code: str) -> Optional[AccountModel]:
        return await self.session.get(AccountModel, normalize_code(code))

    async def exists(self, code: str) -> bool:
        return await self.get(code) is not None

    async def first_available(self) -> Optional[str]:
        """Oldest account code, ties broken by code. Deterministic fallback owner."""
        result = await self.session.execute(
            select(AccountModel.code)
            .order_by(AccountModel.created_at.asc(), AccountModel.code.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, code: str) -> AccountModel:
        model = AccountModel(code=normalize_code(code))
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def list_device_ids(self, code: str) -> List[str]:
        result = await self.session.execute(
            select(DeviceModel.device_id)
            .where(DeviceModel.account_code == normalize_code(code))
            .order_by(DeviceModel.created_at.asc(), DeviceModel.device_id.asc())
        )
        return list(result.scalars().all())
