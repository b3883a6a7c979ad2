"""Push token repository."""
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.domain.common.types import utcnow
from alarmhub.infra.db.models.push_token import PushTokenModel


class PushTokenRepository:
    """Push tokens per account."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_by_token(
        self,
        account_code: str,
        token: str,
        platform: Optional[str] = None,
        device_info: Optional[dict[str, Any]] = None,
    ) -> PushTokenModel:
        """Insert or update by token. Re-registering a token moves it (last write wins)."""
        row = await self.session.get(PushTokenModel, token)
        if row:
            row.account_code = account_code
            row.platform = platform
            row.device_info = device_info or {}
            row.updated_at = utcnow()
            await self.session.commit()
            await self.session.refresh(row)
            return row
        model = PushTokenModel(
            token=token,
            account_code=account_code,
            platform=platform,
            device_info=device_info or {},
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return model

    async def list_tokens(self, account_code: str) -> List[str]:
        """Tokens registered for an account. Used by the fan-out."""
        result = await self.session.execute(
            select(PushTokenModel.token)
            .where(PushTokenModel.account_code == account_code)
            .order_by(PushTokenModel.created_at.asc())
        )
        return list(result.scalars().all())

    async def delete_tokens(self, tokens: List[str]) -> int:
        """Delete tokens the provider reported as unregistered. Returns count deleted."""
        if not tokens:
            return 0
        result = await self.session.execute(
            delete(PushTokenModel).where(PushTokenModel.token.in_(tokens))
        )
        await self.session.commit()
        return result.rowcount or 0
