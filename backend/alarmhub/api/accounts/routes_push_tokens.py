"""Push token registration."""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.api.deps import get_db, require_account
from alarmhub.domain.common.errors import ValidationError
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository

logger = logging.getLogger(__name__)

router = APIRouter()

KNOWN_PLATFORMS = ("ios", "android", "web")


class PushTokenRequest(BaseModel):
    """Push token request."""
    user_code: str
    fcm_token: str
    platform: Optional[str] = None  # 'ios', 'android' or 'web'
    device_info: Optional[dict[str, Any]] = None


@router.post("/push-token")
async def register_push_token(request: PushTokenRequest, db: AsyncSession = Depends(get_db)):
    """Register a phone for the account's notifications. Upserts by token (one account per token)."""
    code = await require_account(db, request.user_code)
    token = request.fcm_token.strip()
    if not token:
        raise ValidationError("FCM token is required")
    platform = (request.platform or "").strip().lower()
    if platform not in KNOWN_PLATFORMS:
        platform = "android"
    await PushTokenRepository(db).upsert_by_token(
        account_code=code,
        token=token,
        platform=platform,
        device_info=request.device_info,
    )
    logger.info("Registered push token for account %s: platform=%s, token=%s...", code, platform, token[:20])
    return {"success": True, "message": "FCM token saved"}
