"""Alarm acknowledgement."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.api.deps import get_db, require_account
from alarmhub.domain.common.errors import NotFoundError
from alarmhub.domain.common.types import isoformat
from alarmhub.infra.db.repositories.alarm_repo import AlarmRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class AcknowledgeRequest(BaseModel):
    user_code: str
    acknowledged_by: Optional[str] = None


@router.post("/{alarm_id}/acknowledge")
async def acknowledge_alarm(alarm_id: str, request: AcknowledgeRequest, db: AsyncSession = Depends(get_db)):
    code = await require_account(db, request.user_code)
    alarm = await AlarmRepository(db).acknowledge(alarm_id, code, request.acknowledged_by)
    if alarm is None:
        raise NotFoundError("Alarm", alarm_id, message="Alarm not found")
    logger.info("Alarm %s acknowledged by %s (account %s)", alarm_id, request.acknowledged_by, code)
    return {
        "success": True,
        "alarm": {
            "id": alarm.id,
            "deviceId": alarm.device_id,
            "type": alarm.alarm_type,
            "acknowledged": alarm.acknowledged,
            "acknowledgedBy": alarm.acknowledged_by,
            "acknowledgedAt": isoformat(alarm.acknowledged_at),
        },
    }
