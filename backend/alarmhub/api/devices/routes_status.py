"""Device status and alarm history queries."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.api.deps import get_db, require_account
from alarmhub.domain.common.types import isoformat
from alarmhub.infra.db.repositories.alarm_repo import AlarmRepository
from alarmhub.infra.db.repositories.status_repo import StatusRepository

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200


class UserCodeRequest(BaseModel):
    user_code: str


class AlarmHistoryRequest(BaseModel):
    user_code: str
    limit: Optional[int] = DEFAULT_HISTORY_LIMIT


def display_name(device_id: str, name: Optional[str]) -> str:
    """Stored name, or the last 4 chars of the id."""
    return name or device_id[-4:]


def history_limit(limit: Optional[int]) -> int:
    """Missing or non-positive limits use the default; large ones are capped."""
    if limit is None or limit < 1:
        return DEFAULT_HISTORY_LIMIT
    return min(limit, MAX_HISTORY_LIMIT)


@router.post("/device-status")
async def get_device_status(request: UserCodeRequest, db: AsyncSession = Depends(get_db)):
    """Latest known status of every device bound to the account."""
    code = await require_account(db, request.user_code)
    statuses = await StatusRepository(db).get_for_account(code)
    devices = [
        {
            "device_id": s.device_id,
            "name": display_name(s.device_id, s.name),
            "online": s.online,
            "smoke": s.smoke,
            "temperature": s.temperature,
            "battery": s.battery_level,
            "signal": s.signal_strength,
            "last_seen": isoformat(s.last_seen),
            "raw_data": s.raw_data,
        }
        for s in statuses
    ]
    return {"devices": devices, "count": len(devices)}


@router.post("/alarm-history")
async def get_alarm_history(request: AlarmHistoryRequest, db: AsyncSession = Depends(get_db)):
    """Alarms for the account's devices, newest first."""
    code = await require_account(db, request.user_code)
    alarms = await AlarmRepository(db).list_for_account(code, limit=history_limit(request.limit))
    items = [
        {
            "id": a.id,
            "timestamp": isoformat(a.timestamp),
            "deviceId": a.device_id,
            "deviceName": display_name(a.device_id, a.device_name),
            "smoke": a.smoke,
            "temperature": a.temperature,
            "battery": a.battery_ok,
            "type": a.alarm_type,
            "location": a.location,
            "acknowledged": a.acknowledged,
            "acknowledgedAt": isoformat(a.acknowledged_at),
        }
        for a in alarms
    ]
    return {"alarms": items, "count": len(items)}
