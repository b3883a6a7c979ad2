"""Manual test alarm."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from alarmhub.api.deps import get_test_alarm_service
from alarmhub.domain.common.types import isoformat
from alarmhub.domain.ingestion.services import TestAlarmService
from alarmhub.infra.db.repositories.account_repo import normalize_code

logger = logging.getLogger(__name__)

router = APIRouter()


class TestAlarmRequest(BaseModel):
    """Test alarm request. Omitted readings use healthy defaults."""
    user_code: str
    device_id: str = Field(alias="deviceId")
    smoke: Optional[bool] = True
    temperature: Optional[float] = 25.0
    battery: Optional[float] = 85.0

    model_config = {"populate_by_name": True}


@router.post("/test-alarm")
async def trigger_test_alarm(
    request: TestAlarmRequest,
    service: TestAlarmService = Depends(get_test_alarm_service),
):
    """Inject a test alarm for a device and notify the account's phones."""
    code = normalize_code(request.user_code)
    alarm, fanout = await service.trigger(
        code,
        request.device_id,
        smoke=True if request.smoke is None else request.smoke,
        temperature=25.0 if request.temperature is None else request.temperature,
        battery=85.0 if request.battery is None else request.battery,
    )
    return {
        "success": True,
        "message": "Test alarm sent",
        "alarmId": alarm.id,
        "deviceId": alarm.device_id,
        "userCode": code,
        "timestamp": isoformat(alarm.timestamp),
        "notifications": fanout.as_dict(),
    }
