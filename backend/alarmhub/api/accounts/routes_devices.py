"""User code verification and device binding routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alarmhub.api.deps import get_db, require_account
from alarmhub.domain.common.errors import ConflictError, NotFoundError, ValidationError
from alarmhub.infra.db.repositories.account_repo import AccountRepository, normalize_code
from alarmhub.infra.db.repositories.device_repo import DeviceRepository
from alarmhub.infra.db.repositories.status_repo import StatusRepository

logger = logging.getLogger(__name__)

router = APIRouter()

USER_CODE_LENGTH = 6


class VerifyCodeRequest(BaseModel):
    code: str


class AddDeviceRequest(BaseModel):
    user_code: str
    device_id: str
    name: Optional[str] = None


class RemoveDeviceRequest(BaseModel):
    user_code: str
    device_id: str


@router.post("/verify-user-code")
async def verify_user_code(request: VerifyCodeRequest, db: AsyncSession = Depends(get_db)):
    """Check a user code typed in the app and return its device ids."""
    code = normalize_code(request.code)
    if len(code) != USER_CODE_LENGTH:
        raise ValidationError("Invalid code format")
    code = await require_account(db, code)
    device_ids = await AccountRepository(db).list_device_ids(code)
    return {"success": True, "device_ids": device_ids}


@router.post("/add-device")
async def add_device(request: AddDeviceRequest, db: AsyncSession = Depends(get_db)):
    """Bind a device to the account. Re-adding a device the account already owns is a no-op."""
    code = await require_account(db, request.user_code)
    device_id = request.device_id.strip()
    if not device_id:
        raise ValidationError("Device ID is required")
    devices = DeviceRepository(db)

    owner = await devices.get_owner(device_id)
    if owner is None:
        owner, _ = await devices.bind(device_id, code, name=request.name)
    if owner != code:
        raise ConflictError("Device is registered to another user")
    await devices.rename(device_id, request.name)

    logger.info("Device %s bound to account %s", device_id, code)
    return {"success": True, "message": "Device added"}


@router.post("/remove-device")
async def remove_device(request: RemoveDeviceRequest, db: AsyncSession = Depends(get_db)):
    """Unbind a device and drop its status snapshot. Alarm history is kept."""
    code = await require_account(db, request.user_code)
    removed = await DeviceRepository(db).delete(request.device_id, code)
    if not removed:
        raise NotFoundError("Device", request.device_id, message="Device not found")
    await StatusRepository(db).delete(request.device_id)
    logger.info("Device %s removed from account %s", request.device_id, code)
    return {"success": True, "message": "Device removed"}
