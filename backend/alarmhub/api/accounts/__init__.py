"""Account API routes: user codes, device bindings, push tokens, alarm acknowledgement."""
from fastapi import APIRouter

from alarmhub.api.accounts import (
    routes_devices,
    routes_push_tokens,
    routes_alarms,
)

router = APIRouter()

router.include_router(routes_devices.router, tags=["accounts"])
router.include_router(routes_push_tokens.router, tags=["accounts"])
router.include_router(routes_alarms.router, prefix="/alarms", tags=["alarms"])
