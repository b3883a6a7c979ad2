"""Device API routes: webhook ingestion, status and history queries, test alarms."""
from fastapi import APIRouter

from alarmhub.api.devices import (
    routes_webhook,
    routes_status,
    routes_test_alarm,
)

router = APIRouter()

router.include_router(routes_webhook.router, prefix="/webhook", tags=["webhook"])
router.include_router(routes_status.router, tags=["devices"])
router.include_router(routes_test_alarm.router, tags=["devices"])
