"""Device event webhook."""
import json
import logging

from fastapi import APIRouter, Depends, Request

from alarmhub.api.deps import get_ingestion_service, verify_webhook_secret
from alarmhub.domain.common.errors import MalformedPayloadError
from alarmhub.domain.common.types import utcnow
from alarmhub.domain.ingestion.services import EventIngestionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/device-event", dependencies=[Depends(verify_webhook_secret)])
async def receive_device_event(
    request: Request,
    service: EventIngestionService = Depends(get_ingestion_service),
):
    """
    Accept one status event from a detector (or its cloud relay).

    The body is vendor JSON; field names vary by firmware and are normalized
    server-side. Responds once status, alarm and notifications are handled.
    """
    received_at = utcnow()
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON (%d bytes)", len(raw))
        raise MalformedPayloadError()

    result = await service.ingest(payload, received_at=received_at)

    response = {
        "success": True,
        "deviceId": result.device_id,
        "message": "Status updated",
        "adopted": result.adopted,
        "alarmId": result.alarm.id if result.alarm else None,
        "notifications": result.fanout.as_dict() if result.fanout else None,
    }
    if result.warnings:
        response["message"] = "Status updated with warnings"
        response["warnings"] = result.warnings
    return response
