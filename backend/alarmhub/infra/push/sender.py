"""Push notification sink via FCM (Firebase Cloud Messaging)."""
import asyncio
import base64
import json
import logging
import os
from typing import Any, Optional

from alarmhub.domain.common.errors import ConfigurationError
from alarmhub.domain.notifications.models import UNREGISTERED, DeliveryOutcome

logger = logging.getLogger(__name__)

_APP_NAME = "alarmhub"


def load_service_account(path: str = "", inline_json: str = "") -> Optional[Any]:
    """
    Resolve Firebase service account credentials.

    Order: explicit file path, then inline JSON (raw or base64-encoded, for PaaS env vars
    where a key file cannot be uploaded), then GOOGLE_APPLICATION_CREDENTIALS.
    Returns a dict for inline JSON, a path string otherwise, or None.
    """
    if path:
        return path
    raw = (inline_json or "").strip()
    if raw:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            try:
                data = json.loads(base64.b64decode(raw).decode("utf-8"))
            except (ValueError, UnicodeDecodeError) as e:
                raise ConfigurationError("GOOGLE_APPLICATION_CREDENTIALS_JSON is neither JSON nor base64 JSON") from e
        if not isinstance(data, dict):
            raise ConfigurationError("GOOGLE_APPLICATION_CREDENTIALS_JSON is not a JSON object")
        return data
    return os.environ.get("GOOGLE_APPLICATION_CREDENTIALS") or None


class FcmPushSink:
    """Sends one message per token through firebase_admin.messaging."""

    def __init__(self, credentials_path: str = "", credentials_json: str = "", http_timeout: float = 8.0):
        self._credentials_path = credentials_path
        self._credentials_json = credentials_json
        self._http_timeout = http_timeout
        self._app = None

    def _get_app(self):
        """Lazy-init a named Firebase app so the default app stays free for other callers."""
        if self._app is not None:
            return self._app
        source = load_service_account(self._credentials_path, self._credentials_json)
        if source is None:
            raise ConfigurationError("Push enabled but no Firebase credentials configured")
        import firebase_admin
        from firebase_admin import credentials

        try:
            self._app = firebase_admin.get_app(_APP_NAME)
        except ValueError:
            try:
                self._app = firebase_admin.initialize_app(
                    credentials.Certificate(source),
                    options={"httpTimeout": self._http_timeout},
                    name=_APP_NAME,
                )
            except (ValueError, IOError) as e:
                raise ConfigurationError(f"Firebase init failed: {e}") from e
            logger.info("Firebase app initialized for push delivery")
        return self._app

    def check_configured(self) -> None:
        self._get_app()

    async def send(self, token: str, title: str, body: str, data: dict[str, str]) -> DeliveryOutcome:
        from firebase_admin import exceptions, messaging

        app = self._get_app()
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=data,
            token=token,
            android=messaging.AndroidConfig(priority="high"),
        )
        try:
            message_id = await asyncio.to_thread(messaging.send, message, app=app)
        except messaging.UnregisteredError:
            return DeliveryOutcome(delivered=False, error_reason=UNREGISTERED)
        except exceptions.FirebaseError as e:
            return DeliveryOutcome(delivered=False, error_reason=e.code or str(e))
        return DeliveryOutcome(delivered=True, message_id=message_id)


def build_push_sink(settings) -> Optional[FcmPushSink]:
    """FCM sink from settings, or None when push is disabled."""
    if not settings.push_enabled:
        return None
    return FcmPushSink(
        credentials_path=settings.google_application_credentials,
        credentials_json=settings.google_application_credentials_json,
        http_timeout=settings.push_timeout_seconds,
    )
