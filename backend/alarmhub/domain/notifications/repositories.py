"""Notification domain repository and sink protocols."""
from typing import List, Optional, Protocol

from alarmhub.domain.notifications.models import DeliveryOutcome


class PushTokenRepository(Protocol):
    async def list_tokens(self, account_code: str) -> List[str]:
        ...

    async def delete_tokens(self, tokens: List[str]) -> int:
        ...


class PushSink(Protocol):
    """External push delivery. Must be safe to call concurrently per token."""

    def check_configured(self) -> None:
        """Raise ConfigurationError when the provider cannot be reached at all."""
        ...

    async def send(
        self, token: str, title: str, body: str, data: Optional[dict[str, str]] = None
    ) -> DeliveryOutcome:
        ...
