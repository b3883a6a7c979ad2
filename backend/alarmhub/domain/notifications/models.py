"""Notification contracts."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

# Sink error reason for tokens the provider no longer knows about
UNREGISTERED = "unregistered"
TIMEOUT = "timeout"


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one `send` call on the push sink."""
    delivered: bool
    error_reason: Optional[str] = None
    message_id: Optional[str] = None

    @property
    def unregistered(self) -> bool:
        return self.error_reason == UNREGISTERED


@dataclass(frozen=True)
class DeliveryFailure:
    token: str
    reason: str


@dataclass
class FanoutResult:
    """Aggregate counts of one fan-out call."""
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: list[DeliveryFailure] = field(default_factory=list)
    pruned_tokens: int = 0
    skipped_reason: Optional[str] = None

    @property
    def unregistered_tokens(self) -> list[str]:
        return [f.token for f in self.failures if f.reason == UNREGISTERED]

    def as_dict(self) -> dict:
        out = {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }
        if self.skipped_reason:
            out["skipped"] = self.skipped_reason
        return out
