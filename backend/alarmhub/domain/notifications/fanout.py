"""Notification fan-out: one notification to every registered token of an account."""
import asyncio
import logging
from typing import Optional

from alarmhub.domain.common.errors import UpstreamDeliveryError
from alarmhub.domain.notifications.models import (
    TIMEOUT,
    DeliveryFailure,
    FanoutResult,
    NotificationPayload,
)
from alarmhub.domain.notifications.repositories import PushSink, PushTokenRepository

logger = logging.getLogger(__name__)


class NotificationFanout:
    """Best-effort delivery with bounded concurrency and a per-token timeout.

    A failing or slow token never blocks the others beyond its own timeout. Nothing is
    retried. Only a provider that cannot be used at all (ConfigurationError from the
    sink) escapes; per-token failures are counted in the result.
    """

    def __init__(
        self,
        token_repo: PushTokenRepository,
        sink: Optional[PushSink],
        timeout_seconds: float = 8.0,
        max_concurrency: int = 8,
        prune_unregistered: bool = True,
    ):
        self.token_repo = token_repo
        self.sink = sink
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max(1, max_concurrency)
        self.prune_unregistered = prune_unregistered

    async def notify_account(self, account_code: str, payload: NotificationPayload) -> FanoutResult:
        if self.sink is None:
            logger.info("Push disabled; skipping notification '%s' for %s", payload.title, account_code)
            return FanoutResult(skipped_reason="push_disabled")

        tokens = await self.token_repo.list_tokens(account_code)
        if not tokens:
            logger.info("No push tokens registered for account %s", account_code)
            return FanoutResult()

        self.sink.check_configured()

        semaphore = asyncio.Semaphore(self.max_concurrency)
        data = {k: str(v) for k, v in payload.data.items() if v is not None}

        async def deliver(token: str) -> Optional[DeliveryFailure]:
            async with semaphore:
                try:
                    outcome = await asyncio.wait_for(
                        self.sink.send(token, payload.title, payload.body, data),
                        timeout=self.timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    return self._failed(token, TIMEOUT)
                except UpstreamDeliveryError as e:
                    return self._failed(token, e.reason)
                except Exception as e:
                    logger.exception("Unexpected push error for token %s...", token[:10])
                    return self._failed(token, str(e) or type(e).__name__)
            if outcome.delivered:
                logger.debug("Push delivered to token %s...", token[:10])
                return None
            return self._failed(token, outcome.error_reason or "rejected")

        failures = await asyncio.gather(*(deliver(t) for t in tokens))

        result = FanoutResult(attempted=len(tokens))
        result.failures = [f for f in failures if f is not None]
        result.failed = len(result.failures)
        result.succeeded = result.attempted - result.failed

        if self.prune_unregistered and result.unregistered_tokens:
            result.pruned_tokens = await self.token_repo.delete_tokens(result.unregistered_tokens)
            logger.info("Pruned %d unregistered push tokens for %s", result.pruned_tokens, account_code)

        logger.info(
            "Fan-out '%s' to %s: attempted=%d succeeded=%d failed=%d",
            payload.title, account_code, result.attempted, result.succeeded, result.failed,
        )
        return result

    @staticmethod
    def _failed(token: str, reason: str) -> DeliveryFailure:
        logger.warning("Push to token %s... failed: %s", token[:10], reason)
        return DeliveryFailure(token=token, reason=reason)
