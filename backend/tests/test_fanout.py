"""Tests for notification fan-out."""
import pytest

from alarmhub.domain.common.errors import ConfigurationError
from alarmhub.domain.notifications import messages
from alarmhub.domain.notifications.fanout import NotificationFanout
from alarmhub.domain.notifications.models import TIMEOUT, UNREGISTERED
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository

PAYLOAD = messages.build_notification(messages.FIRE_ALARM, "dev-1", alarm_id="alarm-1", temperature=34.0)


def _fanout(session, sink, **kwargs):
    kwargs.setdefault("timeout_seconds", 0.2)
    return NotificationFanout(PushTokenRepository(session), sink, **kwargs)


async def test_all_tokens_succeed(db_session, seed, make_sink):
    await seed("DEMO01", tokens=["tok-a", "tok-b", "tok-c"])
    sink = make_sink()
    result = await _fanout(db_session, sink).notify_account("DEMO01", PAYLOAD)

    assert (result.attempted, result.succeeded, result.failed) == (3, 3, 0)
    assert sorted(sink.tokens) == ["tok-a", "tok-b", "tok-c"]
    sent = sink.sent[0]
    assert sent["title"] == "🚨 BRANDLARM!"
    assert sent["data"]["type"] == messages.FIRE_ALARM
    assert sent["data"]["deviceId"] == "dev-1"
    assert sent["data"]["alarmId"] == "alarm-1"
    assert all(isinstance(v, str) for v in sent["data"].values())


async def test_partial_failures_are_counted(db_session, seed, make_sink):
    await seed("DEMO01", tokens=["tok-a", "tok-b", "tok-c", "tok-d"])
    sink = make_sink({"tok-b": "timeout", "tok-c": "error", "tok-d": "invalid-argument"})
    result = await _fanout(db_session, sink).notify_account("DEMO01", PAYLOAD)

    assert (result.attempted, result.succeeded, result.failed) == (4, 1, 3)
    reasons = {f.token: f.reason for f in result.failures}
    assert reasons["tok-b"] == TIMEOUT
    assert reasons["tok-c"] == "connection reset"
    assert reasons["tok-d"] == "invalid-argument"


async def test_total_failure_does_not_raise(db_session, seed, make_sink):
    await seed("DEMO01", tokens=["tok-a", "tok-b"])
    sink = make_sink({"tok-a": "error", "tok-b": "timeout"})
    result = await _fanout(db_session, sink).notify_account("DEMO01", PAYLOAD)
    assert (result.attempted, result.succeeded, result.failed) == (2, 0, 2)


async def test_no_tokens_means_zero_attempts(db_session, seed, make_sink):
    await seed("DEMO01")
    sink = make_sink()
    result = await _fanout(db_session, sink).notify_account("DEMO01", PAYLOAD)
    assert result.attempted == 0
    assert sink.sent == []


async def test_unregistered_tokens_are_pruned(db_session, seed, make_sink):
    await seed("DEMO01", tokens=["tok-a", "tok-gone"])
    sink = make_sink({"tok-gone": UNREGISTERED})
    result = await _fanout(db_session, sink).notify_account("DEMO01", PAYLOAD)

    assert result.pruned_tokens == 1
    assert await PushTokenRepository(db_session).list_tokens("DEMO01") == ["tok-a"]


async def test_pruning_can_be_disabled(db_session, seed, make_sink):
    await seed("DEMO01", tokens=["tok-a", "tok-gone"])
    sink = make_sink({"tok-gone": UNREGISTERED})
    result = await _fanout(db_session, sink, prune_unregistered=False).notify_account("DEMO01", PAYLOAD)

    assert result.pruned_tokens == 0
    assert len(await PushTokenRepository(db_session).list_tokens("DEMO01")) == 2


async def test_concurrency_is_bounded(db_session, seed):
    import asyncio

    from alarmhub.domain.notifications.models import DeliveryOutcome

    class CountingSink:
        def __init__(self):
            self.active = 0
            self.peak = 0

        def check_configured(self):
            pass

        async def send(self, token, title, body, data=None):
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return DeliveryOutcome(delivered=True)

    await seed("DEMO01", tokens=[f"tok-{i}" for i in range(10)])
    sink = CountingSink()
    result = await _fanout(db_session, sink, max_concurrency=3).notify_account("DEMO01", PAYLOAD)
    assert result.succeeded == 10
    assert sink.peak <= 3


async def test_disabled_push_skips(db_session, seed):
    await seed("DEMO01", tokens=["tok-a"])
    result = await _fanout(db_session, None).notify_account("DEMO01", PAYLOAD)
    assert result.attempted == 0
    assert result.as_dict()["skipped"] == "push_disabled"


async def test_unconfigured_provider_raises(db_session, seed, make_sink):
    await seed("DEMO01", tokens=["tok-a"])
    with pytest.raises(ConfigurationError):
        await _fanout(db_session, make_sink(configured=False)).notify_account("DEMO01", PAYLOAD)


def test_english_texts():
    payload = messages.build_notification(messages.TEST_ALARM, "dev-9", locale="en")
    assert payload.title == "✅ Test alarm"
    assert "dev-9" in payload.body
