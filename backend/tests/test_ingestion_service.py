"""Tests for the ingestion pipeline stages and their failure isolation."""
import pytest
from sqlalchemy.exc import OperationalError

from alarmhub.domain.common.errors import PersistenceError
from alarmhub.domain.ingestion.detector import AlarmDetector
from alarmhub.domain.ingestion.resolver import DeviceIdentityResolver
from alarmhub.domain.ingestion import services
from alarmhub.domain.ingestion.services import EventIngestionService
from alarmhub.domain.notifications.fanout import NotificationFanout
from alarmhub.infra.db.repositories.account_repo import AccountRepository
from alarmhub.infra.db.repositories.alarm_repo import AlarmRepository
from alarmhub.infra.db.repositories.device_repo import DeviceRepository
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository
from alarmhub.infra.db.repositories.status_repo import StatusRepository


class BrokenAlarmRepository(AlarmRepository):
    async def append(self, *args, **kwargs):
        raise OperationalError("INSERT INTO alarms", {}, Exception("disk full"))


class BrokenStatusRepository(StatusRepository):
    async def upsert(self, *args, **kwargs):
        raise OperationalError("INSERT INTO device_status", {}, Exception("disk full"))


class BrokenTokenRepository(PushTokenRepository):
    async def list_tokens(self, *args, **kwargs):
        raise OperationalError("SELECT push_tokens", {}, Exception("connection lost"))


def _service(session, sink, alarm_repo=None, status_repo=None, token_repo=None):
    return EventIngestionService(
        resolver=DeviceIdentityResolver(DeviceRepository(session), AccountRepository(session)),
        status_repo=status_repo or StatusRepository(session),
        detector=AlarmDetector(alarm_repo or AlarmRepository(session)),
        fanout=NotificationFanout(token_repo or PushTokenRepository(session), sink),
        rollback=session.rollback,
    )


async def test_alarm_write_failure_keeps_status(db_session, seed, make_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])
    sink = make_sink()
    service = _service(db_session, sink, alarm_repo=BrokenAlarmRepository(db_session))

    result = await service.ingest({"deviceId": "dev-1", "smoke": True})

    assert result.alarm is None
    assert result.warnings == ["alarm_not_recorded"]
    assert sink.sent == []
    [status] = await StatusRepository(db_session).get_for_account("DEMO01")
    assert status.smoke is True


async def test_status_write_failure_is_persistence_error(db_session, seed, make_sink):
    await seed("DEMO01", ["dev-1"])
    service = _service(db_session, make_sink(), status_repo=BrokenStatusRepository(db_session))

    with pytest.raises(PersistenceError):
        await service.ingest({"deviceId": "dev-1", "smoke": True})
    assert await AlarmRepository(db_session).list_for_account("DEMO01") == []


async def test_adoption_is_reported(db_session, seed, make_sink):
    await seed("DEMO01")
    result = await _service(db_session, make_sink()).ingest({"deviceId": "fresh-1"})
    assert result.adopted is True
    assert result.account_code == "DEMO01"
    assert result.alarm is None
    assert result.fanout is None


async def test_token_lookup_failure_keeps_status_and_alarm(db_session, seed, make_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])
    sink = make_sink()
    service = _service(db_session, sink, token_repo=BrokenTokenRepository(db_session))

    result = await service.ingest({"deviceId": "dev-1", "smoke": True})

    assert result.alarm is not None
    assert result.fanout is None
    assert result.warnings == ["notification_failed"]
    assert sink.sent == []
    [alarm] = await AlarmRepository(db_session).list_for_account("DEMO01")
    assert alarm.id == result.alarm.id
    [status] = await StatusRepository(db_session).get_for_account("DEMO01")
    assert status.smoke is True


async def test_test_alarm_rolls_back_failed_status_write_and_still_notifies(db_session, seed, make_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])
    sink = make_sink()
    rollbacks = []

    async def rollback():
        rollbacks.append(True)
        await db_session.rollback()

    service = services.TestAlarmService(
        account_repo=AccountRepository(db_session),
        device_repo=DeviceRepository(db_session),
        status_repo=BrokenStatusRepository(db_session),
        alarm_repo=AlarmRepository(db_session),
        fanout=NotificationFanout(PushTokenRepository(db_session), sink),
        rollback=rollback,
    )

    alarm, fanout = await service.trigger("DEMO01", "dev-1")

    assert rollbacks == [True]
    assert fanout.succeeded == 1
    assert sink.tokens == ["tok-a"]
    [stored] = await AlarmRepository(db_session).list_for_account("DEMO01")
    assert stored.id == alarm.id
