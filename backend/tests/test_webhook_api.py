"""End-to-end tests for the device event webhook."""
from sqlalchemy import func, select

from alarmhub.infra.db.models import AlarmModel, DeviceModel, DeviceStatusModel
from alarmhub.infra.db.repositories.status_repo import StatusRepository

WEBHOOK = "/webhook/device-event"


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def test_smoke_event_for_known_device(client, seed, session_factory, push_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a", "tok-b"])

    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1", "smoke": True, "temperature": 34})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["deviceId"] == "dev-1"
    assert body["adopted"] is False
    assert body["alarmId"]
    assert body["notifications"] == {"attempted": 2, "succeeded": 2, "failed": 0}

    async with session_factory() as session:
        [status] = await StatusRepository(session).get_for_account("DEMO01")
        alarms = (await session.execute(select(AlarmModel))).scalars().all()
    assert status.smoke is True
    assert status.temperature == 34.0
    assert len(alarms) == 1
    assert alarms[0].alarm_type == "smoke"
    assert alarms[0].id == body["alarmId"]
    assert sorted(push_sink.tokens) == ["tok-a", "tok-b"]


async def test_status_event_without_smoke_sends_nothing(client, seed, session_factory, push_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])

    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1", "smoke": False, "battery": 70})
    assert resp.status_code == 200
    assert resp.json()["alarmId"] is None
    assert resp.json()["notifications"] is None
    assert await _count(session_factory, AlarmModel) == 0
    assert await _count(session_factory, DeviceStatusModel) == 1
    assert push_sink.sent == []


async def test_unknown_device_is_adopted(client, seed, session_factory):
    await seed("DEMO01")

    resp = await client.post(WEBHOOK, json={"src": "shellysmoke-new", "smoke:0": {"alarm": False}})
    assert resp.status_code == 200
    assert resp.json()["adopted"] is True

    resp = await client.post(WEBHOOK, json={"src": "shellysmoke-new"})
    assert resp.json()["adopted"] is False
    assert await _count(session_factory, DeviceModel) == 1


async def test_unknown_device_without_accounts_fails_cleanly(client, session_factory):
    resp = await client.post(WEBHOOK, json={"deviceId": "unknown-dev", "smoke": True})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Device not registered and no users available"}
    for model in (DeviceModel, DeviceStatusModel, AlarmModel):
        assert await _count(session_factory, model) == 0


async def test_unknown_device_rejected_when_adoption_disabled(client, seed, app_settings):
    await seed("DEMO01")
    app_settings.auto_adopt_devices = False

    resp = await client.post(WEBHOOK, json={"deviceId": "unknown-dev"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "Device not registered"


async def test_missing_device_id_is_400(client, session_factory):
    resp = await client.post(WEBHOOK, json={"smoke": True})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Device ID is required"}
    assert await _count(session_factory, DeviceStatusModel) == 0


async def test_non_object_and_invalid_json_are_400(client):
    resp = await client.post(WEBHOOK, json=["dev-1"])
    assert resp.status_code == 400
    resp = await client.post(WEBHOOK, content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400


async def test_failed_deliveries_do_not_fail_request(client, seed, push_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a", "tok-b"])
    push_sink.script = {"tok-a": "error", "tok-b": "timeout"}

    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1", "smoke": True})
    assert resp.status_code == 200
    assert resp.json()["notifications"] == {"attempted": 2, "succeeded": 0, "failed": 2}


async def test_push_disabled_still_records_alarm(client, seed, session_factory, app_settings, push_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])
    app_settings.push_enabled = False

    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1", "smoke": True})
    assert resp.status_code == 200
    assert resp.json()["notifications"]["skipped"] == "push_disabled"
    assert await _count(session_factory, AlarmModel) == 1
    assert push_sink.sent == []


async def test_unconfigured_push_keeps_status_and_alarm(client, seed, session_factory, push_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])
    push_sink.configured = False

    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1", "smoke": True})
    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert await _count(session_factory, DeviceStatusModel) == 1
    assert await _count(session_factory, AlarmModel) == 1


async def test_battery_low_notification_is_opt_in(client, seed, app_settings, push_sink):
    await seed("DEMO01", ["dev-1"], ["tok-a"])

    await client.post(WEBHOOK, json={"deviceId": "dev-1", "battery": 10})
    assert push_sink.sent == []

    app_settings.notify_battery_low = True
    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1", "battery": 10})
    assert resp.json()["alarmId"] is None
    assert resp.json()["notifications"]["attempted"] == 1
    assert push_sink.sent[0]["data"]["type"] == "battery_low"


async def test_webhook_secret(client, seed, app_settings):
    await seed("DEMO01", ["dev-1"])
    app_settings.webhook_secret = "s3cret"

    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1"})
    assert resp.status_code == 401
    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1"}, headers={"X-Webhook-Secret": "wrong"})
    assert resp.status_code == 403
    assert resp.json()["success"] is False
    resp = await client.post(WEBHOOK, json={"deviceId": "dev-1"}, headers={"Authorization": "Bearer s3cret"})
    assert resp.status_code == 200
