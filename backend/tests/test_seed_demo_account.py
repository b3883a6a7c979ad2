"""Tests for the demo account seed script."""
import importlib.util
from pathlib import Path

from sqlalchemy import select

from alarmhub.infra.db.models import DeviceModel
from alarmhub.infra.db.repositories.push_token_repo import PushTokenRepository

_script = Path(__file__).parent.parent / "scripts" / "seed_demo_account.py"
_spec = importlib.util.spec_from_file_location("seed_demo_account", _script)
seed_script = importlib.util.module_from_spec(_spec)
_spec.loader.exec_module(seed_script)


async def test_seed_creates_account_devices_and_tokens(db_session):
    result = await seed_script.run_seed(db_session, "demo01", ["dev-1", "dev-2"], ["tok-a"])
    assert result["code"] == "DEMO01"
    assert result["created"] is True
    assert result["devices"] == ["dev-1", "dev-2"]
    assert await PushTokenRepository(db_session).list_tokens("DEMO01") == ["tok-a"]


async def test_seed_is_rerunnable_and_leaves_foreign_devices(db_session, seed):
    await seed("OTHER1", ["theirs"])
    await seed_script.run_seed(db_session, "DEMO01", ["dev-1"])
    result = await seed_script.run_seed(db_session, "DEMO01", ["dev-1", "theirs"])

    assert result["created"] is False
    assert result["devices"] == ["dev-1"]
    assert result["skipped_devices"] == ["theirs"]
    owners = dict((await db_session.execute(select(DeviceModel.device_id, DeviceModel.account_code))).all())
    assert owners == {"theirs": "OTHER1", "dev-1": "DEMO01"}
