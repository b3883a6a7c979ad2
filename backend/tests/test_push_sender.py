"""Tests for the FCM sink wiring (no network)."""
import base64
import json

import pytest

from alarmhub.domain.common.errors import ConfigurationError
from alarmhub.infra.push.sender import FcmPushSink, build_push_sink, load_service_account
from alarmhub.settings import Settings

SERVICE_ACCOUNT = {"type": "service_account", "project_id": "demo"}


def test_disabled_push_builds_no_sink():
    assert build_push_sink(Settings(push_enabled=False)) is None


def test_enabled_push_builds_sink():
    sink = build_push_sink(Settings(push_enabled=True, push_timeout_seconds=3))
    assert isinstance(sink, FcmPushSink)


def test_credentials_path_wins():
    assert load_service_account("/etc/fcm.json", json.dumps(SERVICE_ACCOUNT)) == "/etc/fcm.json"


def test_inline_json_and_base64():
    raw = json.dumps(SERVICE_ACCOUNT)
    assert load_service_account("", raw) == SERVICE_ACCOUNT
    encoded = base64.b64encode(raw.encode()).decode()
    assert load_service_account("", encoded) == SERVICE_ACCOUNT


def test_inline_garbage_is_configuration_error():
    with pytest.raises(ConfigurationError):
        load_service_account("", "not json at all!")


def test_missing_credentials_fail_check(monkeypatch):
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
    with pytest.raises(ConfigurationError):
        FcmPushSink().check_configured()
