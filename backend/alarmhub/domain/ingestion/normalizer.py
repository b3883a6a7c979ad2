"""
Status normalizer: turns heterogeneous Shelly payloads into one DeviceStatusUpdate.

Different device generations and firmware report the same reading under different
paths (flat `temperature`, nested `temp.tC`, Gen2 component keys like `smoke:0`).
Each field is resolved by an ordered list of extraction strategies; every strategy
is a pure function `(payload) -> value | None` and the first non-None value wins.
Supporting a new firmware means appending a strategy, not touching the pipeline.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence

from alarmhub.domain.common.errors import MalformedPayloadError
from alarmhub.domain.common.types import utcnow
from alarmhub.domain.ingestion.models import DeviceStatusUpdate

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any]
Strategy = Callable[[Payload], Any]

DEFAULT_BATTERY_LOW_THRESHOLD = 20.0


def _path(payload: Payload, *keys: str) -> Any:
    """Walk nested mappings; None when any hop is missing or not a mapping."""
    node: Any = payload
    for key in keys:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _bool_at(*keys: str) -> Strategy:
    def strategy(payload: Payload) -> Optional[bool]:
        value = _path(payload, *keys)
        return value if isinstance(value, bool) else None
    return strategy


def _number_at(*keys: str) -> Strategy:
    def strategy(payload: Payload) -> Optional[float]:
        value = _path(payload, *keys)
        # bool is an int subclass; a flag is never a reading
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)
    return strategy


def _str_at(*keys: str) -> Strategy:
    def strategy(payload: Payload) -> Optional[str]:
        value = _path(payload, *keys)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None
    return strategy


def _smoke_event(payload: Payload) -> Optional[bool]:
    if _path(payload, "event_type") == "smoke.alarm":
        return True
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None


def _timestamp_at(*keys: str) -> Strategy:
    def strategy(payload: Payload) -> Optional[datetime]:
        return _parse_timestamp(_path(payload, *keys))
    return strategy


DEVICE_ID_STRATEGIES: Sequence[Strategy] = (
    _str_at("deviceId"),
    _str_at("device_id"),
    _str_at("src"),
    _str_at("device", "id"),
)

ONLINE_STRATEGIES: Sequence[Strategy] = (
    _bool_at("online"),
    _bool_at("device", "online"),
)

SMOKE_STRATEGIES: Sequence[Strategy] = (
    _bool_at("smoke"),
    _bool_at("alarm"),
    _bool_at("smoke:0", "alarm"),
    _smoke_event,
)

TEMPERATURE_STRATEGIES: Sequence[Strategy] = (
    _number_at("temperature"),
    _number_at("temp", "tC"),
    _number_at("temperature:0", "tC"),
    _number_at("device", "temperature"),
)

BATTERY_LEVEL_STRATEGIES: Sequence[Strategy] = (
    _number_at("battery"),
    _number_at("battery_percent"),
    _number_at("battery", "percent"),
    _number_at("devicepower:0", "battery", "percent"),
)

BATTERY_LOW_STRATEGIES: Sequence[Strategy] = (
    _bool_at("battery_low"),
    _bool_at("battery", "low"),
)

SIGNAL_STRATEGIES: Sequence[Strategy] = (
    _number_at("signal"),
    _number_at("rssi"),
    _number_at("wifi", "rssi"),
)

TIMESTAMP_STRATEGIES: Sequence[Strategy] = (
    _timestamp_at("timestamp"),
    _timestamp_at("ts"),
)


def first_match(strategies: Sequence[Strategy], payload: Payload) -> Any:
    """Return the first non-None value produced by `strategies`."""
    for strategy in strategies:
        value = strategy(payload)
        if value is not None:
            return value
    return None


def extract_device_id(payload: Any) -> str:
    """Device identifier or MalformedPayloadError. The resolver's precondition."""
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError()
    device_id = first_match(DEVICE_ID_STRATEGIES, payload)
    if device_id is None:
        raise MalformedPayloadError()
    return device_id


def derive_battery_ok(
    level: Optional[float],
    battery_low: Optional[bool],
    threshold: float = DEFAULT_BATTERY_LOW_THRESHOLD,
) -> Optional[bool]:
    """OK when the level is above `threshold`; fall back to an explicit low flag."""
    if level is not None:
        return level > threshold
    if battery_low is not None:
        return not battery_low
    return None


def normalize(
    payload: Any,
    received_at: Optional[datetime] = None,
    battery_low_threshold: float = DEFAULT_BATTERY_LOW_THRESHOLD,
) -> DeviceStatusUpdate:
    """Build the canonical status update for one webhook payload.

    A webhook call implies reachability, so `online` defaults to True. Missing optional
    readings stay None. The payload's own `raw_data` object is kept as the diagnostic
    attachment when present, otherwise the whole payload is, unmodified.
    """
    device_id = extract_device_id(payload)

    online = first_match(ONLINE_STRATEGIES, payload)
    smoke = first_match(SMOKE_STRATEGIES, payload)
    temperature = first_match(TEMPERATURE_STRATEGIES, payload)
    battery_level = first_match(BATTERY_LEVEL_STRATEGIES, payload)
    battery_low = first_match(BATTERY_LOW_STRATEGIES, payload)
    signal = first_match(SIGNAL_STRATEGIES, payload)
    timestamp = first_match(TIMESTAMP_STRATEGIES, payload)

    raw_data = payload.get("raw_data")
    if not isinstance(raw_data, Mapping):
        raw_data = payload

    update = DeviceStatusUpdate(
        device_id=device_id,
        online=True if online is None else online,
        smoke=bool(smoke),
        temperature=temperature,
        battery_level=battery_level,
        battery_ok=derive_battery_ok(battery_level, battery_low, battery_low_threshold),
        signal_strength=abs(signal) if signal is not None else None,
        timestamp=timestamp or received_at or utcnow(),
        raw_data=raw_data,
    )
    logger.debug(
        "Normalized payload for %s: online=%s smoke=%s temp=%s battery=%s",
        device_id, update.online, update.smoke, update.temperature, update.battery_level,
    )
    return update
