"""Database models."""
from alarmhub.infra.db.models.account import AccountModel
from alarmhub.infra.db.models.device import DeviceModel
from alarmhub.infra.db.models.device_status import DeviceStatusModel
from alarmhub.infra.db.models.alarm import AlarmModel
from alarmhub.infra.db.models.push_token import PushTokenModel

__all__ = [
    "AccountModel",
    "DeviceModel",
    "DeviceStatusModel",
    "AlarmModel",
    "PushTokenModel",
]
