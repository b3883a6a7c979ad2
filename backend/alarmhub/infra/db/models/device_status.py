"""Device status snapshot database model."""
from sqlalchemy import Boolean, Column, DateTime, Float, String

from alarmhub.domain.common.types import utcnow
from alarmhub.infra.db.base import Base, JSONType


class DeviceStatusModel(Base):
    """Last-known state of a device. One row per device, replaced on every event."""

    __tablename__ = "device_status"

    device_id = Column(String(128), primary_key=True)
    account_code = Column(String(32), nullable=False, index=True)
    online = Column(Boolean, nullable=False, default=True)
    smoke = Column(Boolean, nullable=False, default=False)
    temperature = Column(Float, nullable=True)
    battery_level = Column(Float, nullable=True)
    battery_ok = Column(Boolean, nullable=True)
    signal_strength = Column(Float, nullable=True)
    last_seen = Column(DateTime(timezone=True), nullable=True)
    raw_data = Column(JSONType, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
