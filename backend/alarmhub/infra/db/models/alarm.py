"""Alarm event database model."""
from sqlalchemy import Boolean, Column, DateTime, Float, Index, String

from alarmhub.domain.common.types import utcnow
from alarmhub.infra.db.base import Base, JSONType


class AlarmModel(Base):
    """One alarm occurrence. Append-only apart from acknowledgement."""

    __tablename__ = "alarms"
    __table_args__ = (Index("ix_alarms_device_timestamp", "device_id", "timestamp"),)

    id = Column(String, primary_key=True)
    device_id = Column(String(128), nullable=False, index=True)
    account_code = Column(String(32), nullable=False, index=True)
    smoke = Column(Boolean, nullable=False, default=False)
    temperature = Column(Float, nullable=True)
    battery_ok = Column(Boolean, nullable=True)
    alarm_type = Column(String(16), nullable=False, default="smoke")  # smoke | test
    location = Column(String(255), nullable=True)
    acknowledged = Column(Boolean, nullable=False, default=False)
    acknowledged_by = Column(String(255), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    raw_data = Column(JSONType, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
