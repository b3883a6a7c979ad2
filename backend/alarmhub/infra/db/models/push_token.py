"""Push token database model."""
from sqlalchemy import Column, DateTime, ForeignKey, String

from alarmhub.domain.common.types import utcnow
from alarmhub.infra.db.base import Base, JSONType


class PushTokenModel(Base):
    """Registered client for push notifications. The token is the natural key."""

    __tablename__ = "push_tokens"

    token = Column(String(512), primary_key=True)
    account_code = Column(
        String(32), ForeignKey("accounts.code", ondelete="CASCADE"), nullable=False, index=True
    )
    platform = Column(String(16), nullable=True)  # 'ios', 'android' or 'web'
    device_info = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
