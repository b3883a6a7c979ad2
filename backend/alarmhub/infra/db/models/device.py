"""Device ownership database model."""
from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from alarmhub.domain.common.types import utcnow
from alarmhub.infra.db.base import Base


class DeviceModel(Base):
    """Binding of a vendor device id to exactly one account."""

    __tablename__ = "devices"

    device_id = Column(String(128), primary_key=True)
    account_code = Column(
        String(32), ForeignKey("accounts.code", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    account = relationship("AccountModel", backref="devices")
