"""Account database model (user codes)."""
from sqlalchemy import Column, DateTime, String

from alarmhub.domain.common.types import utcnow
from alarmhub.infra.db.base import Base


class AccountModel(Base):
    """Tenant identified by a short login code. Created out of band."""

    __tablename__ = "accounts"

    code = Column(String(32), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
