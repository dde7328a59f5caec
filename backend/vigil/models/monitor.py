"""Monitor model - HTTP endpoints checked on a schedule."""
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, JSON, Text, Enum
from sqlalchemy.orm import relationship

from ..database import Base
from .enums import HttpMethod, enum_column_values


class Monitor(Base):
    """A monitored HTTP endpoint and its optional third-party integrations."""

    __tablename__ = "monitors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    method = Column(
        Enum(HttpMethod, native_enum=False, length=8, values_callable=enum_column_values),
        default=HttpMethod.GET,
        nullable=False,
    )
    expected_status = Column(Integer, default=200, nullable=False)
    timeout_ms = Column(Integer, default=5000, nullable=False)
    schedule_interval = Column(Integer, default=15, nullable=False)  # minutes
    headers = Column(JSON, default=dict)
    body = Column(Text, nullable=True)
    enabled = Column(Boolean, default=True, nullable=False, index=True)

    # Statuspage.io integration
    statuspage_api_key = Column(String, nullable=True)
    statuspage_page_id = Column(String, nullable=True)
    statuspage_component_id = Column(String, nullable=True)

    # Better Stack (BetterUptime) heartbeat integration
    betteruptime_heartbeat_url = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="monitors")
    results = relationship("MonitorResult", back_populates="monitor", cascade="all, delete-orphan")
