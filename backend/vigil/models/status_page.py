"""Status page models - public views over a set of monitors."""
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from ..database import Base


class StatusPage(Base):
    """A public status page owned by a user."""

    __tablename__ = "status_pages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    monitor_links = relationship(
        "StatusPageMonitor",
        back_populates="status_page",
        cascade="all, delete-orphan",
        order_by="StatusPageMonitor.display_order",
    )
    incidents = relationship("Incident", back_populates="status_page", cascade="all, delete-orphan")


class StatusPageMonitor(Base):
    """Link between a status page and one of its monitors."""

    __tablename__ = "status_page_monitors"

    status_page_id = Column(String(36), ForeignKey("status_pages.id", ondelete="CASCADE"), primary_key=True)
    monitor_id = Column(String(36), ForeignKey("monitors.id", ondelete="CASCADE"), primary_key=True, index=True)
    display_order = Column(Integer, default=0, nullable=False)

    status_page = relationship("StatusPage", back_populates="monitor_links")
