"""Incident models - degradation events shown on status pages."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Table, Text, Enum
from sqlalchemy.orm import relationship

from ..database import Base
from .enums import IncidentStatus, IncidentImpact, enum_column_values


# Junction table for many-to-many relationship between incidents and monitors
incident_monitors = Table(
    "incident_monitors",
    Base.metadata,
    Column("incident_id", String(36), ForeignKey("incidents.id", ondelete="CASCADE"), primary_key=True),
    Column("monitor_id", String(36), ForeignKey("monitors.id", ondelete="CASCADE"), primary_key=True, index=True),
)


def _status_column(**kwargs):
    return Column(
        Enum(IncidentStatus, native_enum=False, length=16, values_callable=enum_column_values),
        **kwargs,
    )


class Incident(Base):
    """An incident on a status page, opened manually or by the correlator."""

    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status_page_id = Column(String(36), ForeignKey("status_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    status = _status_column(default=IncidentStatus.INVESTIGATING, nullable=False)
    impact = Column(
        Enum(IncidentImpact, native_enum=False, length=16, values_callable=enum_column_values),
        default=IncidentImpact.MINOR,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    resolved_at = Column(DateTime, nullable=True)

    # Relationships
    status_page = relationship("StatusPage", back_populates="incidents")
    updates = relationship(
        "IncidentUpdate",
        back_populates="incident",
        cascade="all, delete-orphan",
        order_by="IncidentUpdate.created_at",
    )
    monitors = relationship("Monitor", secondary=incident_monitors)


class IncidentUpdate(Base):
    """Append-only message attached to an incident."""

    __tablename__ = "incident_updates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    incident_id = Column(String(36), ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    status = _status_column(nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    incident = relationship("Incident", back_populates="updates")
