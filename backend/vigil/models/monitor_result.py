"""MonitorResult model - append-only log of check outcomes."""
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship

from ..database import Base
from .enums import OutcomeKind, enum_column_values


class MonitorResult(Base):
    """Outcome of one probe - rolling history pruned by retention."""

    __tablename__ = "monitor_results"
    __table_args__ = (
        Index("results_monitor_executed_idx", "monitor_id", "executed_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    monitor_id = Column(String(36), ForeignKey("monitors.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(OutcomeKind, native_enum=False, length=16, values_callable=enum_column_values),
        nullable=False,
    )
    response_code = Column(Integer, nullable=True)
    response_time_ms = Column(Integer, nullable=True)
    error_message = Column(String, nullable=True)
    executed_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    monitor = relationship("Monitor", back_populates="results")
