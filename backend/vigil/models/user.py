"""User model - owner of monitors, status pages and incidents."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.orm import relationship

from ..database import Base
from .enums import Plan, enum_column_values


class User(Base):
    """Account owning monitoring resources."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    plan = Column(
        Enum(Plan, native_enum=False, length=16, values_callable=enum_column_values),
        default=Plan.FREE,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    monitors = relationship("Monitor", back_populates="user", cascade="all, delete-orphan")
