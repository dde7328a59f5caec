"""Pydantic schemas for API request/response models."""
from .monitor import (
    EndpointConfig,
    MonitorResultResponse,
    CheckRunResponse,
)
from .status import (
    DailyStatus,
    PublicMonitor,
    PublicIncident,
    PublicIncidentUpdate,
    PublicStatusPage,
)

__all__ = [
    "EndpointConfig",
    "MonitorResultResponse",
    "CheckRunResponse",
    "DailyStatus",
    "PublicMonitor",
    "PublicIncident",
    "PublicIncidentUpdate",
    "PublicStatusPage",
]
