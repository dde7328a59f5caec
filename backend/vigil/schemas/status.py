"""Public status page schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from ..models.enums import IncidentImpact, IncidentStatus


class DailyStatus(BaseModel):
    """Aggregated outcomes for one calendar day (UTC)."""
    date: str
    status: str  # success, degraded, failure
    total: int
    successful: int
    failures: int


class PublicMonitor(BaseModel):
    """A monitor as shown on a public status page."""
    id: str
    name: str
    display_order: int
    current_status: str  # operational, down, unknown
    latest_response_time: Optional[int] = None
    latest_checked_at: Optional[datetime] = None
    uptime_percent: Optional[float] = None
    daily_status: List[DailyStatus] = []


class PublicIncidentUpdate(BaseModel):
    id: str
    message: str
    status: IncidentStatus
    created_at: datetime


class PublicIncident(BaseModel):
    id: str
    title: str
    status: IncidentStatus
    impact: IncidentImpact
    created_at: datetime
    updated_at: datetime
    updates: List[PublicIncidentUpdate] = []
    affected_monitors: List[str] = []


class PublicStatusPage(BaseModel):
    """Payload of the public status page endpoint."""
    id: str
    name: str
    slug: str
    monitors: List[PublicMonitor]
    active_incidents: List[PublicIncident]
