"""Database models."""
from .enums import OutcomeKind, IncidentStatus, IncidentImpact, HttpMethod, Plan
from .user import User
from .monitor import Monitor
from .monitor_result import MonitorResult
from .status_page import StatusPage, StatusPageMonitor
from .incident import Incident, IncidentUpdate, incident_monitors

__all__ = [
    "OutcomeKind",
    "IncidentStatus",
    "IncidentImpact",
    "HttpMethod",
    "Plan",
    "User",
    "Monitor",
    "MonitorResult",
    "StatusPage",
    "StatusPageMonitor",
    "Incident",
    "IncidentUpdate",
    "incident_monitors",
]
