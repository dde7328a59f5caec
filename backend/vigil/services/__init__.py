"""Services for checking, correlating, notifying and scheduling."""
from .checker import CheckerService, CheckResult
from .correlator import IncidentCorrelator
from .notifier import NotificationDispatcher
from .retention import RetentionService
from .scheduler import BatchRunner, BatchSummary, SchedulerService
from .store import MonitorStore

__all__ = [
    "CheckerService",
    "CheckResult",
    "IncidentCorrelator",
    "NotificationDispatcher",
    "RetentionService",
    "BatchRunner",
    "BatchSummary",
    "SchedulerService",
    "MonitorStore",
]
