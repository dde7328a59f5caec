"""Uptime aggregation over stored check results."""
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..models.enums import OutcomeKind
from ..schemas.status import DailyStatus


def uptime_percent(statuses: Iterable[OutcomeKind]) -> Optional[float]:
    """Share of successful checks, rounded to 3 decimals. None without data."""
    total = 0
    successful = 0
    for status in statuses:
        total += 1
        if status.is_success:
            successful += 1
    if total == 0:
        return None
    return round(successful / total * 100, 3)


def classify_day(successful: int, failures: int) -> str:
    """Colour of one day in the uptime bar.

    No failures is success, no successes is failure; a mix is failure when
    more than half the checks failed and degraded otherwise.
    """
    if failures == 0:
        return "success"
    if successful == 0:
        return "failure"
    return "failure" if failures / (successful + failures) > 0.5 else "degraded"


def daily_status(rows: Iterable[Tuple[datetime, OutcomeKind]]) -> List[DailyStatus]:
    """Group (executed_at, status) rows by UTC day, oldest first."""
    days: "OrderedDict[str, List[int]]" = OrderedDict()
    for executed_at, status in sorted(rows, key=lambda row: row[0]):
        counts = days.setdefault(executed_at.strftime("%Y-%m-%d"), [0, 0])
        if status.is_success:
            counts[0] += 1
        else:
            counts[1] += 1

    return [
        DailyStatus(
            date=day,
            status=classify_day(successful, failures),
            total=successful + failures,
            successful=successful,
            failures=failures,
        )
        for day, (successful, failures) in days.items()
    ]


def current_status(latest: Optional[OutcomeKind]) -> str:
    if latest is None:
        return "unknown"
    return "operational" if latest.is_success else "down"
