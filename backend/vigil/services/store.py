"""Persistence operations used by the check engine."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from pydantic import ValidationError
from sqlalchemy import select, delete, insert, and_
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    Monitor,
    MonitorResult,
    User,
    StatusPage,
    StatusPageMonitor,
    Incident,
    IncidentUpdate,
    IncidentStatus,
    IncidentImpact,
    incident_monitors,
)
from ..models.enums import PLAN_MAX_TIMEOUT_MS
from ..schemas.monitor import EndpointConfig
from .checker import CheckResult

logger = logging.getLogger(__name__)


class MonitorStore:
    """Read/write interface over one session.

    Methods flush but never commit; transaction boundaries belong to the caller.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_enabled_endpoints(self) -> List[EndpointConfig]:
        """Snapshot every enabled monitor, with its owner's plan."""
        result = await self.session.execute(
            select(Monitor, User.plan)
            .join(User, User.id == Monitor.user_id)
            .where(Monitor.enabled.is_(True))
            .order_by(Monitor.created_at, Monitor.id)
        )

        endpoints = []
        for monitor, plan in result.all():
            fields = {
                "id": monitor.id,
                "user_id": monitor.user_id,
                "name": monitor.name,
                "url": monitor.url,
                "method": monitor.method,
                "expected_status": monitor.expected_status,
                "timeout_ms": monitor.timeout_ms,
                "headers": monitor.headers or {},
                "body": monitor.body,
                "enabled": monitor.enabled,
                "plan": plan,
                "statuspage_api_key": monitor.statuspage_api_key,
                "statuspage_page_id": monitor.statuspage_page_id,
                "statuspage_component_id": monitor.statuspage_component_id,
                "betteruptime_heartbeat_url": monitor.betteruptime_heartbeat_url,
            }

            # Owners downgraded to a smaller plan keep their monitors, capped at the plan limit
            limit = PLAN_MAX_TIMEOUT_MS[plan]
            if monitor.timeout_ms is not None and monitor.timeout_ms > limit:
                logger.warning(
                    f"Monitor {monitor.id} timeout {monitor.timeout_ms}ms exceeds {plan.value} plan limit, using {limit}ms"
                )
                fields["timeout_ms"] = limit

            try:
                endpoints.append(EndpointConfig.model_validate(fields))
            except ValidationError as e:
                # Still checked: the checker reports it as an error outcome
                logger.warning(f"Monitor {monitor.id} has invalid configuration: {e}")
                endpoints.append(EndpointConfig.model_construct(
                    **fields,
                    config_error=f"Invalid monitor configuration: {e.errors()[0]['msg']}",
                ))
        return endpoints

    async def insert_outcomes(self, results: Sequence[CheckResult]) -> None:
        """Append check outcomes in one bulk insert."""
        if not results:
            return

        await self.session.execute(
            insert(MonitorResult),
            [
                {
                    "monitor_id": r.monitor_id,
                    "status": r.status,
                    "response_code": r.response_code,
                    "response_time_ms": r.response_time_ms,
                    "error_message": r.error_message,
                    "executed_at": r.executed_at,
                }
                for r in results
            ],
        )

    async def delete_outcomes_older_than(self, cutoff: datetime) -> int:
        """Delete outcomes executed at or before cutoff. Returns rows deleted."""
        result = await self.session.execute(
            delete(MonitorResult).where(MonitorResult.executed_at <= cutoff)
        )
        return result.rowcount or 0

    async def find_linked_status_pages(self, monitor_id: str) -> List[Tuple[str, str]]:
        """Return (status_page_id, owner_id) for every page showing the monitor."""
        result = await self.session.execute(
            select(StatusPage.id, StatusPage.user_id)
            .join(StatusPageMonitor, StatusPageMonitor.status_page_id == StatusPage.id)
            .where(StatusPageMonitor.monitor_id == monitor_id)
            .order_by(StatusPage.id)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def lock_status_page(self, status_page_id: str) -> None:
        """Take a row lock on the status page for the rest of the transaction.

        SQLite ignores FOR UPDATE; its writes are already serialized.
        """
        await self.session.execute(
            select(StatusPage.id).where(StatusPage.id == status_page_id).with_for_update()
        )

    async def find_active_incident(self, status_page_id: str, monitor_id: str) -> Optional[Incident]:
        """Non-resolved incident linked to both the page and the monitor, if any."""
        result = await self.session.execute(
            select(Incident)
            .join(incident_monitors, incident_monitors.c.incident_id == Incident.id)
            .where(
                and_(
                    Incident.status_page_id == status_page_id,
                    incident_monitors.c.monitor_id == monitor_id,
                    Incident.status != IncidentStatus.RESOLVED,
                )
            )
            .order_by(Incident.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def create_incident(
        self,
        user_id: str,
        status_page_id: str,
        title: str,
        impact: IncidentImpact,
        status: IncidentStatus = IncidentStatus.INVESTIGATING,
    ) -> Incident:
        incident = Incident(
            user_id=user_id,
            status_page_id=status_page_id,
            title=title,
            status=status,
            impact=impact,
            resolved_at=datetime.utcnow() if status == IncidentStatus.RESOLVED else None,
        )
        self.session.add(incident)
        await self.session.flush()
        return incident

    async def create_incident_update(self, incident_id: str, message: str, status: IncidentStatus) -> None:
        self.session.add(IncidentUpdate(incident_id=incident_id, message=message, status=status))
        await self.session.flush()

    async def link_endpoint_to_incident(self, incident_id: str, monitor_id: str) -> None:
        await self.session.execute(
            insert(incident_monitors).values(incident_id=incident_id, monitor_id=monitor_id)
        )
