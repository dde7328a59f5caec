"""Incident correlator - opens automatic incidents for failing monitors.

For every non-success outcome the correlator looks up the status pages the
monitor is shown on and opens one `investigating` incident per page, unless a
non-resolved incident already links that page and monitor. It never resolves
incidents; that is a manual action.

Each monitor is correlated in its own transaction. The status page row is
locked before the existing-incident lookup, so two correlators racing on the
same page serialize on PostgreSQL; on SQLite writes are serialized anyway.
A failure while correlating one monitor is logged and does not stop the rest.
"""
import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import async_session
from ..models import Incident, IncidentImpact, IncidentStatus, OutcomeKind
from ..schemas.monitor import EndpointConfig
from ..utils.db_utils import retry_on_lock
from .checker import CheckResult
from .store import MonitorStore

logger = logging.getLogger(__name__)


def impact_for(kind: OutcomeKind) -> IncidentImpact:
    """Error outcomes are major; timeouts and status mismatches are minor."""
    if kind is OutcomeKind.ERROR:
        return IncidentImpact.MAJOR
    if kind in (OutcomeKind.FAILURE, OutcomeKind.TIMEOUT):
        return IncidentImpact.MINOR
    raise ValueError(f"No incident impact for outcome {kind.value}")


def incident_title(endpoint: EndpointConfig, kind: OutcomeKind) -> str:
    return f"{endpoint.name} is {kind.value}"


def incident_message(endpoint: EndpointConfig, result: CheckResult) -> str:
    message = f"Automated alert: {endpoint.name} check returned {result.status.value}."
    if result.error_message:
        message += f" Details: {result.error_message}"
    return message


class IncidentCorrelator:
    """Creates and deduplicates automatic incidents."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.session_factory = session_factory or async_session

    async def correlate(
        self,
        endpoints: Iterable[EndpointConfig],
        results: Sequence[CheckResult],
    ) -> List[Incident]:
        """Process a whole batch. Returns the incidents created."""
        by_id = {endpoint.id: endpoint for endpoint in endpoints}
        created: List[Incident] = []

        for result in results:
            if result.status.is_success:
                continue

            endpoint = by_id.get(result.monitor_id)
            if endpoint is None:
                logger.warning(f"No configuration for monitor {result.monitor_id}, skipping correlation")
                continue

            try:
                created.extend(await self._correlate_one(endpoint, result))
            except Exception as e:
                logger.error(f"Error correlating incident for monitor {endpoint.id}: {e}")

        if created:
            logger.info(f"Opened {len(created)} automatic incident(s)")
        return created

    async def _correlate_one(self, endpoint: EndpointConfig, result: CheckResult) -> List[Incident]:
        async with self.session_factory() as session:
            try:
                created = await self._open_incidents(session, endpoint, result)
                await retry_on_lock(session.commit)
            except Exception:
                await session.rollback()
                raise
        return created

    async def _open_incidents(
        self,
        session: AsyncSession,
        endpoint: EndpointConfig,
        result: CheckResult,
    ) -> List[Incident]:
        store = MonitorStore(session)
        pages = await store.find_linked_status_pages(endpoint.id)
        if not pages:
            return []

        created = []
        for status_page_id, owner_id in pages:
            await store.lock_status_page(status_page_id)

            existing = await store.find_active_incident(status_page_id, endpoint.id)
            if existing is not None:
                logger.debug(
                    f"Incident {existing.id} already open for monitor {endpoint.id} on page {status_page_id}"
                )
                continue

            incident = await store.create_incident(
                user_id=owner_id,
                status_page_id=status_page_id,
                title=incident_title(endpoint, result.status),
                impact=impact_for(result.status),
            )
            await store.create_incident_update(
                incident.id,
                incident_message(endpoint, result),
                IncidentStatus.INVESTIGATING,
            )
            await store.link_endpoint_to_incident(incident.id, endpoint.id)
            created.append(incident)
            logger.info(f"Opened incident '{incident.title}' on status page {status_page_id}")

        return created
