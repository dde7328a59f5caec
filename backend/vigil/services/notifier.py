"""Notifier service - best-effort third-party status integrations."""
import logging
from typing import Optional

import httpx

from ..config import settings
from ..models.enums import OutcomeKind
from ..schemas.monitor import EndpointConfig
from ..utils.background import BackgroundTasks
from .checker import CheckResult

logger = logging.getLogger(__name__)

STATUSPAGE_API_BASE = "https://api.statuspage.io/v1"

# Statuspage.io component status per outcome
COMPONENT_STATUS = {
    OutcomeKind.SUCCESS: "operational",
    OutcomeKind.FAILURE: "degraded_performance",
    OutcomeKind.TIMEOUT: "partial_outage",
    OutcomeKind.ERROR: "major_outage",
}


def betteruptime_fail_url(heartbeat_url: str) -> str:
    """Heartbeat URL with a single trailing /fail segment."""
    return heartbeat_url.rstrip("/") + "/fail"


class NotificationDispatcher:
    """Sends check outcomes to the integrations configured on each monitor.

    dispatch() never waits for delivery; calls run as background tasks whose
    failures are only logged.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        tasks: Optional[BackgroundTasks] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.notification_timeout_seconds
        self._transport = transport
        self.tasks = tasks or BackgroundTasks("notifications")

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, **kwargs)

    def dispatch(self, endpoint: EndpointConfig, result: CheckResult) -> int:
        """Schedule one call per configured integration. Returns calls scheduled."""
        scheduled = 0
        if endpoint.has_statuspage:
            self.tasks.spawn(
                self.notify_statuspage(endpoint, result),
                f"Statuspage notification for {endpoint.id}",
            )
            scheduled += 1
        if endpoint.has_betteruptime:
            self.tasks.spawn(
                self.notify_betteruptime(endpoint, result),
                f"BetterUptime notification for {endpoint.id}",
            )
            scheduled += 1
        return scheduled

    async def notify_betteruptime(self, endpoint: EndpointConfig, result: CheckResult):
        """Heartbeat on success, report failure otherwise."""
        url = endpoint.betteruptime_heartbeat_url
        if not url:
            return

        async with self._client() as client:
            if result.status.is_success:
                response = await client.get(url)
            else:
                response = await client.post(
                    betteruptime_fail_url(url),
                    content=result.error_message or f"Check failed with status: {result.status.value}",
                    headers={"Content-Type": "text/plain"},
                )
        response.raise_for_status()
        logger.debug(f"BetterUptime notified for {endpoint.name}: {result.status.value}")

    async def notify_statuspage(self, endpoint: EndpointConfig, result: CheckResult):
        """Update the component status and open an incident on failure."""
        if not endpoint.has_statuspage:
            return

        component_status = COMPONENT_STATUS[result.status]
        page_url = f"{STATUSPAGE_API_BASE}/pages/{endpoint.statuspage_page_id}"
        headers = {
            "Authorization": f"OAuth {endpoint.statuspage_api_key}",
            "Content-Type": "application/json",
        }

        async with self._client(headers=headers) as client:
            response = await client.put(
                f"{page_url}/components/{endpoint.statuspage_component_id}",
                json={"component": {"status": component_status}},
            )
            response.raise_for_status()

            if result.status.is_success:
                return

            response = await client.post(
                f"{page_url}/incidents",
                json={
                    "incident": {
                        "name": f"{endpoint.name} - {result.status.value}",
                        "status": "investigating",
                        "body": result.error_message or f"Monitor check returned {result.status.value}",
                        "component_ids": [endpoint.statuspage_component_id],
                        "components": {endpoint.statuspage_component_id: component_status},
                    }
                },
            )
            response.raise_for_status()
        logger.info(f"Statuspage incident opened for {endpoint.name}: {result.status.value}")
