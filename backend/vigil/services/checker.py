"""Checker service - performs one HTTP probe and classifies the outcome."""
import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

import httpx

from ..models.enums import OutcomeKind
from ..schemas.monitor import EndpointConfig

USER_AGENT = "Vigil/1.0 (Cron Monitor)"


@dataclass(frozen=True)
class CheckResult:
    """Result of a monitoring check."""
    monitor_id: str
    status: OutcomeKind
    response_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    executed_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def probe_failed(cls, monitor_id: str, exc: BaseException) -> "CheckResult":
        """Outcome for a probe that raised instead of returning."""
        return cls(
            monitor_id=monitor_id,
            status=OutcomeKind.ERROR,
            error_message=str(exc) or "Probe failed",
        )


class CheckerService:
    """Service for performing HTTP endpoint checks."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._transport = transport
        self._clock = clock

    def _build_headers(self, endpoint: EndpointConfig) -> httpx.Headers:
        """Default identifying header, overridden by configured headers."""
        headers = httpx.Headers({"User-Agent": USER_AGENT})
        headers.update(endpoint.headers or {})
        return headers

    async def _send(self, endpoint: EndpointConfig) -> httpx.Response:
        content = endpoint.body if endpoint.method.carries_body else None
        async with httpx.AsyncClient(
            timeout=endpoint.timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            return await client.request(
                endpoint.method.value,
                endpoint.url,
                headers=self._build_headers(endpoint),
                content=content,
            )

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    async def check(self, endpoint: EndpointConfig) -> CheckResult:
        """Perform one HTTP check.

        The whole request is bounded by the endpoint's timeout. Every failure
        mode becomes a CheckResult; nothing is raised to the caller.
        """
        if endpoint.config_error:
            return CheckResult(
                monitor_id=endpoint.id,
                status=OutcomeKind.ERROR,
                error_message=endpoint.config_error,
            )

        start = self._clock()
        try:
            response = await asyncio.wait_for(self._send(endpoint), timeout=endpoint.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return CheckResult(
                monitor_id=endpoint.id,
                status=OutcomeKind.TIMEOUT,
                response_time_ms=self._elapsed_ms(start),
                error_message=f"Request timed out after {endpoint.timeout_ms}ms",
            )
        except Exception as e:
            return CheckResult(
                monitor_id=endpoint.id,
                status=OutcomeKind.ERROR,
                response_time_ms=self._elapsed_ms(start),
                error_message=str(e) or type(e).__name__,
            )

        response_time = self._elapsed_ms(start)
        if response.status_code == endpoint.expected_status:
            return CheckResult(
                monitor_id=endpoint.id,
                status=OutcomeKind.SUCCESS,
                response_code=response.status_code,
                response_time_ms=response_time,
            )

        return CheckResult(
            monitor_id=endpoint.id,
            status=OutcomeKind.FAILURE,
            response_code=response.status_code,
            response_time_ms=response_time,
            error_message=f"Expected {endpoint.expected_status}, got {response.status_code}",
        )


# Global instance
checker_service = CheckerService()
