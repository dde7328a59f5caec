"""Monitor schemas."""
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field, model_validator

from ..models.enums import HttpMethod, OutcomeKind, Plan, PLAN_MAX_TIMEOUT_MS


class EndpointConfig(BaseModel):
    """Immutable snapshot of a monitor taken at batch start."""
    id: str
    user_id: str
    name: str
    url: str
    method: HttpMethod = HttpMethod.GET
    expected_status: int = Field(default=200, ge=100, le=599)
    timeout_ms: int = Field(default=5000, gt=0)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    enabled: bool = True
    plan: Plan = Plan.FREE

    statuspage_api_key: Optional[str] = None
    statuspage_page_id: Optional[str] = None
    statuspage_component_id: Optional[str] = None
    betteruptime_heartbeat_url: Optional[str] = None

    # Set when the stored row could not be validated; such endpoints are never sent
    config_error: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode="after")
    def _timeout_within_plan(self):
        limit = PLAN_MAX_TIMEOUT_MS[self.plan]
        if self.timeout_ms > limit:
            raise ValueError(f"timeout_ms {self.timeout_ms} exceeds {self.plan.value} plan limit of {limit}ms")
        return self

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def has_statuspage(self) -> bool:
        return bool(self.statuspage_api_key and self.statuspage_page_id and self.statuspage_component_id)

    @property
    def has_betteruptime(self) -> bool:
        return bool(self.betteruptime_heartbeat_url)


class MonitorResultResponse(BaseModel):
    """One stored check outcome."""
    id: str
    monitor_id: str
    status: OutcomeKind
    response_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    executed_at: datetime

    class Config:
        from_attributes = True


class CheckRunResponse(BaseModel):
    """Response from a batch trigger."""
    success: bool = True
    checked: int
    timestamp: datetime
