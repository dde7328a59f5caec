"""Closed value sets shared by models, services and schemas."""
import enum


class OutcomeKind(str, enum.Enum):
    """Classification of one probe attempt, ordered by severity."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"
    ERROR = "error"

    @property
    def severity(self) -> int:
        return _OUTCOME_SEVERITY[self]

    @property
    def is_success(self) -> bool:
        return self is OutcomeKind.SUCCESS


_OUTCOME_SEVERITY = {
    OutcomeKind.SUCCESS: 0,
    OutcomeKind.FAILURE: 1,
    OutcomeKind.TIMEOUT: 2,
    OutcomeKind.ERROR: 3,
}


class IncidentStatus(str, enum.Enum):
    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    RESOLVED = "resolved"


class IncidentImpact(str, enum.Enum):
    NONE = "none"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


class HttpMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"

    @property
    def carries_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


class Plan(str, enum.Enum):
    FREE = "free"
    PRO = "pro"


# Upper bound on a monitor's timeout per plan, milliseconds
PLAN_MAX_TIMEOUT_MS = {
    Plan.FREE: 15_000,
    Plan.PRO: 30_000,
}


def enum_column_values(enum_cls):
    """Persist enum values (not member names) in string columns."""
    return [member.value for member in enum_cls]
