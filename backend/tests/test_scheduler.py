from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import httpx
import pytest
from sqlalchemy import select, func

from vigil.models import Incident, IncidentImpact, MonitorResult, OutcomeKind, Plan
from vigil.schemas.monitor import EndpointConfig
from vigil.services.checker import CheckerService, CheckResult
from vigil.services.notifier import NotificationDispatcher
from vigil.services.retention import RetentionService
from vigil.services.scheduler import BatchRunner
from vigil.services.store import MonitorStore


class ScriptedChecker:
    """Returns a fixed outcome per monitor name and records concurrency."""

    def __init__(self, outcomes: dict[str, OutcomeKind] | None = None, delay: float = 0.0, raise_for=()):
        self.outcomes = outcomes or {}
        self.delay = delay
        self.raise_for = set(raise_for)
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = 0

    async def check(self, endpoint: EndpointConfig) -> CheckResult:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if endpoint.name in self.raise_for:
                raise RuntimeError(f"probe crashed for {endpoint.name}")
            status = self.outcomes.get(endpoint.name, OutcomeKind.SUCCESS)
            return CheckResult(
                monitor_id=endpoint.id,
                status=status,
                response_code=200 if status is OutcomeKind.SUCCESS else None,
                response_time_ms=5,
            )
        finally:
            self.in_flight -= 1


class CountingRetention(RetentionService):
    def __init__(self, session_factory):
        super().__init__(session_factory, retention_days=7)
        self.runs = 0

    async def prune(self, now=None) -> int:
        self.runs += 1
        return await super().prune(now)


class RecordingNotifier(NotificationDispatcher):
    def __init__(self):
        super().__init__(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        self.dispatched: list[tuple[str, OutcomeKind]] = []

    def dispatch(self, endpoint, result) -> int:
        self.dispatched.append((endpoint.id, result.status))
        return super().dispatch(endpoint, result)


def _runner(session_factory, checker, concurrency: int = 5, notifier=None):
    retention = CountingRetention(session_factory)
    runner = BatchRunner(
        session_factory=session_factory,
        checker=checker,
        retention=retention,
        notifier=notifier or RecordingNotifier(),
        concurrency=concurrency,
    )
    return runner, retention


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_no_enabled_monitors_skips_everything(session_factory, db) -> None:
    user = await db.user()
    await db.monitor(user, enabled=False)
    checker = ScriptedChecker()
    runner, retention = _runner(session_factory, checker)

    summary = await runner.run_batch()

    assert summary.checked == 0
    assert summary.results == []
    assert checker.calls == 0
    assert retention.runs == 0
    assert runner.notifier.dispatched == []
    assert await _count(session_factory, MonitorResult) == 0


@pytest.mark.asyncio
async def test_one_outcome_per_enabled_monitor_even_when_probe_raises(session_factory, db) -> None:
    user = await db.user()
    monitors = [await db.monitor(user, name=f"m{i}") for i in range(4)]
    await db.monitor(user, name="disabled", enabled=False)
    checker = ScriptedChecker(outcomes={"m1": OutcomeKind.FAILURE}, raise_for={"m2"})
    runner, retention = _runner(session_factory, checker)

    summary = await runner.run_batch()

    assert summary.checked == 4
    assert [r.monitor_id for r in summary.results] == [m.id for m in monitors]
    by_id = {r.monitor_id: r for r in summary.results}
    assert by_id[monitors[1].id].status is OutcomeKind.FAILURE
    crashed = by_id[monitors[2].id]
    assert crashed.status is OutcomeKind.ERROR
    assert crashed.response_code is None
    assert "probe crashed" in crashed.error_message
    assert await _count(session_factory, MonitorResult) == 4
    assert retention.runs == 1
    assert len(runner.notifier.dispatched) == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("ceiling", [5, 2, 1])
async def test_concurrency_ceiling_is_respected(session_factory, db, ceiling: int) -> None:
    user = await db.user()
    for i in range(10):
        await db.monitor(user, name=f"m{i}")
    checker = ScriptedChecker(delay=0.02)
    runner, _ = _runner(session_factory, checker, concurrency=ceiling)

    summary = await runner.run_batch()

    assert summary.checked == 10
    assert checker.max_in_flight == ceiling


def test_concurrency_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BatchRunner(checker=ScriptedChecker(), concurrency=0)


@pytest.mark.asyncio
async def test_failing_linked_monitor_opens_single_incident_across_batches(session_factory, db) -> None:
    user = await db.user()
    failing = await db.monitor(user, name="Payments")
    healthy = await db.monitor(user, name="Website")
    unlinked = await db.monitor(user, name="Internal")
    await db.status_page(user, "acme", failing, healthy)
    checker = ScriptedChecker(outcomes={"Payments": OutcomeKind.ERROR, "Internal": OutcomeKind.ERROR})
    runner, _ = _runner(session_factory, checker)

    await runner.run_batch()
    await runner.run_batch()

    async with session_factory() as session:
        incidents = (await session.execute(select(Incident))).scalars().all()
    assert len(incidents) == 1
    assert incidents[0].title == "Payments is error"
    assert incidents[0].impact is IncidentImpact.MAJOR
    assert await _count(session_factory, MonitorResult) == 6
    assert unlinked.id not in {i.id for i in incidents}


@pytest.mark.asyncio
async def test_persistence_failure_propagates(session_factory, db, monkeypatch) -> None:
    user = await db.user()
    await db.monitor(user)

    async def broken_insert(self, results):
        raise RuntimeError("disk full")

    monkeypatch.setattr(MonitorStore, "insert_outcomes", broken_insert)
    runner, retention = _runner(session_factory, ScriptedChecker())

    with pytest.raises(RuntimeError, match="disk full"):
        await runner.run_batch()
    assert retention.runs == 0
    assert runner.notifier.dispatched == []


@pytest.mark.asyncio
async def test_notification_failures_do_not_fail_batch(session_factory, db) -> None:
    user = await db.user()
    await db.monitor(user, betteruptime_heartbeat_url="https://uptime.example.com/api/v1/heartbeat/abc")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    notifier = NotificationDispatcher(transport=httpx.MockTransport(handler))
    runner, _ = _runner(session_factory, ScriptedChecker(), notifier=notifier)

    summary = await runner.run_batch()
    await notifier.tasks.drain()

    assert summary.checked == 1
    assert notifier.tasks.failures == 1
    assert notifier.tasks.pending == 0


@pytest.mark.asyncio
async def test_batch_prunes_expired_results(session_factory, db) -> None:
    user = await db.user()
    monitor = await db.monitor(user)
    await db.add(MonitorResult(
        monitor_id=monitor.id,
        status=OutcomeKind.SUCCESS,
        executed_at=datetime.utcnow() - timedelta(days=30),
    ))
    runner, _ = _runner(session_factory, ScriptedChecker())

    await runner.run_batch()

    async with session_factory() as session:
        rows = (await session.execute(select(MonitorResult))).scalars().all()
    assert len(rows) == 1
    assert rows[0].executed_at > datetime.utcnow() - timedelta(days=1)


@pytest.mark.asyncio
async def test_overlapping_triggers_are_serialized(session_factory, db) -> None:
    user = await db.user()
    await db.monitor(user)
    checker = ScriptedChecker(delay=0.05)
    runner, _ = _runner(session_factory, checker)

    first, second = await asyncio.gather(runner.run_batch(), runner.run_batch())

    assert first.checked == second.checked == 1
    assert checker.max_in_flight == 1


@pytest.mark.asyncio
async def test_real_checker_end_to_end(session_factory, db) -> None:
    user = await db.user()
    await db.monitor(user, name="ok", url="https://ok.example.com/")
    await db.monitor(user, name="broken", url="https://broken.example.com/")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200 if request.url.host == "ok.example.com" else 503)

    checker = CheckerService(transport=httpx.MockTransport(handler))
    runner, _ = _runner(session_factory, checker)

    summary = await runner.run_batch()

    statuses = sorted(r.status.value for r in summary.results)
    assert statuses == ["failure", "success"]


@pytest.mark.asyncio
async def test_timeout_above_plan_limit_is_clamped_not_dropped(session_factory, db) -> None:
    user = await db.user(plan=Plan.FREE)
    legacy = await db.monitor(user, name="legacy", timeout_ms=20_000)
    await db.monitor(user, name="normal", timeout_ms=5_000)

    async with session_factory() as session:
        endpoints = await MonitorStore(session).list_enabled_endpoints()
    by_id = {e.id: e for e in endpoints}
    assert len(endpoints) == 2
    assert by_id[legacy.id].timeout_ms == 15_000
    assert by_id[legacy.id].config_error is None

    checker = ScriptedChecker()
    runner, _ = _runner(session_factory, checker)
    summary = await runner.run_batch()

    assert summary.checked == 2
    assert checker.calls == 2
    assert await _count(session_factory, MonitorResult) == 2


@pytest.mark.asyncio
async def test_invalid_monitor_row_yields_error_outcome(session_factory, db) -> None:
    user = await db.user()
    broken = await db.monitor(user, name="Broken", expected_status=42)
    await db.status_page(user, "acme", broken)
    checker = CheckerService(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    runner, _ = _runner(session_factory, checker)

    summary = await runner.run_batch()

    assert summary.checked == 1
    [result] = summary.results
    assert result.monitor_id == broken.id
    assert result.status is OutcomeKind.ERROR
    assert result.error_message.startswith("Invalid monitor configuration")
    async with session_factory() as session:
        stored = (await session.execute(select(MonitorResult))).scalars().all()
        incidents = (await session.execute(select(Incident))).scalars().all()
    assert [r.status for r in stored] == [OutcomeKind.ERROR]
    assert [i.title for i in incidents] == ["Broken is error"]
