"""Public status page API."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import settings
from ..database import get_db
from ..models import (
    Monitor,
    MonitorResult,
    StatusPage,
    StatusPageMonitor,
    Incident,
    IncidentStatus,
)
from ..schemas.status import (
    PublicIncident,
    PublicIncidentUpdate,
    PublicMonitor,
    PublicStatusPage,
)
from ..services.retention import RetentionService
from ..services import uptime

router = APIRouter(prefix="/api/public/status", tags=["status"])


@router.get("/{slug}", response_model=PublicStatusPage)
async def get_public_status(slug: str, db: AsyncSession = Depends(get_db)):
    """Public status page: monitor health and active incidents."""
    result = await db.execute(
        select(StatusPage).where(StatusPage.slug == slug, StatusPage.is_public.is_(True))
    )
    page = result.scalar_one_or_none()
    if not page:
        raise HTTPException(status_code=404, detail="Status page not found")

    linked = await db.execute(
        select(StatusPageMonitor.monitor_id, StatusPageMonitor.display_order, Monitor.name)
        .join(Monitor, Monitor.id == StatusPageMonitor.monitor_id)
        .where(StatusPageMonitor.status_page_id == page.id)
        .order_by(StatusPageMonitor.display_order)
    )

    # Uptime covers everything retention keeps
    window_start = RetentionService(retention_days=settings.retention_days).cutoff(datetime.utcnow())

    monitors = []
    for monitor_id, display_order, name in linked.all():
        history = await db.execute(
            select(MonitorResult.executed_at, MonitorResult.status, MonitorResult.response_time_ms)
            .where(
                MonitorResult.monitor_id == monitor_id,
                MonitorResult.executed_at > window_start,
            )
            .order_by(MonitorResult.executed_at.desc())
        )
        rows = history.all()
        latest = rows[0] if rows else None

        monitors.append(PublicMonitor(
            id=monitor_id,
            name=name,
            display_order=display_order,
            current_status=uptime.current_status(latest.status if latest else None),
            latest_response_time=latest.response_time_ms if latest else None,
            latest_checked_at=latest.executed_at if latest else None,
            uptime_percent=uptime.uptime_percent(row.status for row in rows),
            daily_status=uptime.daily_status((row.executed_at, row.status) for row in rows),
        ))

    incidents = await db.execute(
        select(Incident)
        .options(selectinload(Incident.updates), selectinload(Incident.monitors))
        .where(
            Incident.status_page_id == page.id,
            Incident.status != IncidentStatus.RESOLVED,
        )
        .order_by(Incident.created_at.desc())
    )

    active = [
        PublicIncident(
            id=incident.id,
            title=incident.title,
            status=incident.status,
            impact=incident.impact,
            created_at=incident.created_at,
            updated_at=incident.updated_at,
            updates=[
                PublicIncidentUpdate(
                    id=update.id,
                    message=update.message,
                    status=update.status,
                    created_at=update.created_at,
                )
                for update in sorted(incident.updates, key=lambda u: u.created_at, reverse=True)
            ],
            affected_monitors=[m.name for m in incident.monitors],
        )
        for incident in incidents.scalars().all()
    ]

    return PublicStatusPage(
        id=page.id,
        name=page.name,
        slug=page.slug,
        monitors=monitors,
        active_incidents=active,
    )
