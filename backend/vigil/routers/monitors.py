"""Monitor result history API."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Monitor, MonitorResult
from ..schemas.monitor import MonitorResultResponse
from ..utils.auth import require_admin

router = APIRouter(prefix="/api/monitors", tags=["monitors"], dependencies=[Depends(require_admin)])


@router.get("/{monitor_id}/results", response_model=List[MonitorResultResponse])
async def get_monitor_results(
    monitor_id: str,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Newest-first check results for a monitor."""
    monitor = await db.get(Monitor, monitor_id)
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")

    result = await db.execute(
        select(MonitorResult)
        .where(MonitorResult.monitor_id == monitor_id)
        .order_by(MonitorResult.executed_at.desc())
        .limit(min(limit, 200))
        .offset(offset)
    )
    return result.scalars().all()
