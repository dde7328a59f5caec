"""Retention service - prunes check results past the retention horizon."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import settings
from ..database import async_session
from ..utils.db_utils import retry_on_lock
from .store import MonitorStore

logger = logging.getLogger(__name__)


class RetentionService:
    """Deletes check results older than a single global horizon."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        retention_days: Optional[int] = None,
    ):
        self.session_factory = session_factory or async_session
        self.horizon = timedelta(days=retention_days if retention_days is not None else settings.retention_days)

    def cutoff(self, now: Optional[datetime] = None) -> datetime:
        return (now or datetime.utcnow()) - self.horizon

    async def prune(self, now: Optional[datetime] = None) -> int:
        """Delete results at or before the cutoff. Returns rows deleted."""
        cutoff = self.cutoff(now)
        async with self.session_factory() as session:
            deleted = await MonitorStore(session).delete_outcomes_older_than(cutoff)
            await retry_on_lock(session.commit)

        if deleted:
            logger.info(f"Pruned {deleted} check results older than {cutoff.isoformat()}")
        return deleted
