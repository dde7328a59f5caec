"""Batch trigger endpoints - scheduled cron signal and manual run."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..schemas.monitor import CheckRunResponse
from ..services.scheduler import BatchRunner, batch_runner
from ..utils.auth import require_cron_secret, require_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["checks"])


def get_batch_runner() -> BatchRunner:
    return batch_runner


async def _run(runner: BatchRunner, source: str) -> CheckRunResponse:
    try:
        summary = await runner.run_batch()
    except Exception as e:
        logger.error(f"{source} check failed: {e}")
        raise HTTPException(status_code=500, detail=f"{source} check failed")

    return CheckRunResponse(checked=summary.checked, timestamp=summary.timestamp)


@router.get("/cron/check", response_model=CheckRunResponse, dependencies=[Depends(require_cron_secret)])
async def cron_check(runner: BatchRunner = Depends(get_batch_runner)):
    """Run a batch from the external scheduler."""
    return await _run(runner, "Cron")


@router.post("/monitors/check", response_model=CheckRunResponse, dependencies=[Depends(require_admin)])
async def manual_check(runner: BatchRunner = Depends(get_batch_runner)):
    """Run a batch on demand."""
    return await _run(runner, "Manual")
