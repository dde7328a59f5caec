"""Bearer-token checks for the trigger endpoints."""
import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException

from ..config import settings

logger = logging.getLogger(__name__)


def _bearer_matches(authorization: Optional[str], secret: Optional[str]) -> bool:
    # An unset secret never authorizes anything
    if not secret or not authorization:
        return False
    return hmac.compare_digest(authorization, f"Bearer {secret}")


async def require_cron_secret(authorization: Optional[str] = Header(None)):
    """Scheduled trigger: Authorization must carry CRON_SECRET."""
    if not _bearer_matches(authorization, settings.cron_secret):
        logger.warning("Cron trigger rejected - invalid bearer secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


async def require_admin(authorization: Optional[str] = Header(None)):
    """Interactive requests: Authorization must carry ADMIN_TOKEN."""
    if not _bearer_matches(authorization, settings.admin_token):
        raise HTTPException(status_code=401, detail="Unauthorized")
