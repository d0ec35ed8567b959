"""
Dashboard access guard.

Staff sessions are issued by the hosting platform; this service only checks the
shared admin key that the dashboard forwards on every write.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException

from trekdesk.core.config import settings

logger = logging.getLogger(__name__)


def require_admin(x_api_key: Optional[str] = Header(None, alias="X-API-Key")) -> None:
    """FastAPI dependency: 401 unless X-API-Key matches settings.admin_api_key."""
    if not x_api_key or not hmac.compare_digest(x_api_key.encode(), settings.admin_api_key.encode()):
        logger.warning("Rejected dashboard request with missing or invalid API key")
        raise HTTPException(status_code=401, detail="Unauthorized")
