"""
Shared utility functions for routers and services
"""
import json
import logging
from typing import Optional

from fastapi.responses import RedirectResponse

logger = logging.getLogger(__name__)


def log_endpoint_event(endpoint: str, user_id: Optional[int] = None, result: str = "success", details: Optional[dict] = None):
    """Log endpoint execution to app.log"""
    logger.info(f"{endpoint} | user={user_id if user_id is not None else 'anonymous'} | {result} | {json.dumps(details or {})}")


def redirect_to(path: str) -> RedirectResponse:
    """Page-style redirect used by the GET handlers"""
    return RedirectResponse(url=path, status_code=302)
