"""Shared-secret authentication for worker task endpoints.

The scheduler calling /tasks/* sends X-Internal-Task-Secret; it must
match TASKS_SHARED_SECRET.
"""

from __future__ import annotations

import hmac
import os

from fastapi import Header, HTTPException

from hotelbook.observability.logging import get_logger

logger = get_logger(__name__)

TASK_SECRET_HEADER = "X-Internal-Task-Secret"


def verify_task_auth(
    task_secret: str | None = Header(None, alias=TASK_SECRET_HEADER),
) -> None:
    """FastAPI dependency rejecting task calls without the shared secret.

    Raises:
        HTTPException: 401 on missing/invalid secret, 500 if not configured.
    """
    expected = os.environ.get("TASKS_SHARED_SECRET", "")
    if not expected:
        logger.error("TASKS_SHARED_SECRET not configured")
        raise HTTPException(status_code=500, detail="Task auth not configured")

    if not task_secret or not hmac.compare_digest(task_secret, expected):
        logger.warning("task auth rejected")
        raise HTTPException(status_code=401, detail="Unauthorized task call")
