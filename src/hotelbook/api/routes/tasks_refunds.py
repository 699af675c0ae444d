"""Worker route for refund reconciliation.

POST /tasks/refunds/retry - retries queued refunds whose gateway call
failed at cancellation time. Intended to be driven by a scheduler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from hotelbook.api.errors import operation_guard
from hotelbook.api.task_auth import verify_task_auth
from hotelbook.domain.payments import retry_pending_refunds
from hotelbook.observability.correlation import get_correlation_id
from hotelbook.observability.logging import get_logger
from hotelbook.observability.redaction import safe_log_context

router = APIRouter(prefix="/tasks/refunds", tags=["tasks"])

logger = get_logger(__name__)


class RetryRefundsRequest(BaseModel):
    limit: int | None = Field(None, ge=1, le=500)


@router.post("/retry", dependencies=[Depends(verify_task_auth)])
def retry_refunds_task(body: RetryRefundsRequest | None = None) -> dict:
    """Retry pending refunds and return the batch summary."""
    limit = body.limit if body else None

    with operation_guard("retry_pending_refunds"):
        summary = retry_pending_refunds(limit)

    logger.info(
        "refund retry task completed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                **summary,
            )
        },
    )
    return summary
