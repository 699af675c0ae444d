"""Mapping of booking-core errors to HTTP responses.

Domain errors become JSON bodies {"detail": message, "code": code}.
Anything else is logged with the operation context and returned as a
generic 500 without internals.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from hotelbook.domain.errors import BookingError
from hotelbook.observability.correlation import get_correlation_id
from hotelbook.observability.logging import get_logger
from hotelbook.observability.redaction import safe_log_context

logger = get_logger(__name__)

STATUS_BY_CODE = {
    "room_not_found": 404,
    "booking_not_found": 404,
    "capacity_exceeded": 422,
    "date_range_invalid": 422,
    "insufficient_inventory": 409,
    "invalid_transition": 409,
    "already_cancelled": 409,
    "unauthorized": 403,
    "gateway_error": 502,
}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, 400)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": exc.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)


@contextmanager
def operation_guard(operation: str, **context: Any) -> Iterator[None]:
    """Let domain and HTTP errors through; log and mask everything else.

    Usage:
        with operation_guard("cancel_booking", booking_id=booking_id):
            result = cancel_booking(...)
    """
    try:
        yield
    except (BookingError, HTTPException):
        raise
    except Exception:
        logger.exception(
            "unexpected failure",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    operation=operation,
                    **context,
                )
            },
        )
        raise HTTPException(status_code=500, detail="internal_error")
