"""Map ledger errors to HTTP responses."""

from fastapi import Request
from fastapi.responses import JSONResponse
from structlog import get_logger

from hotel_ledger.errors import (
    BusyError,
    ConflictError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    RateUnavailableError,
    ValidationError,
)

logger = get_logger(__name__)

# Checked in order; the first matching class wins
STATUS_CODES: list[tuple[type[LedgerError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidStateError, 409),
    (RateUnavailableError, 422),
    (BusyError, 503),
]

BUSY_RETRY_AFTER_SECONDS = 1


def status_code_for(exc: LedgerError) -> int:
    for error_class, status_code in STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a LedgerError as ``{"success": false, "error": code, "message": ...}``."""
    status_code = status_code_for(exc)
    logger.info(
        "Request failed",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        error=exc.code,
    )
    headers = {"Retry-After": str(BUSY_RETRY_AFTER_SECONDS)} if isinstance(exc, BusyError) else None
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.code, "message": exc.message},
        headers=headers,
    )
