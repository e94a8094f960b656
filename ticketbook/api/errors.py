"""
Maps booking ledger errors to HTTP responses.

Body shape matches FastAPI's HTTPException (`detail`) plus a stable `code`,
so clients can tell a sold-out event from a vanished one from a server fault.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ticketbook.core.logging import get_logger
from ticketbook.ledger.errors import ErrorCode, LedgerError

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 1

STATUS_BY_CODE = {
    ErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSUFFICIENT_CAPACITY: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_CANCELLED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VERSION_CONFLICT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.CONFLICT_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.transient else None

    log = logger.error if status_code >= 500 else logger.info
    log("ledger_error", code=exc.code.value, status_code=status_code, error=exc.message)

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code.value},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
