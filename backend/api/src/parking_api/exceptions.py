"""FastAPI exception handlers for converting ParkingError to HTTP responses.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: invalid tier data, refund or status rules violated
- 401 Unauthorized: caller identity missing
- 403 Forbidden: caller lacks the required role
- 404 Not Found: tier, payment, refund or applicable pricing not found
- 409 Conflict: payment changed by a concurrent request

Usage:
    from parking_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from parking.models import ErrorCode, ParkingError

logger = logging.getLogger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Business rule violations -> 400 Bad Request
    ErrorCode.INVALID_TIER: HTTP_400_BAD_REQUEST,
    ErrorCode.REFUND_NOT_ALLOWED: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_STATUS_TRANSITION: HTTP_400_BAD_REQUEST,
    # Authentication -> 401 Unauthorized
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    # Authorization -> 403 Forbidden
    ErrorCode.FORBIDDEN: HTTP_403_FORBIDDEN,
    # Not found -> 404 Not Found
    ErrorCode.TIER_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.NO_APPLICABLE_PRICING: HTTP_404_NOT_FOUND,
    ErrorCode.PAYMENT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.REFUND_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Lost optimistic write -> 409 Conflict
    ErrorCode.CONCURRENT_MODIFICATION: HTTP_409_CONFLICT,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def parking_error_handler(request: Request, exc: ParkingError) -> JSONResponse:
    """Render a ParkingError as an ErrorResponse with the mapped status code."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unhandled exception and return a generic 500 body.

    Internal details are not exposed to the client.
    """
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Please try again later or contact support",
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(ParkingError, parking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
