"""
Standardized error responses for the viewer bridge API.

Every JSON error uses the envelope the viewer page and CRM extension read:

    {"success": false, "error": "...", "hint": "...", "code": "..."}
"""

import logging
from enum import Enum
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Authentication errors
    MISSING_TOKEN = "AUTH_1001"
    INVALID_TOKEN = "AUTH_1002"
    ORIGIN_REJECTED = "AUTH_1003"

    # Validation errors
    VALIDATION_ERROR = "VAL_3001"
    MISSING_REQUIRED_FIELD = "VAL_3002"
    FILE_TOO_LARGE = "VAL_3003"

    # Resource errors
    RESOURCE_NOT_FOUND = "RES_4001"

    # System errors
    INTERNAL_ERROR = "SYS_6001"
    EXTERNAL_SERVICE_ERROR = "SYS_6003"
    RATE_LIMIT_EXCEEDED = "SYS_6004"


class APIException(HTTPException):
    """HTTPException carrying the bridge error envelope."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        hint: str | None = None,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        self.code = code
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(status_code=status_code, detail=message, headers=headers)


class UnauthorizedError(APIException):
    """Missing, unknown, expired or mismatched viewer token."""

    def __init__(
        self,
        message: str = "Invalid or expired token",
        hint: str | None = None,
        code: ErrorCode = ErrorCode.INVALID_TOKEN,
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code=code,
            message=message,
            hint=hint,
        )


class ValidationError(APIException):
    """Bad request input."""

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code=code,
            message=message,
            hint=hint,
        )


class UpstreamError(APIException):
    """HubSpot call failed."""

    def __init__(self, message: str, details: Any = None, hint: str | None = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code=ErrorCode.EXTERNAL_SERVICE_ERROR,
            message=message,
            hint=hint,
            details=details,
        )


def create_error_response(
    code: ErrorCode,
    message: str,
    hint: str | None = None,
    details: Any = None,
    correlation_id: str | None = None,
) -> dict[str, Any]:
    """Create a standardized error response dictionary."""
    response: dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code.value,
    }

    if hint:
        response["hint"] = hint
    if details is not None:
        response["details"] = details
    if correlation_id:
        response["correlation_id"] = correlation_id

    return response


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle APIException and return the standard envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            code=exc.code,
            message=exc.message,
            hint=exc.hint,
            details=exc.details,
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert plain HTTPExceptions (404, 405, ...) to the standard envelope."""
    status_to_code = {
        400: ErrorCode.VALIDATION_ERROR,
        401: ErrorCode.INVALID_TOKEN,
        404: ErrorCode.RESOURCE_NOT_FOUND,
        413: ErrorCode.FILE_TOO_LARGE,
        429: ErrorCode.RATE_LIMIT_EXCEEDED,
    }
    code = status_to_code.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else "An error occurred"

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            code=code,
            message=message,
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    details = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])[1:]) or None,
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=create_error_response(
            code=ErrorCode.VALIDATION_ERROR,
            message="Request validation failed",
            details=details,
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.error("Unhandled exception: %s", exc, exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            code=ErrorCode.INTERNAL_ERROR,
            message="An unexpected error occurred",
            correlation_id=correlation_id,
        ),
    )
