"""Exception handlers for converting custom exceptions to HTTP responses."""

import logging
import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    LenteXhibitError,
    InvalidInputError,
    NotAuthenticatedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
)

logger = logging.getLogger(__name__)


async def lentexhibit_exception_handler(request: Request, exc: LenteXhibitError) -> JSONResponse:
    """
    Handle all LenteXhibit custom exceptions and convert to appropriate HTTP responses.

    Args:
        request: The incoming request
        exc: The exception that was raised

    Returns:
        JSONResponse with appropriate status code and error details
    """
    # Map exception categories to HTTP status codes
    if isinstance(exc, InvalidInputError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotAuthenticatedError):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, ForbiddenError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    else:
        # Generic LenteXhibitError
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "detail": exc.message,
            "type": exc.__class__.__name__,
            **({"info": exc.details} if exc.details else {})
        }
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing request fields as 400."""
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "detail": "Invalid request",
            "type": "ValidationError",
            "errors": errors,
        }
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; the traceback is only exposed outside production."""
    logger.error(f"[ERROR] Unhandled error on {request.method} {request.url.path}: {exc}")
    content = {
        "success": False,
        "detail": str(exc) or "Internal Server Error",
        "type": exc.__class__.__name__,
    }
    if not settings.is_production:
        content["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(LenteXhibitError, lentexhibit_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
