# burnlink/middleware/error_handler.py
# Domain errors and the JSON error shape shared by every failure path

import traceback
import logging
from typing import Callable, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from burnlink.utils.logger import log_exception

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error. Carries the code and status of its JSON response."""

    error_code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An internal error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class StorageError(AppError):
    """Backing store unavailable, or a write failed for infrastructural reasons."""
    error_code = "STORAGE_ERROR"
    status_code = 503
    default_message = "Storage is unavailable"


class TokenConflictError(AppError):
    """A generated token already exists. Retried by the store, never surfaced."""
    error_code = "TOKEN_CONFLICT"
    status_code = 409
    default_message = "Token already in use"


class ValidationError(AppError):
    """Request body could not be read."""
    error_code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"


class NotFoundError(AppError):
    """Message unknown, expired or bound to another reader."""
    error_code = "NOT_FOUND"
    status_code = 404
    default_message = "Message not available"


def create_error_response(
    error_code: str,
    message: str,
    status_code: int,
    details: dict = None,
    request_id: str = None
) -> JSONResponse:
    """Create a standardized JSON error response."""
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    if request_id:
        content["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=content)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence: turns anything that escaped the routers and the
    registered handlers into a 500 JSON error.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID", str(id(request)))

        try:
            return await call_next(request)
        except Exception as e:
            log_exception(e, context=f"Unhandled error on {request.url.path}")
            logger.error(
                f"Unhandled exception: {type(e).__name__}",
                extra={"request_id": request_id, "path": request.url.path},
            )
            details = None
            if self.debug:
                details = {"type": type(e).__name__, "traceback": traceback.format_exc()}
            return create_error_response(
                error_code="INTERNAL_ERROR",
                message="An internal error occurred. Please try again later.",
                status_code=500,
                details=details,
                request_id=request_id
            )


def setup_exception_handlers(app):
    """Register exception handlers on FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, StorageError):
            log_exception(exc, context=f"Storage failure on {request.url.path}")
            # storage internals never reach the client
            message = StorageError.default_message
        else:
            message = exc.message
        return create_error_response(
            error_code=exc.error_code,
            message=message,
            status_code=exc.status_code,
        )
