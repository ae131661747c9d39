"""
Global Exception Handlers for the view tracking service

Error Response Format:
{
    "error": "Missing articleId"
}

The view entry points are called fire-and-forget from page scripts, so the
body stays flat and never carries internal details.
"""

import logging
from typing import Any, Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from viewtrack.exceptions import ViewTrackError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error"


def create_error_response(status_code: int, message: str, headers: dict[str, Any] | None = None) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        status_code: HTTP status code
        message: Human-readable error message
        headers: Optional response headers

    Returns:
        JSONResponse with {"error": message}
    """
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def view_track_exception_handler(request: Request, exc: ViewTrackError) -> JSONResponse:
    """
    Handle ViewTrackError subclasses.

    Server-side failures are reported as a generic 500 so storage details
    never reach the client.
    """
    if exc.status_code >= 500:
        logger.error(
            f"ViewTrackError: {exc.message}",
            extra={"status_code": exc.status_code, "path": request.url.path, "details": exc.details},
        )
        return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    logger.warning(
        f"ViewTrackError: {exc.message}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return create_error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(
        f"HTTPException: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return create_error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """
    Handle malformed request bodies.

    Returns 400 rather than FastAPI's default 422 to match the entry point
    contract.
    """
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({"field": field, "message": error["msg"], "type": error["type"]})

    logger.warning(f"Validation error on {request.url.path}", extra={"errors": errors})

    fields = [error["field"].split(".")[0] for error in errors if error["field"] and error["type"] != "json_invalid"]
    message = f"Invalid {fields[0]}" if fields else "Invalid request body"
    return create_error_response(status.HTTP_400_BAD_REQUEST, message)


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ViewTrackError, view_track_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)

    logger.info("Exception handlers registered successfully")
