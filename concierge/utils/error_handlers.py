"""
Global exception handlers for FastAPI application.

Clients only ever receive a short generic message; the cause is logged.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from concierge.middleware.cors import cors_headers
from concierge.utils.exceptions import ConciergeException

GENERIC_ERROR_MESSAGE = "Internal server error"


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    """JSON error body carrying the same CORS and request ID headers as a normal response."""
    settings = getattr(request.app.state, "settings", None)
    origins = settings.allowed_origins_list if settings else ["*"]
    headers = cors_headers(origins, request.headers.get("origin"))
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers["X-Request-ID"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=headers
    )


async def concierge_exception_handler(
    request: Request, exc: ConciergeException
) -> JSONResponse:
    """Handle custom Shop Concierge exceptions."""
    if exc.error_code == "VALIDATION_ERROR":
        logger.warning(f"Invalid request to {request.url.path}: {exc.message}")
        return error_response(request, 400, exc.message)

    logger.error(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message} {exc.details or ''}"
    )
    return error_response(request, 500, GENERIC_ERROR_MESSAGE)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code >= 500:
        message = GENERIC_ERROR_MESSAGE
    return error_response(request, exc.status_code, message)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle malformed bodies and schema violations."""
    logger.warning(f"Validation Error on {request.url.path}: {exc.errors()}")

    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return error_response(request, 400, "Invalid JSON body")

    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if loc:
            fields.append(".".join(loc))
    message = "Invalid request body"
    if fields:
        message = f"Invalid request body: {', '.join(fields)}"
    return error_response(request, 400, message)


async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle anything else."""
    logger.opt(exception=exc).error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}"
    )
    return error_response(request, 500, GENERIC_ERROR_MESSAGE)
