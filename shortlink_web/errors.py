"""
Exception handlers for consistent error responses.

Every error body has the shape {"error": "<message>"}.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortlink.errors import ShortLinkError
from shortlink.common.logging_config import get_logger

logger = get_logger("web.errors")


def error_response(message: str, status_code: int, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten request validation errors into one message."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ())[1:])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Map every error, expected or not, to a JSON {"error": ...} response."""

    @app.exception_handler(ShortLinkError)
    async def handle_shortlink_error(request: Request, exc: ShortLinkError):
        if exc.status_code >= 500:
            logger.error(f"Error in {request.url.path}: {exc.message}")
        else:
            logger.warning(f"Rejected {request.method} {request.url.path}: {exc.message}")
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        message = format_validation_errors(exc)
        logger.warning(f"Invalid request to {request.url.path}: {message}")
        return error_response(message, 400)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error in {request.url.path}: {exc}", exc_info=True)
        return error_response("Internal server error", 500)
