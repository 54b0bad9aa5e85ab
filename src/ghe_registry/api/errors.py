"""
Error types and exception handlers for the API.

Every error response shares one body shape::

    {"message": "...", "code": <http status>, "errors": [{field, code, message}, ...]}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ghe_registry.registry.models import ErrorResponse, FieldError
from ghe_registry.registry.server_registry import DuplicateServerError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class BadRequestError(ServiceError):
    """The request was rejected by validation."""

    status_code = 400


class UnauthorizedError(ServiceError):
    """Missing or invalid credentials."""

    status_code = 401


class NotFoundError(ServiceError):
    """The addressed resource does not exist."""

    status_code = 404


def error_response(status_code: int, message: str, errors: list[FieldError] | None = None) -> JSONResponse:
    """Render an error body with the shared shape."""
    body = ErrorResponse(message=message, code=status_code, errors=errors or [])
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that turn exceptions into error bodies.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return error_response(exc.status_code, exc.message, exc.errors)

    @app.exception_handler(DuplicateServerError)
    async def duplicate_server_handler(request: Request, exc: DuplicateServerError) -> JSONResponse:
        logger.warning(f"Rejected duplicate server: {exc}")
        return error_response(400, "Failed to create Github server", exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"Invalid request body for {request.url.path}: {exc.errors()}")
        return error_response(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled exception: {exc}",
            exc_info=True,
            extra={"path": request.url.path, "method": request.method},
        )
        return error_response(500, "Internal server error")
