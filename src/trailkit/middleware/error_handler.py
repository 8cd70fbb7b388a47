"""Global error handlers: every failure leaves as JSON."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from trailkit.errors import ConfigValidationError, InternalError, TrailkitError

logger = structlog.get_logger()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(TrailkitError)
    async def trailkit_exception_handler(request: Request, exc: TrailkitError) -> JSONResponse:
        """Map engine errors to their status with a stable ``error`` code."""
        if isinstance(exc, InternalError):
            logger.error("internal_error", path=request.url.path, request_id=_request_id(request), error=exc.message)
            return JSONResponse(status_code=500, content={"detail": "Internal server error", "error": exc.code})

        content: dict[str, object] = {"detail": exc.message, "error": exc.code}
        if isinstance(exc, ConfigValidationError):
            content["errors"] = exc.field_errors
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            request_id=_request_id(request),
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
