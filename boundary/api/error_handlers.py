"""Error Handlers — global exception handlers that keep every response in the envelope.

Invariants:
    - AuthDeniedError → guard denial (redirect or 401 envelope)
    - BoundaryError → envelope with the error's public message and http_status,
      logged at the level of its severity
    - RequestValidationError → 400 envelope with field-level detail
    - HTTPException (unknown route, bad method) → envelope with its status
    - Exception (catch-all) → 500 envelope, never leaks internal details
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from boundary.api.auth_guard import denial_response
from boundary.core.envelope import failure_envelope
from boundary.core.errors import (
    INTERNAL_ERROR_MESSAGE,
    AuthDeniedError,
    BoundaryError,
    ErrorSeverity,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_auth_denied_handler(app)
    _register_boundary_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_auth_denied_handler(app: FastAPI) -> None:

    @app.exception_handler(AuthDeniedError)
    async def auth_denied_handler(request: Request, exc: AuthDeniedError):
        return denial_response(request, exc)


def _register_boundary_error_handler(app: FastAPI) -> None:
    """Register boundary domain/infrastructure error handler."""

    @app.exception_handler(BoundaryError)
    async def boundary_error_handler(request: Request, exc: BoundaryError):
        logger.log(
            _LOG_LEVELS[exc.severity], f"BoundaryError: {exc.message}",
            extra={**exc.to_log_extra(), "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_envelope().to_wire(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register framework-level validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=failure_envelope(
                _format_validation_errors(exc),
            ).to_wire(),
        )


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException,
    ):
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content=failure_envelope(message).to_wire(),
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_envelope(INTERNAL_ERROR_MESSAGE).to_wire(),
        )


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Render framework errors as "path: message" pairs."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
        for e in exc.errors()
    ) or "Invalid request data"
