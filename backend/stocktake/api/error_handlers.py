"""Error Handlers — global exception handlers for the Stocktake API.

Invariants:
    - StocktakeError → structured JSON with error code, message, severity
    - RequestValidationError → 400 with field-level error details
    - HTTPException → same envelope, original status and headers kept (WWW-Authenticate)
    - Exception (catch-all) → never leaks internal details
    - Every error body has a top-level "error" key, including on the binary /export route

Design Decisions:
    - Internal details (debug_info) rendered only when the app runs in development mode
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from stocktake.core.errors import ErrorCategory, ErrorSeverity, StocktakeError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_stocktake_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _is_development(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_development)


def _register_stocktake_error_handler(app: FastAPI) -> None:
    """Register domain/infrastructure error handler."""

    @app.exception_handler(StocktakeError)
    async def stocktake_error_handler(request: Request, exc: StocktakeError):
        """Handle all Stocktake domain/infrastructure errors."""
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"StocktakeError: {exc.message}",
            extra={
                "error_code": exc.code, "path": request.url.path,
                "session_key": exc.context.session_key,
                "record_id": exc.context.record_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(include_debug=_is_development(request)),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register handler for HTTPException (auth challenge, unknown routes)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            category = ErrorCategory.AUTHENTICATION.value
            logger.warning(f"Unauthorized request on {request.url.path}")
        else:
            category = "http"
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": f"HTTP_{exc.status_code}",
                    "message": exc.detail,
                    "category": category,
                    "severity": ErrorSeverity.ERROR.value,
                },
            },
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
        error = {
            "code": "INTERNAL_ERROR",
            "message": "Error interno del servidor",
            "category": "internal",
            "severity": ErrorSeverity.CRITICAL.value,
        }
        if _is_development(request):
            error["details"] = {"reason": str(exc)}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": error},
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Faltan datos requeridos o son inválidos",
            "category": "validation",
            "severity": ErrorSeverity.WARNING.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
