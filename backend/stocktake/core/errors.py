"""Error Hierarchy — typed, categorized exceptions for all Stocktake failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() always produces an envelope with a top-level "error" key
    - Internal details only rendered when the caller asks for them (development mode)

Design Decisions:
    - Single hierarchy with StocktakeError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability data kept apart from the user-facing message
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    DATABASE = "database"
    EXPORT = "export"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_key: str | None = None
    record_id: int | None = None
    debug_info: dict[str, Any] | None = None


class StocktakeError(Exception):
    """Base exception for all Stocktake errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self, include_debug: bool = False) -> dict:
        """Convert to standardized REST error response."""
        body: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.context.record_id is not None:
            body["record_id"] = self.context.record_id
        if include_debug and self.context.debug_info:
            body["details"] = self.context.debug_info
        return {"error": body}


# ─── Domain Errors (400-level) ──────────────────────────────────

class RecordValidationError(StocktakeError):
    """Record input rejected by the service."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field

    def to_response(self, include_debug: bool = False) -> dict:
        response = super().to_response(include_debug)
        response["error"]["field"] = self.field
        return response


class RecordNotFoundError(StocktakeError):
    """Record does not exist or belongs to another session."""
    def __init__(self, record_id: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.record_id = record_id
        super().__init__(
            "Registro no encontrado o no pertenece a esta sesión",
            "RECORD_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, ctx, 404,
        )
        self.record_id = record_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(StocktakeError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "Error interno del servidor",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation
        if self.context.debug_info is None:
            self.context.debug_info = {"operation": operation, "reason": message}


class ExportError(StocktakeError):
    """Spreadsheet generation failed; session data left untouched."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            "Error al generar el reporte",
            "EXPORT_ERROR", ErrorCategory.EXPORT,
            ErrorSeverity.CRITICAL, context, 500,
        )
        if self.context.debug_info is None:
            self.context.debug_info = {"reason": reason}
