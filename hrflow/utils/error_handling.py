"""
Error Handling Module for HRFlow

Centralized exception hierarchy and FastAPI exception handlers.
The workflow raises these exceptions unchanged; only the handlers
registered here map them to status codes and response bodies.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hrflow.config import settings

logger = logging.getLogger("hrflow.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""
    
    # Validation Errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_REASON = "MISSING_REASON"
    REASON_TOO_LONG = "REASON_TOO_LONG"
    INVALID_LEVEL = "INVALID_LEVEL"
    
    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    NOT_AUTHORIZED_FOR_LEVEL = "NOT_AUTHORIZED_FOR_LEVEL"
    
    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    PAYROLL_NOT_FOUND = "PAYROLL_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    STALE_LEVEL = "STALE_LEVEL"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    
    # Internal Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""
    
    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Bad input, rejected before the workflow touches any state"""
    
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            field=field,
        )


class MissingReasonException(ValidationException):
    def __init__(self):
        super().__init__(
            message="A reason is required when rejecting a payroll",
            field="reason",
            code=ErrorCode.MISSING_REASON,
        )


class ReasonTooLongException(ValidationException):
    def __init__(self, length: int, max_length: int):
        super().__init__(
            message=f"Reason cannot exceed {max_length} characters",
            field="reason",
            code=ErrorCode.REASON_TOO_LONG,
            details={"length": length, "max_length": max_length},
        )


class InvalidApprovalLevelException(ValidationException):
    """The supplied level is not one of the four approval levels."""
    
    def __init__(self, level: Any):
        super().__init__(
            message=f"Invalid approval level: {level}",
            field="level",
            code=ErrorCode.INVALID_LEVEL,
            details={"level": str(level)},
        )


# ============================================================================
# Authorization / Not Found / Conflict
# ============================================================================

class ForbiddenException(AppException):
    def __init__(self, message: str, code: ErrorCode = ErrorCode.FORBIDDEN, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class ApproverNotAuthorizedException(ForbiddenException):
    def __init__(self, level: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"You are not authorized to act at the {level} approval level",
            code=ErrorCode.NOT_AUTHORIZED_FOR_LEVEL,
            details={"level": level},
        )


class NotFoundException(AppException):
    def __init__(self, resource: str, resource_id: Any = None, code: ErrorCode = ErrorCode.NOT_FOUND):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": str(resource_id) if resource_id is not None else None},
        )


class PayrollNotFoundException(NotFoundException):
    def __init__(self, payroll_id: Any):
        super().__init__("Payroll", payroll_id, code=ErrorCode.PAYROLL_NOT_FOUND)


class ConflictException(AppException):
    """The stored state no longer allows the request; refetch and retry manually."""
    
    def __init__(self, message: str, code: ErrorCode = ErrorCode.RESOURCE_CONFLICT, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class StaleApprovalLevelException(ConflictException):
    def __init__(self, expected: Any, actual: Any):
        super().__init__(
            message=f"Payroll is not at {expected} approval level. Current level: {actual}",
            code=ErrorCode.STALE_LEVEL,
            details={
                "expected_level": str(expected),
                "current_level": str(actual) if actual is not None else None,
            },
        )


class InvalidTransitionException(ConflictException):
    def __init__(self, payroll_id: Any, current_status: Any):
        super().__init__(
            message=f"Payroll {payroll_id} is {current_status} and accepts no further approval actions",
            code=ErrorCode.INVALID_TRANSITION,
            details={"payroll_id": str(payroll_id), "status": str(current_status)},
        )


class WorkflowExecutionException(AppException):
    """Unexpected failure while applying a workflow operation."""
    
    def __init__(self, operation: str, payroll_id: Any, original_error: Exception):
        super().__init__(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"{operation} failed for payroll {payroll_id}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": operation, "payroll_id": str(payroll_id)},
        )
        self.original_error = original_error


# ============================================================================
# Handlers
# ============================================================================

def _error_response(status_code: int, message: str, error: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error},
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle custom application exceptions with standardized format."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"AppException: {exc.code.value} - {exc.message}", extra={"path": request.url.path})
    return _error_response(exc.status_code, exc.message, exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent error format."""
    return _error_response(
        exc.status_code,
        str(exc.detail),
        {"code": exc.status_code, "message": exc.detail, "type": "http_error"},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request shape errors are reported as 400 with field details."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"], "type": error["type"]})
    
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        {"code": ErrorCode.VALIDATION_ERROR.value, "details": errors},
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "A database error occurred"
    code = ErrorCode.DATABASE_ERROR
    
    if isinstance(exc, IntegrityError):
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            status_code = status.HTTP_409_CONFLICT
            message = "A record with this value already exists"
            code = ErrorCode.DUPLICATE_ENTRY
    
    logger.error(f"SQLAlchemyError ({code.value}): {exc}", exc_info=True)
    return _error_response(status_code, message, {"code": code.value})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler; hides details outside development."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    
    if settings.is_production:
        message = "An unexpected error occurred. Please try again later."
    else:
        message = f"{type(exc).__name__}: {exc}"
    
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message,
        {"code": ErrorCode.INTERNAL_ERROR.value},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
