"""
Global exception handling for the application.
Every error is rendered in the API envelope: {"status": "error", "message": ...}.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppError):
    """Input rejected at the boundary; carries per-field messages."""
    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        self.errors = errors
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationException":
        return cls({field: [message]}, message)

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "ValidationException":
        return cls(_collect_errors(exc.errors()))


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class BusinessRuleViolationException(AppError):
    """Business logic violation error."""
    def __init__(self, message: str = "Business rule violation", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)


class UnauthorizedException(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthenticated", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenException(AppError):
    """Authorization failure error."""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class StorageException(AppError):
    """Object storage write/delete failure."""
    def __init__(self, message: str = "Storage operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class ReportGenerationException(AppError):
    """A report could not be rendered or persisted."""
    def __init__(self, message: str = "Report generation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


def _collect_errors(raw_errors) -> Dict[str, List[str]]:
    """Flatten pydantic/FastAPI error locations into "field" → [messages]."""
    errors: Dict[str, List[str]] = {}
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        # Drop the request section ("body", "query", "path", "form")
        if loc and loc[0] in ("body", "query", "path", "header", "form"):
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        message = err.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


def _error_body(request: Request, message: str, code: str, **extra: Any) -> Dict[str, Any]:
    body = {
        "status": "error",
        "message": message,
        "code": code,
        "path": request.url.path,
    }
    body.update(extra)
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render AppError subclasses in the standard envelope."""
    extra: Dict[str, Any] = {}
    if isinstance(exc, ValidationException):
        extra["errors"] = exc.errors
    elif exc.details:
        extra["details"] = exc.details

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.__class__.__name__, **extra),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            "The given data was invalid.",
            "ValidationException",
            errors=_collect_errors(exc.errors()),
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, str(exc.detail), "HTTPException"),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unhandled error", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            "An unexpected error occurred. Please try again later.",
            "InternalServerError",
        ),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
