"""
API exception handling.

Every failure leaves the API as a flat JSON body the storefront already
understands:

    {"error": "Quote not found", "code": "NOT_FOUND", "traceId": "abc123def456"}

Validation failures add a ``details`` object with field-level errors.
"""

from typing import Optional, Dict, Any, List
from enum import Enum
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback
import uuid

logger = logging.getLogger(__name__)


def _get_trace_id() -> str:
    """Get trace ID from correlation context or generate a new one."""
    from app.middleware.correlation import get_request_id

    request_id = get_request_id()
    if request_id and request_id != "unknown":
        return request_id
    return str(uuid.uuid4())[:12]


class ErrorCode(str, Enum):
    """Machine-readable error codes returned alongside the message."""

    # Request
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ACTION = "INVALID_ACTION"

    # Authentication & Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Approval workflow
    NOT_SHARED = "NOT_SHARED"
    ALREADY_RESPONDED = "ALREADY_RESPONDED"
    ARTWORK_NOT_APPROVED = "ARTWORK_NOT_APPROVED"
    INVALID_STATUS = "INVALID_STATUS"
    QUOTE_EXPIRED = "QUOTE_EXPIRED"
    NO_ARTWORK = "NO_ARTWORK"
    NO_CUSTOMER_EMAIL = "NO_CUSTOMER_EMAIL"

    # External services
    EMAIL_FAILED = "EMAIL_FAILED"

    # Server
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ApiException(HTTPException):
    """
    Base exception for the API.

    Usage:
        raise ApiException(
            "Artwork has not been shared yet",
            status_code=400,
            code=ErrorCode.NOT_SHARED,
        )
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.details = details
        self.trace_id = _get_trace_id()
        super().__init__(status_code=status_code, detail=message, headers=headers)

    @property
    def message(self) -> str:
        return self.detail

    def to_body(self) -> Dict[str, Any]:
        body = {
            "error": self.detail,
            "code": self.code.value,
            "traceId": self.trace_id,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


# Convenience exception classes

class NotFoundError(ApiException):
    """Resource not found (404)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404, code=ErrorCode.NOT_FOUND)


class BusinessRuleError(ApiException):
    """Business rule violation (400)."""

    def __init__(self, message: str, code: ErrorCode):
        super().__init__(message, status_code=400, code=code)


class ForbiddenError(ApiException):
    """Permission denied (403)."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403, code=ErrorCode.FORBIDDEN)


class RateLimitError(ApiException):
    """Rate limit exceeded (429)."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            f"Too many requests. Try again in {retry_after} seconds.",
            status_code=429,
            code=ErrorCode.RATE_LIMITED,
            headers={"Retry-After": str(retry_after)},
        )


# Exception handlers for FastAPI

def _with_cors(
    response: JSONResponse,
    request: Request,
    allowed_origins: Optional[List[str]],
) -> JSONResponse:
    # Error responses bypass CORSMiddleware when raised from dependencies
    if allowed_origins:
        origin = request.headers.get("origin", "")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
    return response


def create_error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    request: Request,
    details: Optional[Any] = None,
    trace_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    allowed_origins: Optional[List[str]] = None,
) -> JSONResponse:
    """Create the standard error JSON response."""
    body: Dict[str, Any] = {
        "error": message,
        "code": code.value,
        "traceId": trace_id or _get_trace_id(),
    }
    if details is not None:
        body["details"] = details

    response = JSONResponse(status_code=status_code, content=body, headers=headers)
    return _with_cors(response, request, allowed_origins)


def create_exception_handlers(allowed_origins: List[str]):
    """
    Create exception handlers with configured allowed origins for CORS.

    Usage in main.py:
        handlers = create_exception_handlers(allowed_origins)
        app.add_exception_handler(ApiException, handlers["api"])
        app.add_exception_handler(RequestValidationError, handlers["validation"])
        app.add_exception_handler(Exception, handlers["generic"])
    """

    async def handle_api_exception(request: Request, exc: ApiException) -> JSONResponse:
        log = logger.warning if exc.status_code >= 500 else logger.info
        log(
            f"ApiException: {exc.code.value} - {exc.detail}",
            extra={
                "trace_id": exc.trace_id,
                "status_code": exc.status_code,
                "path": request.url.path,
            },
        )
        response = JSONResponse(
            status_code=exc.status_code,
            content=exc.to_body(),
            headers=exc.headers,
        )
        return _with_cors(response, request, allowed_origins)

    async def handle_http_exception(
        request: Request,
        exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle plain HTTPException raised by FastAPI or dependencies."""
        code_map = {
            400: ErrorCode.VALIDATION_ERROR,
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.FORBIDDEN,
            404: ErrorCode.NOT_FOUND,
            409: ErrorCode.CONFLICT,
            429: ErrorCode.RATE_LIMITED,
            503: ErrorCode.SERVICE_UNAVAILABLE,
        }

        return create_error_response(
            status_code=exc.status_code,
            code=code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
            message=str(exc.detail),
            request=request,
            headers=getattr(exc, "headers", None),
            allowed_origins=allowed_origins,
        )

    async def handle_validation_exception(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies are client errors (400) with field-level details."""
        field_errors = []
        for error in exc.errors():
            field_errors.append({
                "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
                "message": error["msg"],
                "type": error["type"],
            })

        return create_error_response(
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            message="Validation failed",
            request=request,
            details={"fieldErrors": field_errors},
            allowed_origins=allowed_origins,
        )

    async def handle_generic_exception(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Unexpected failures: log everything, tell the caller little."""
        trace_id = str(uuid.uuid4())[:12]

        logger.error(
            f"Unhandled exception: {exc}",
            extra={"trace_id": trace_id, "path": request.url.path},
        )
        logger.error(traceback.format_exc())

        from app.core.sentry import capture_exception
        capture_exception(
            exc,
            context={
                "trace_id": trace_id,
                "path": request.url.path,
                "method": request.method,
            }
        )

        # Don't expose internal details in production
        from app.config import settings
        message = str(exc) if settings.DEBUG else "An unexpected error occurred"

        return create_error_response(
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
            message=message,
            request=request,
            trace_id=trace_id,
            allowed_origins=allowed_origins,
        )

    return {
        "api": handle_api_exception,
        "http": handle_http_exception,
        "validation": handle_validation_exception,
        "generic": handle_generic_exception,
    }
