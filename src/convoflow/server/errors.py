"""Server error handling - sanitizes errors for client responses.

Prevents exposure of sensitive information like file paths, stack traces,
and internal configuration to HTTP clients.
"""

import logging
import uuid

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from convoflow.core.errors import CompileError, TemplateNotFoundError

logger = logging.getLogger(__name__)


# Error messages safe to expose to clients
SAFE_ERROR_MESSAGES = {
    "ConfigError": "Configuration error. Please contact support.",
    "CompileError": "Template could not be compiled.",
    "TemplateNotFoundError": "Template not found.",
    "PersistenceError": "Session state error. Please start a new conversation.",
}

DEFAULT_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def create_error_reference() -> str:
    """Generate unique error reference for client/server correlation."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def get_safe_error_message(exception: Exception) -> str:
    """Get client-safe error message for exception type."""
    exception_type = type(exception).__name__
    return SAFE_ERROR_MESSAGES.get(exception_type, DEFAULT_ERROR_MESSAGE)


def get_http_status_for_exception(exception: Exception) -> int:
    """Map exception types to appropriate HTTP status codes."""
    # Client errors (4xx)
    if isinstance(exception, TemplateNotFoundError):
        return 404
    if isinstance(exception, CompileError):
        return 422

    # Server errors (5xx)
    return 500


def log_error_with_context(
    error_ref: str,
    exception: Exception,
    tenant_id: str | None = None,
    endpoint: str | None = None,
) -> None:
    """Log full error details server-side for debugging."""
    logger.error(
        f"[{error_ref}] Error in {endpoint or 'unknown'} "
        f"for tenant {tenant_id or 'unknown'}: {type(exception).__name__}: {exception}",
        exc_info=True,
        extra={
            "error_reference": error_ref,
            "tenant_id": tenant_id,
            "endpoint": endpoint,
            "exception_type": type(exception).__name__,
        },
    )


def create_error_response(
    exception: Exception,
    tenant_id: str | None = None,
    endpoint: str | None = None,
) -> HTTPException:
    """Create sanitized HTTPException for client response."""
    error_ref = create_error_reference()

    log_error_with_context(error_ref, exception, tenant_id, endpoint)

    status_code = get_http_status_for_exception(exception)
    safe_message = get_safe_error_message(exception)

    return HTTPException(
        status_code=status_code,
        detail={
            "error": safe_message,
            "reference": error_ref,
            "message": "If this problem persists, contact support with the reference code.",
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for uncaught exceptions."""
    error_ref = create_error_reference()

    tenant_id = request.path_params.get("tenant_id")
    log_error_with_context(error_ref, exc, tenant_id, request.url.path)

    return JSONResponse(
        status_code=500,
        content={
            "error": DEFAULT_ERROR_MESSAGE,
            "reference": error_ref,
            "message": "If this problem persists, contact support with the reference code.",
        },
    )
