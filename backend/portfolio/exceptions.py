"""
Portfolio Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for every error scenario the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) map them to
       HTTP status codes and a uniform JSON error body.
Who:   Raised by services, auth dependencies and middleware.

Exception Hierarchy:
    PortfolioError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (write lost an optimistic race)
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error

Rejected writes never change state: ValidationError and PermissionDeniedError
are raised before the write transaction opens, everything else raised inside
it rolls the transaction back.
"""

from typing import Any, Dict, List, Optional


class PortfolioError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info; returned as `details` only by handlers
                  that consider it safe (validation, rate limit)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PortfolioError):
    """
    Raised when client input fails a business rule.

    When:    Malformed email or URL, unknown availability status, duplicate
             social providers, malformed pagination bounds.
    HTTP:    400 Bad Request. Schema-level type errors stay with FastAPI (422).

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Invalid email format",
            "details": {"field": "email", "errors": [...]}
        }
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if errors:
            ctx["errors"] = list(errors)
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = list(errors or [])


class AuthenticationError(PortfolioError):
    """
    Raised when the bearer token is missing, malformed, expired or forged.

    HTTP:    401 Unauthorized, with `WWW-Authenticate: Bearer`.
    """

    status_code = 401
    error_code = "authentication_required"

    def __init__(
        self,
        message: str = "Access token is required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(PortfolioError):
    """
    Raised when an authenticated actor lacks the capability for an operation.

    HTTP:    403 Forbidden.
    Note:    Named to avoid shadowing the builtin PermissionError (an OSError).
    """

    status_code = 403
    error_code = "permission_denied"

    def __init__(
        self,
        capability: str,
        actor: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["required"] = capability
        if actor:
            ctx["actor"] = actor
        super().__init__(
            message="Access denied. Insufficient permissions.",
            context=ctx,
        )
        self.capability = capability
        self.actor = actor


class NotFoundError(PortfolioError):
    """
    Raised when a requested resource does not exist.

    When:    Resetting contact info that was never set.
    HTTP:    404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PortfolioError):
    """
    Raised when a write loses an optimistic-concurrency race.

    What:    Another process replaced the singleton record (or created it)
             between our existence check and our write.
    When:    Raised inside the store's write attempt; retried by tenacity a
             bounded number of times and only then surfaced to the caller.
    HTTP:    409 Conflict. The client may resubmit the same payload.
    """

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The record was modified concurrently. Please retry.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PortfolioError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error. The client only sees a generic message;
             the context (query target, driver error type) is logged.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PortfolioError):
    """
    Raised when a client exceeds its request budget for the current window.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
