"""
TIL Backend — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) turn them into
       structured JSON error responses with the right HTTP status code.
Who:   Raised by repositories, services and route dependencies.

Exception Hierarchy:
    TILError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    └── OAuthProviderError       → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class TILError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where harmless)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TILError):
    """
    Raised when client input fails a business rule.

    When:    Missing search term, blank names, malformed form payloads.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(TILError):
    """
    Raised when a request carries no valid credentials.

    When:    Missing/invalid bearer token, wrong basic credentials.
    HTTP:    401 Unauthorized, with a WWW-Authenticate challenge.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        scheme: str = "Bearer",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.scheme = scheme


class ForbiddenError(TILError):
    """
    Raised when a request is understood but refused.

    When:    CSRF token mismatch on website forms, OAuth state mismatch.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "This action is not allowed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TILError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; repositories and routes convert
    that None into NotFoundError so the global handler answers 404.
    """

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


class ConflictError(TILError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Duplicate username, duplicate category name via the API.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TILError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation, deadlock.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The context
        (original error type, operation) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class OAuthProviderError(TILError):
    """
    Raised when the OAuth provider cannot complete the login.

    When:    Token exchange fails, userinfo returns an unexpected status,
             transport errors persist after tenacity retries.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "The login provider is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TILError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
