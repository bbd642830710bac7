"""
Pantry API — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for every error scenario a service can hit.
Why:   Services raise typed errors; global handlers (registered in main.py) map
       them to HTTP status codes and one consistent JSON body. No route needs
       its own try/except.
How:   Each exception carries a user-facing message and an optional context
       dict (logged server-side, returned as "details" only for 4xx errors).

Exception Hierarchy:
    PantryApiError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── UnauthorizedError        → 401 Unauthorized (missing / invalid token)
    ├── ForbiddenError           → 403 Forbidden (authenticated, not allowed)
    ├── NotFoundError            → 404 Not Found (absent, or not the caller's)
    ├── ConflictError            → 409 Conflict (uniqueness violation)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ExternalServiceError     → 503 Service Unavailable (OpenFoodFacts failed)
    ├── CircuitBreakerOpenError  → 503 Service Unavailable (circuit open)
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class PantryApiError(Exception):
    """
    Base exception for all Pantry API application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PantryApiError):
    """
    Raised when a request is well-formed but breaks a business rule.

    HTTP: 400 Bad Request. Schema-level problems are still answered with 422
    by FastAPI itself; this covers rules only a service can check (for
    example "Use leave endpoint to leave the group").
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


class UnauthorizedError(PantryApiError):
    """Raised when the bearer token is missing, malformed, expired or not signed by the realm."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(PantryApiError):
    """
    Raised when the caller is authenticated but may not touch the resource.

    When:    Missing role, not the owner of a pantry / shopping list, not a
             member (or not an admin) of a group.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PantryApiError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception. Dishes and meal logs owned by someone else are also
    reported as not found so their existence is not disclosed.

    The default message names the resource; services pass `message` when the
    API promises specific wording (e.g. "Invalid invite code").
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PantryApiError):
    """
    Raised on a uniqueness violation detected before the write.

    Examples: duplicate food barcode, duplicate pantry title for the same user,
    joining a group twice, a food already on the shopping list.
    HTTP: 409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExternalServiceError(PantryApiError):
    """
    Raised when OpenFoodFacts fails after all retries.

    HTTP: 503 Service Unavailable, with Retry-After when the upstream asked us
    to slow down (HTTP 429 from OpenFoodFacts).
    """

    def __init__(
        self,
        message: str = "OpenFoodFacts is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(PantryApiError):
    """
    Raised when the OpenFoodFacts circuit breaker is OPEN.

    CLOSED → (N consecutive failures) → OPEN → (recovery timeout) → HALF_OPEN
    → success: CLOSED / failure: OPEN again.
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"OpenFoodFacts is temporarily unavailable due to repeated failures. "
            f"Calls resume automatically in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class DatabaseError(PantryApiError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; the SQLAlchemy error
    type is kept in context and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PantryApiError):
    """Raised when a client exceeds the per-IP request rate limit."""

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
