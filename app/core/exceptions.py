"""
Base exception classes for application-wide error handling.

This module provides the exception taxonomy shared by every service:
- Consistent error responses across the API
- Machine-readable error codes for client handling
- An HTTP status per error class (see core.exception_handler)

Exception Hierarchy:
    BaseApplicationError (base, 400)
    ├── ValidationError - Bad input shape (422)
    ├── NotFoundError - Entity absent (404)
    ├── PermissionDeniedError - Authenticated but not allowed on this resource (403)
    ├── ConflictError - Duplicates, concurrent modifications (409)
    ├── BusinessRuleError - Domain-rule violation with an explicit status (400)
    └── ExternalServiceError - Third-party service failures (502)

Usage:
    from core.exceptions import BusinessRuleError, NotFoundError

    # Raise with message only
    raise NotFoundError("Escrow not found")

    # Raise with error code and details
    raise BusinessRuleError(
        "Escrow is not funded",
        error_code="ESCROW_NOT_FUNDED",
        details={"status": escrow.status},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        status_code: HTTP status the API layer responds with
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and (when present) details keys

        Example:
            {
                "error": "Escrow is not funded",
                "error_code": "ESCROW_NOT_FUNDED",
                "details": {"status": "PENDING"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails in the service layer.

    Use for malformed values that a serializer cannot catch on its own,
    e.g. a rating outside 1..5 or an unknown outcome.

    Note:
        For DRF serializer validation, use DRF's built-in validation.
    """

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = 422


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        escrow = Escrow.objects.filter(id=escrow_id).first()
        if not escrow:
            raise NotFoundError(
                "Escrow not found",
                details={"escrow_id": str(escrow_id)},
            )
    """

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated user may not act on a specific resource.

    Note:
        For authentication failures (missing/invalid token), DRF raises
        NotAuthenticated. Use this for per-resource authorization.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Duplicate entries (one escrow per project, one review per reviewer)
    - Concurrent modification conflicts
    - Serialization failures that exhausted their retries
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 409


class BusinessRuleError(BaseApplicationError):
    """
    Raised when a domain rule rejects an otherwise well-formed request.

    Wrong state for a transition, insufficient balance and below-minimum
    amounts all land here. The status defaults to 400 and can be set per
    instance when a rule maps to a different response.

    Example:
        raise BusinessRuleError(
            "Only pending payouts can be cancelled",
            error_code="PAYOUT_NOT_PENDING",
        )
    """

    default_error_code: str = "BUSINESS_RULE_VIOLATION"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, error_code=error_code, details=details)
        if status_code is not None:
            self.status_code = status_code


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Payment gateway API failures
    - Network timeouts
    - Unexpected external service responses

    Note:
        Log the original error for debugging but don't expose
        internal details to clients. Always surfaces as 502.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 502
