"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the marketplace apps. No domain logic
lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Logger, atomic blocks and best-effort side effects

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures (422)
    - NotFoundError: Resource not found (404)
    - PermissionDeniedError: Authorization failures (403)
    - ConflictError: State conflicts, duplicates (409)
    - BusinessRuleError: Domain rule violations (400)
    - ExternalServiceError: Third-party service failures (502)

API (import from core.exception_handler):
    - api_exception_handler: DRF EXCEPTION_HANDLER mapping the above to responses

Note:
    Django models are NOT imported here to avoid AppRegistryNotReady
    errors. Import them directly from core.models.
"""

# Services (no Django model dependencies)
from .services import BaseService

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    BusinessRuleError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

__all__ = [
    # Services
    "BaseService",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "BusinessRuleError",
    "ExternalServiceError",
]
