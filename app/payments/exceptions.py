"""
Payment-specific exceptions for escrow and payout operations.

Exception Hierarchy:
    BusinessRuleError (core)
    ├── InvalidStateTransitionError - Entity is not in the state the operation needs
    ├── InsufficientBalanceError - Payout larger than the available balance
    └── BankDetailsMissingError - Payout requested without bank details

    ConflictError (core)
    └── SerializationConflictError - Serializable transaction kept failing
    └── LockAcquisitionError - Distributed lock is held elsewhere

    ExternalServiceError (core)
    └── GatewayError - Payment gateway failure (always 502)

Usage:
    from payments.exceptions import InvalidStateTransitionError

    if escrow.status != EscrowStatus.FUNDED:
        raise InvalidStateTransitionError(
            "Escrow is not funded",
            details={"current_status": escrow.status},
        )
"""

from __future__ import annotations

from core.exceptions import BusinessRuleError, ConflictError, ExternalServiceError


class InvalidStateTransitionError(BusinessRuleError):
    """
    Raised when an entity is not in the state an operation requires.

    Services check the state before calling the django-fsm transition,
    so TransitionNotAllowed never reaches the API layer.
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class InsufficientBalanceError(BusinessRuleError):
    """Raised when a payout request exceeds the available balance."""

    default_error_code: str = "INSUFFICIENT_BALANCE"


class BankDetailsMissingError(BusinessRuleError):
    """Raised when a freelancer requests a payout without bank details."""

    default_error_code: str = "BANK_DETAILS_MISSING"


class SerializationConflictError(ConflictError):
    """Raised when a serializable transaction keeps failing after retries."""

    default_error_code: str = "SERIALIZATION_CONFLICT"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Example:
        raise LockAcquisitionError(
            "Could not acquire lock for disputes:auto-sweep",
            details={"key": "disputes:auto-sweep"},
        )
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class GatewayError(ExternalServiceError):
    """
    Raised when the payment gateway fails or cannot be reached.

    Always surfaced as a 502 so clients can tell an upstream outage
    from a rejected request.

    Attributes:
        is_retryable: True for timeouts and 5xx responses
    """

    default_error_code: str = "GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict | None = None,
        is_retryable: bool = False,
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.is_retryable = is_retryable
