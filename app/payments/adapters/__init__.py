"""
Payment adapters for external services.

All payment gateway calls go through these adapters to ensure
consistent error handling, timeouts and observability.

Usage:
    from payments.adapters import MidtransAdapter

    gateway = MidtransAdapter.from_settings()
    status = gateway.get_transaction_status(order_id)
"""

from payments.adapters.midtrans import (
    CheckoutSession,
    MidtransAdapter,
    TransactionStatus,
    is_payment_expired_or_cancelled,
    is_payment_success,
)

__all__ = [
    "CheckoutSession",
    "MidtransAdapter",
    "TransactionStatus",
    "is_payment_expired_or_cancelled",
    "is_payment_success",
]
