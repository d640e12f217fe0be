"""
Payment domain models.

This module contains all payment-related models:
- Escrow: Funds held for one project between checkout and release
- GatewayOrder: Every gateway order id issued for an escrow
- Payout: Money transfers to a freelancer's bank account
- TransactionLog: Append-only record of financial state transitions
- AdminAction: Append-only record of admin-initiated operations
"""

from payments.models.audit import AdminAction, ImmutableRecordError, TransactionLog
from payments.models.escrow import ORDER_ID_PREFIX, Escrow, GatewayOrder
from payments.models.payout import Payout

__all__ = [
    "ORDER_ID_PREFIX",
    "AdminAction",
    "Escrow",
    "GatewayOrder",
    "ImmutableRecordError",
    "Payout",
    "TransactionLog",
]
