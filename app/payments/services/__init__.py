"""
Payment services for the escrow and payout lifecycles.

This module provides:
- EscrowService: Escrow creation, funding confirmation, release, earnings
- PayoutService: Balance, payout requests, admin-side processing

Usage:
    from payments.services import EscrowService, PayoutService

    checkout = EscrowService.create_escrow(project_id, client_id)
    payout = PayoutService.request_payout(freelancer_id, amount=250_000)
"""

from payments.services.escrow_service import (
    Earnings,
    EscrowCheckout,
    EscrowService,
    PaymentStatusResult,
    WebhookOutcome,
    build_order_id,
    split_amount,
)
from payments.services.payout_service import PayoutService

__all__ = [
    "Earnings",
    "EscrowCheckout",
    "EscrowService",
    "PaymentStatusResult",
    "PayoutService",
    "WebhookOutcome",
    "build_order_id",
    "split_amount",
]
