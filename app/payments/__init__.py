"""
Payments app for escrow and payouts.

This app handles:
- Escrow creation and funding through Midtrans
- Webhook and polling confirmation of payments
- Escrow release to the freelancer
- Payout requests and admin payout processing
- Transaction and admin action audit logs

Related apps:
    - marketplace: Projects, accepted bids and freelancer bank details
    - disputes: Freezes, refunds and releases escrows
    - chat: Funding an escrow unlocks the project conversation

Usage:
    from payments.services import EscrowService, PayoutService

    checkout = EscrowService.create_escrow(project_id, client_id)
    EscrowService.handle_webhook(notification)

    payout = PayoutService.request_payout(freelancer_id, amount=250_000)
"""
