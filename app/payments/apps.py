"""
Payments app configuration.

This app provides the money side of the marketplace:
- Escrow holding client funds for a project (Midtrans Snap checkout)
- Payouts of released funds to freelancers
- Append-only transaction and admin audit logs
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
