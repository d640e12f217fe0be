"""
URL configuration for the payments app.

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments import views
from payments.webhooks.views import midtrans_webhook

app_name = "payments"

urlpatterns = [
    # Escrow
    path("escrows/", views.EscrowCreateView.as_view(), name="escrow-create"),
    path("escrows/<uuid:escrow_id>/", views.EscrowDetailView.as_view(), name="escrow-detail"),
    path(
        "escrows/<uuid:escrow_id>/renew/",
        views.EscrowRenewView.as_view(),
        name="escrow-renew",
    ),
    path(
        "escrows/<uuid:escrow_id>/check-status/",
        views.EscrowCheckStatusView.as_view(),
        name="escrow-check-status",
    ),
    path(
        "escrows/<uuid:escrow_id>/release/",
        views.EscrowReleaseView.as_view(),
        name="escrow-release",
    ),
    path("earnings/", views.EarningsView.as_view(), name="earnings"),
    # Payouts
    path("payouts/", views.PayoutListView.as_view(), name="payout-list"),
    path("payouts/balance/", views.PayoutBalanceView.as_view(), name="payout-balance"),
    path("payouts/<uuid:payout_id>/", views.PayoutCancelView.as_view(), name="payout-cancel"),
    # Admin
    path(
        "admin/payouts/<uuid:payout_id>/process/",
        views.AdminPayoutProcessView.as_view(),
        name="admin-payout-process",
    ),
    path(
        "admin/payouts/<uuid:payout_id>/complete/",
        views.AdminPayoutCompleteView.as_view(),
        name="admin-payout-complete",
    ),
    path(
        "admin/payouts/<uuid:payout_id>/fail/",
        views.AdminPayoutFailView.as_view(),
        name="admin-payout-fail",
    ),
    # Webhook endpoints
    path("webhooks/midtrans/", midtrans_webhook, name="midtrans_webhook"),
]
