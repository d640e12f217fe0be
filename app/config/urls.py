"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT token obtain/refresh
    /api/v1/marketplace/           - Categories, projects, bids, reviews, tiers
    /api/v1/payments/              - Escrow, earnings, payouts
        webhooks/midtrans/         - Midtrans notification endpoint (POST)
    /api/v1/disputes/              - Dispute lifecycle
    /api/v1/chat/                  - Project conversations and messages

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/", include("authentication.urls")),
    # Marketplace
    path("marketplace/", include("marketplace.urls")),
    # Payments
    path("payments/", include("payments.urls")),
    # Disputes
    path("disputes/", include("disputes.urls")),
    # Chat
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Marketplace Admin"
admin.site.site_title = "Marketplace Admin Portal"
admin.site.index_title = "Projects, escrows, payouts and disputes"
