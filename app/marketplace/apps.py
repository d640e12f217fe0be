"""
Marketplace app configuration.

This app provides the project side of the platform:
- Projects, bids and reviews
- Freelancer profiles with reputation tiers
"""

from django.apps import AppConfig


class MarketplaceConfig(AppConfig):
    """Configuration for the marketplace application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"
    verbose_name = "Marketplace"

    def ready(self):
        """Connect signal handlers."""
        from marketplace import signals  # noqa: F401
