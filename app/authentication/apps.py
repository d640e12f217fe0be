"""
Django app configuration for authentication.
"""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Custom user model with marketplace roles (client, freelancer, admin)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Accounts"
