"""
Chat application configuration.

This app provides the per-project chat with:
- One conversation per project, unlocked by escrow funding
- Contact-info filtering on every message
- Flag records for moderation
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
