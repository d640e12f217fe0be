"""
Chat system models.

Every project with an accepted bid has exactly one conversation between
its client and selected freelancer. Messages run through the contact-info
filter before they are stored.

Models:
    Conversation: One per project, carries the escrow-active flag
    Message: A message with its filter outcome
    MessageFlag: One detected contact-info span, kept for admin audit

Design Decisions:
    - The escrow-active flag is flipped in the same transaction that funds
      the escrow, so chat unlock and payment confirmation never disagree
    - Blocked messages are stored as SYSTEM messages with an empty
      delivered content and the original kept in original_content
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT: User-authored text message
    FILE: Shared file (only after the escrow is funded)
    SYSTEM: Platform-generated record, e.g. a blocked message
    """

    TEXT = "TEXT", "Text"
    FILE = "FILE", "File"
    SYSTEM = "SYSTEM", "System"


class FlagType(models.TextChoices):
    """Kinds of off-platform contact attempts the filter detects."""

    PHONE = "PHONE", "Phone"
    EMAIL = "EMAIL", "Email"
    URL = "URL", "URL"
    SOCIAL_MEDIA = "SOCIAL_MEDIA", "Social Media"
    KEYWORD = "KEYWORD", "Keyword"


class Conversation(BaseModel):
    """
    The chat between a project's client and its selected freelancer.

    Fields:
        project: The project this conversation belongs to
        escrow_active: True once the project's escrow is funded
    """

    project = models.OneToOneField(
        "marketplace.Project",
        on_delete=models.CASCADE,
        related_name="conversation",
    )
    escrow_active = models.BooleanField(
        default=False,
        help_text="Unlocks file sharing and URLs once the escrow is funded",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Conversation({self.project_id}, escrow_active={self.escrow_active})"


class Message(BaseModel):
    """
    A message within a conversation.

    Fields:
        conversation: Conversation this message belongs to
        sender: Author (kept for SYSTEM block records too)
        message_type: TEXT, FILE or SYSTEM
        content: What the counterparty sees (sanitized, empty when blocked)
        original_content: What the sender typed
        was_filtered: True if the filter flagged anything
        filter_reason: Comma-separated flag types that fired
        file_url: Shared file location for FILE messages
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
    )
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        db_index=True,
    )
    content = models.TextField(blank=True, default="")
    original_content = models.TextField(blank=True, default="")
    was_filtered = models.BooleanField(default=False, db_index=True)
    filter_reason = models.CharField(max_length=200, blank=True, default="")
    file_url = models.URLField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["conversation", "created_at"], name="message_conv_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Message({self.message_type}, {self.conversation_id})"


class MessageFlag(models.Model):
    """One contact-info span the filter detected in a message."""

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="flags",
    )
    flag_type = models.CharField(max_length=20, choices=FlagType.choices, db_index=True)
    matched_pattern = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"MessageFlag({self.flag_type}, {self.matched_pattern!r})"
