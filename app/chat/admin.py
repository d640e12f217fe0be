"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation viewing
- Message moderation (original content and detected flags)
"""

from django.contrib import admin

from chat.models import Conversation, Message, MessageFlag


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ["id", "project", "escrow_active", "created_at"]
    list_filter = ["escrow_active", "created_at"]
    search_fields = ["project__title"]
    readonly_fields = ["project", "escrow_active", "created_at", "updated_at"]
    ordering = ["-created_at"]


class MessageFlagInline(admin.TabularInline):
    model = MessageFlag
    extra = 0
    can_delete = False
    readonly_fields = ["flag_type", "matched_pattern", "created_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Messages are evidence in disputes; admins read, never edit."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "message_type",
        "was_filtered",
        "filter_reason",
        "created_at",
    ]
    list_filter = ["message_type", "was_filtered", "created_at"]
    search_fields = ["original_content", "sender__email"]
    readonly_fields = [
        "conversation",
        "sender",
        "message_type",
        "content",
        "original_content",
        "was_filtered",
        "filter_reason",
        "file_url",
        "created_at",
    ]
    inlines = [MessageFlagInline]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False
