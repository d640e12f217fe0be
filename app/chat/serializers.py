"""
Serializers for chat API.

Serializer Hierarchy:
    ConversationSerializer: Conversation with its project id and escrow flag
    MessageSerializer: Delivered message as the counterparty sees it
    AdminMessageSerializer: Adds original content and flags for moderation
    MessageCreateSerializer: Send new message
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from chat.models import Conversation, Message, MessageFlag, MessageType


class ConversationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Conversation
        fields = ["id", "project", "escrow_active", "created_at"]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    """Message as delivered. The original text is never exposed here."""

    sender = UserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation",
            "sender",
            "message_type",
            "content",
            "was_filtered",
            "file_url",
            "created_at",
        ]
        read_only_fields = fields


class MessageFlagSerializer(serializers.ModelSerializer):
    class Meta:
        model = MessageFlag
        fields = ["flag_type", "matched_pattern"]
        read_only_fields = fields


class AdminMessageSerializer(MessageSerializer):
    """Moderation view including what the sender actually typed."""

    flags = MessageFlagSerializer(many=True, read_only=True)

    class Meta(MessageSerializer.Meta):
        fields = [*MessageSerializer.Meta.fields, "original_content", "filter_reason", "flags"]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending a message.

    Fields:
        content: Message text (may be empty for FILE messages)
        message_type: TEXT (default) or FILE
        file_url: Required for FILE messages
    """

    content = serializers.CharField(allow_blank=True, default="", trim_whitespace=False)
    message_type = serializers.ChoiceField(
        choices=[MessageType.TEXT, MessageType.FILE],
        default=MessageType.TEXT,
    )
    file_url = serializers.URLField(required=False, allow_blank=True, default="")
