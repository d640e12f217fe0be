"""
Chat message service.

Every outgoing message passes the contact-info filter before it is
stored. Before the project's escrow is funded any flagged message is
blocked; afterwards it is delivered with the flagged spans redacted.

Usage:
    from chat.services import MessageService

    message = MessageService.send_message(conversation_id, sender_id, "Hi!")
    page = MessageService.list_messages(conversation_id, user)
"""

from __future__ import annotations

from django.core.paginator import Paginator

from chat.filters import filter_content
from chat.models import Conversation, Message, MessageFlag, MessageType
from core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService

FILE_SHARING_LOCKED_MESSAGE = "File sharing is only available after escrow payment"
BLOCKED_MESSAGE = (
    "Your message was blocked. Sharing contact information outside escrow is not allowed."
)

MAX_CONTENT_LENGTH = 5000
DEFAULT_PAGE_SIZE = 50


class MessageService(BaseService):
    """
    Service for sending and reading chat messages.

    Methods:
        send_message: Filter, persist and return a message
        list_messages: Paginated history for a participant
    """

    @classmethod
    def _get_conversation(cls, conversation_id) -> Conversation:
        conversation = (
            Conversation.objects.select_related("project").filter(id=conversation_id).first()
        )
        if conversation is None:
            raise NotFoundError("Conversation not found")
        return conversation

    @classmethod
    def send_message(
        cls,
        conversation_id,
        sender_id,
        content: str,
        message_type: str = MessageType.TEXT,
        file_url: str = "",
    ) -> Message:
        """
        Send a message in a project conversation.

        Steps:
            1. Sender must be the project's client or selected freelancer
            2. FILE messages require an active escrow
            3. Content runs through the contact-info filter
            4. A blocked message is stored as a SYSTEM record and the
               call raises BusinessRuleError

        Args:
            conversation_id: Conversation to post in
            sender_id: Authoring user
            content: Message text
            message_type: TEXT or FILE
            file_url: Location of the shared file (FILE only)

        Returns:
            The delivered Message

        Raises:
            NotFoundError: Unknown conversation
            PermissionDeniedError: Sender is not a participant
            ValidationError: Empty or oversized content, bad message type
            BusinessRuleError: File sharing locked, or message blocked
        """
        conversation = cls._get_conversation(conversation_id)

        if not conversation.project.is_participant(sender_id):
            raise PermissionDeniedError("Not a participant in this conversation")

        if message_type not in (MessageType.TEXT, MessageType.FILE):
            raise ValidationError(
                f"Unsupported message type: {message_type}",
                details={"message_type": message_type},
            )

        content = content or ""
        if message_type == MessageType.TEXT and not content.strip():
            raise ValidationError("Message content cannot be empty")
        if len(content) > MAX_CONTENT_LENGTH:
            raise ValidationError(
                f"Message content cannot exceed {MAX_CONTENT_LENGTH} characters"
            )

        if message_type == MessageType.FILE:
            if not conversation.escrow_active:
                raise BusinessRuleError(FILE_SHARING_LOCKED_MESSAGE)
            if not file_url:
                raise ValidationError("file_url is required for file messages")

        result = filter_content(content, conversation.escrow_active)

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                sender_id=sender_id,
                message_type=MessageType.SYSTEM if result.is_blocked else message_type,
                content=result.sanitized_content,
                original_content=content,
                was_filtered=result.was_filtered,
                filter_reason=result.reason,
                file_url="" if result.is_blocked else file_url,
            )
            if result.flags:
                MessageFlag.objects.bulk_create(
                    [
                        MessageFlag(
                            message=message,
                            flag_type=flag.flag_type,
                            matched_pattern=flag.pattern[:255],
                        )
                        for flag in result.flags
                    ]
                )

        log_extra = {
            "conversation_id": conversation.id,
            "message_id": message.id,
            "sender_id": sender_id,
            "filter_reason": result.reason,
        }

        if result.is_blocked:
            # The block record must survive the raise below
            cls.get_logger().warning("Chat message blocked", extra=log_extra)
            raise BusinessRuleError(
                BLOCKED_MESSAGE,
                error_code="MESSAGE_BLOCKED",
                details={"flags": result.reason.split(",")},
            )

        if result.was_filtered:
            cls.get_logger().info("Chat message delivered with redactions", extra=log_extra)

        return message

    @classmethod
    def list_messages(cls, conversation_id, user, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Return one page of a conversation's history, oldest first.

        Block records (SYSTEM messages) are only visible to admins.

        Raises:
            NotFoundError: Unknown conversation
            PermissionDeniedError: User is neither participant nor admin
        """
        conversation = cls._get_conversation(conversation_id)

        if not (user.is_platform_admin or conversation.project.is_participant(user.id)):
            raise PermissionDeniedError("Not a participant in this conversation")

        queryset = conversation.messages.select_related("sender").order_by("created_at", "id")
        if not user.is_platform_admin:
            queryset = queryset.exclude(message_type=MessageType.SYSTEM)

        return Paginator(queryset, page_size).get_page(page)

    @classmethod
    def get_for_project(cls, project_id, user) -> Conversation:
        """Return the conversation of a project the user takes part in."""
        conversation = (
            Conversation.objects.select_related("project").filter(project_id=project_id).first()
        )
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if not (user.is_platform_admin or conversation.project.is_participant(user.id)):
            raise PermissionDeniedError("Not a participant in this conversation")
        return conversation
