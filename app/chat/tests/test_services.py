"""
Tests for MessageService.

Tests cover:
- Delivery and redaction depending on the escrow flag
- Blocked messages: SYSTEM record kept, MESSAGE_BLOCKED raised
- File sharing lock
- History visibility for participants and admins
"""

import uuid

import pytest

from chat.filters import REDACTION_TOKEN
from chat.models import FlagType, Message, MessageFlag, MessageType
from chat.services import MAX_CONTENT_LENGTH, MessageService
from chat.tests.factories import MessageFactory
from core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


@pytest.mark.django_db
class TestSendMessage:
    def test_clean_message_delivered(self, conversation, client_user):
        message = MessageService.send_message(conversation.id, client_user.id, "Hi there")

        assert message.message_type == MessageType.TEXT
        assert message.content == "Hi there"
        assert message.was_filtered is False

    def test_blocked_message_is_recorded(self, conversation, freelancer):
        """Should store a SYSTEM record with the flags, then raise."""
        with pytest.raises(BusinessRuleError) as exc_info:
            MessageService.send_message(
                conversation.id, freelancer.id, "contact me at 08123456789 or foo@bar.com"
            )

        assert exc_info.value.error_code == "MESSAGE_BLOCKED"
        assert exc_info.value.details == {
            "flags": ["PHONE", "EMAIL", "URL", "SOCIAL_MEDIA", "KEYWORD"]
        }
        record = Message.objects.get(conversation=conversation)
        assert record.message_type == MessageType.SYSTEM
        assert record.content == ""
        assert record.original_content == "contact me at 08123456789 or foo@bar.com"
        assert record.sender_id == freelancer.id
        assert record.filter_reason == "PHONE,EMAIL,URL,SOCIAL_MEDIA,KEYWORD"
        assert MessageFlag.objects.filter(message=record, flag_type=FlagType.KEYWORD).exists()

    def test_redacted_after_escrow(self, active_conversation, client_user):
        """Should deliver a sanitized message once the escrow is funded."""
        message = MessageService.send_message(
            active_conversation.id, client_user.id, "call 0812-3456-7890 please"
        )

        assert message.message_type == MessageType.TEXT
        assert message.content == f"call {REDACTION_TOKEN} please"
        assert message.original_content == "call 0812-3456-7890 please"
        assert message.was_filtered is True
        assert message.filter_reason == FlagType.PHONE

    def test_file_locked_before_escrow(self, conversation, client_user):
        with pytest.raises(BusinessRuleError):
            MessageService.send_message(
                conversation.id,
                client_user.id,
                "",
                message_type=MessageType.FILE,
                file_url="https://files.example.com/brief.pdf",
            )

        assert not Message.objects.exists()

    def test_file_after_escrow(self, active_conversation, freelancer):
        message = MessageService.send_message(
            active_conversation.id,
            freelancer.id,
            "",
            message_type=MessageType.FILE,
            file_url="https://files.example.com/draft.pdf",
        )

        assert message.message_type == MessageType.FILE
        assert message.file_url == "https://files.example.com/draft.pdf"

    def test_file_requires_url(self, active_conversation, freelancer):
        with pytest.raises(ValidationError):
            MessageService.send_message(
                active_conversation.id, freelancer.id, "", message_type=MessageType.FILE
            )

    def test_system_type_not_accepted(self, conversation, client_user):
        with pytest.raises(ValidationError):
            MessageService.send_message(
                conversation.id, client_user.id, "hi", message_type=MessageType.SYSTEM
            )

    @pytest.mark.parametrize("content", ["", "   "])
    def test_empty_text(self, conversation, client_user, content):
        with pytest.raises(ValidationError):
            MessageService.send_message(conversation.id, client_user.id, content)

    def test_too_long(self, conversation, client_user):
        with pytest.raises(ValidationError):
            MessageService.send_message(
                conversation.id, client_user.id, "a" * (MAX_CONTENT_LENGTH + 1)
            )

    def test_outsider_rejected(self, conversation, admin_user):
        with pytest.raises(PermissionDeniedError):
            MessageService.send_message(conversation.id, admin_user.id, "Hello")

    def test_unknown_conversation(self, client_user):
        with pytest.raises(NotFoundError):
            MessageService.send_message(987654, client_user.id, "Hello")


@pytest.mark.django_db
class TestListMessages:
    def test_participants_do_not_see_block_records(self, conversation, client_user):
        MessageFactory(conversation=conversation, content="first")
        MessageFactory(conversation=conversation, message_type=MessageType.SYSTEM, content="")
        MessageFactory(conversation=conversation, content="second")

        page = MessageService.list_messages(conversation.id, client_user)

        assert [m.content for m in page.object_list] == ["first", "second"]

    def test_admin_sees_everything(self, conversation, admin_user):
        MessageFactory(conversation=conversation)
        MessageFactory(conversation=conversation, message_type=MessageType.SYSTEM, content="")

        page = MessageService.list_messages(conversation.id, admin_user)

        assert page.paginator.count == 2

    def test_outsider_rejected(self, conversation):
        from authentication.tests.factories import FreelancerFactory

        with pytest.raises(PermissionDeniedError):
            MessageService.list_messages(conversation.id, FreelancerFactory())

    def test_pagination(self, conversation, freelancer):
        MessageFactory.create_batch(5, conversation=conversation)

        page = MessageService.list_messages(conversation.id, freelancer, page=2, page_size=2)

        assert page.number == 2
        assert len(page.object_list) == 2


@pytest.mark.django_db
class TestGetForProject:
    def test_returns_conversation(self, conversation, freelancer):
        found = MessageService.get_for_project(conversation.project_id, freelancer)

        assert found.id == conversation.id

    def test_missing(self, client_user):
        with pytest.raises(NotFoundError):
            MessageService.get_for_project(uuid.uuid4(), client_user)
