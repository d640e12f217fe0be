"""
End-to-end tests for the chat endpoints.
"""

import pytest

from chat.models import MessageType
from chat.tests.factories import MessageFactory

BASE = "/api/v1/chat"


@pytest.mark.django_db
class TestChatEndpoints:
    def test_get_project_conversation(self, auth_client, client_user, conversation):
        response = auth_client(client_user).get(
            f"{BASE}/projects/{conversation.project_id}/conversation/"
        )

        assert response.status_code == 200
        assert response.data["escrow_active"] is False

    def test_send_message(self, auth_client, freelancer, conversation):
        response = auth_client(freelancer).post(
            f"{BASE}/conversations/{conversation.id}/messages/",
            {"content": "Draft is ready for review"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["content"] == "Draft is ready for review"

    def test_blocked_message(self, auth_client, freelancer, conversation):
        """Should answer 400 MESSAGE_BLOCKED with the flag types."""
        response = auth_client(freelancer).post(
            f"{BASE}/conversations/{conversation.id}/messages/",
            {"content": "whatsapp me 0812-3456-7890"},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["error_code"] == "MESSAGE_BLOCKED"
        assert "PHONE" in response.data["details"]["flags"]
        assert "KEYWORD" in response.data["details"]["flags"]

    def test_history_hides_original_content_from_participants(
        self, auth_client, client_user, conversation
    ):
        MessageFactory(conversation=conversation, content="hello")

        response = auth_client(client_user).get(
            f"{BASE}/conversations/{conversation.id}/messages/"
        )

        assert response.data["count"] == 1
        assert "original_content" not in response.data["results"][0]

    def test_admin_history_includes_flags(self, auth_client, admin_user, conversation):
        MessageFactory(
            conversation=conversation,
            message_type=MessageType.SYSTEM,
            content="",
            original_content="my wa 0812-3456-7890",
            filter_reason="PHONE,KEYWORD",
        )

        response = auth_client(admin_user).get(
            f"{BASE}/conversations/{conversation.id}/messages/"
        )

        result = response.data["results"][0]
        assert result["original_content"] == "my wa 0812-3456-7890"
        assert result["filter_reason"] == "PHONE,KEYWORD"
        assert result["flags"] == []

    def test_outsider_gets_403(self, auth_client, conversation):
        from authentication.tests.factories import ClientFactory

        response = auth_client(ClientFactory()).get(
            f"{BASE}/conversations/{conversation.id}/messages/"
        )

        assert response.status_code == 403
