"""
Views for chat API.

URL Structure:
    /api/v1/chat/projects/{project_id}/conversation/      GET
    /api/v1/chat/conversations/{id}/messages/             GET, POST

Design Decisions:
    - Views only parse input and render output; MessageService owns
      participant checks and the contact-info filter
    - Admins get the moderation serializer (original content and flags)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.serializers import (
    AdminMessageSerializer,
    ConversationSerializer,
    MessageCreateSerializer,
    MessageSerializer,
)
from chat.services import MessageService
from core.pagination import page_params, page_payload


class ProjectConversationView(APIView):
    """
    Get the conversation of a project.

    GET /api/v1/chat/projects/{project_id}/conversation/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_project_conversation",
        summary="Get project conversation",
        tags=["Chat"],
        responses=ConversationSerializer,
    )
    def get(self, request, project_id):
        conversation = MessageService.get_for_project(project_id, request.user)
        return Response(ConversationSerializer(conversation).data)


class MessageListView(APIView):
    """
    List or send messages in a conversation.

    GET /api/v1/chat/conversations/{id}/messages/?page=1&page_size=50
    POST /api/v1/chat/conversations/{id}/messages/

    Request body:
        {"content": "Hello", "message_type": "TEXT"}
        {"content": "", "message_type": "FILE", "file_url": "https://..."}

    A blocked message answers 400 with error_code MESSAGE_BLOCKED.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_messages",
        summary="List messages",
        tags=["Chat"],
        responses=MessageSerializer(many=True),
    )
    def get(self, request, conversation_id):
        page_number, page_size = page_params(request)
        page = MessageService.list_messages(
            conversation_id, request.user, page=page_number, page_size=page_size
        )
        serializer_class = (
            AdminMessageSerializer if request.user.is_platform_admin else MessageSerializer
        )
        return Response(page_payload(page, serializer_class))

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        tags=["Chat"],
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
    )
    def post(self, request, conversation_id):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = MessageService.send_message(
            conversation_id,
            request.user.id,
            serializer.validated_data["content"],
            message_type=serializer.validated_data["message_type"],
            file_url=serializer.validated_data["file_url"],
        )
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
