"""
URL configuration for chat API.

URL Structure:
    /projects/{project_id}/conversation/   GET
    /conversations/{id}/messages/          GET, POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import MessageListView, ProjectConversationView

app_name = "chat"

urlpatterns = [
    path(
        "projects/<uuid:project_id>/conversation/",
        ProjectConversationView.as_view(),
        name="project-conversation",
    ),
    path(
        "conversations/<int:conversation_id>/messages/",
        MessageListView.as_view(),
        name="conversation-messages",
    ),
]
