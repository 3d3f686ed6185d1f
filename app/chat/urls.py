"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                     GET, POST
        /conversations/{id}/                GET
        /conversations/{id}/messages/       GET, POST

    Messages:
        /messages/                          POST
        /messages/{id}/                     PUT, DELETE
        /messages/{id}/read/                POST
        /messages/{id}/acknowledge/         POST
        /messages/{id}/acknowledgments/     GET

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import ConversationViewSet, MessageViewSet

app_name = "chat"

urlpatterns = [
    # Conversations
    path(
        "conversations/",
        ConversationViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-list",
    ),
    path(
        "conversations/<int:pk>/",
        ConversationViewSet.as_view({"get": "retrieve"}),
        name="conversation-detail",
    ),
    path(
        "conversations/<int:pk>/messages/",
        ConversationViewSet.as_view({"get": "messages", "post": "messages"}),
        name="conversation-messages",
    ),
    # Messages
    path(
        "messages/",
        MessageViewSet.as_view({"post": "create"}),
        name="message-list",
    ),
    path(
        "messages/<int:pk>/",
        MessageViewSet.as_view({"put": "update", "delete": "destroy"}),
        name="message-detail",
    ),
    path(
        "messages/<int:pk>/read/",
        MessageViewSet.as_view({"post": "read"}),
        name="message-read",
    ),
    path(
        "messages/<int:pk>/acknowledge/",
        MessageViewSet.as_view({"post": "acknowledge"}),
        name="message-acknowledge",
    ),
    path(
        "messages/<int:pk>/acknowledgments/",
        MessageViewSet.as_view({"get": "acknowledgments"}),
        name="message-acknowledgments",
    ),
]
