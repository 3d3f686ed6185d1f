"""
Chat application configuration.

This app provides the chat system with:
- Direct (1:1) and group conversations
- Admin/member participant roles
- Soft-deletable messages with read tracking
- Realtime fan-out to connected participants
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
