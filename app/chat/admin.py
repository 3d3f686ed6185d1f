"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management
- Participant viewing
- Message moderation (including soft-deleted messages)
"""

from django.contrib import admin

from chat.models import Conversation, Message, Participant


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in conversation admin."""

    model = Participant
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = ["id", "conversation_type", "name", "created_by", "created_at", "updated_at"]
    list_filter = ["conversation_type", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["created_by"]
    inlines = [ParticipantInline]
    ordering = ["-updated_at"]


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    """Admin interface for Participant model."""

    list_display = ["id", "conversation", "user", "role", "joined_at"]
    list_filter = ["role", "joined_at"]
    search_fields = ["user__email", "conversation__name"]
    readonly_fields = ["joined_at"]
    raw_id_fields = ["conversation", "user"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """
    Admin interface for Message model.

    Uses all_objects so moderators can see soft-deleted messages.
    """

    list_display = [
        "id",
        "conversation",
        "sender",
        "message_type",
        "classification",
        "priority",
        "is_edited",
        "is_deleted",
        "created_at",
    ]
    list_filter = ["message_type", "classification", "priority", "is_deleted", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["content_hash", "read_by", "created_at", "updated_at", "deleted_at"]
    raw_id_fields = ["conversation", "sender"]

    def get_queryset(self, request):
        return Message.all_objects.select_related("sender", "conversation")
