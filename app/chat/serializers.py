"""
Serializers for chat API.

Serializer Hierarchy:
    ParticipantSerializer: Participant with embedded user
    ConversationSerializer: Conversation with participants
    ConversationCreateSerializer: Create request body

    MessageSerializer: Message body used by REST responses and realtime
        new_message events (the two must stay identical)
    MessageCreateSerializer: Send request body (conversation in URL or body)
    MessageUpdateSerializer: Edit request body

Design Decisions:
    - Read and write serializers are separate
    - The message type field is exposed as ``type``
    - Deleted messages never reach MessageSerializer; listing excludes them
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from chat.constants import MESSAGE_CONFIG
from chat.models import (
    Conversation,
    Message,
    MessageClassification,
    MessagePriority,
    MessageType,
    Participant,
)


# =============================================================================
# Conversation Serializers
# =============================================================================


class ParticipantSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Participant
        fields = ["id", "user", "role", "joined_at"]
        read_only_fields = fields


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation with its participants.

    Expects participants (with users) to be prefetched.
    """

    participants = ParticipantSerializer(many=True, read_only=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "name",
            "conversation_type",
            "created_by",
            "participants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ConversationCreateSerializer(serializers.Serializer):
    """
    Request body for creating a conversation.

    One participant id creates a direct conversation; more create a group.
    """

    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Message representation shared by REST and realtime delivery.
    """

    sender = UserSummarySerializer(read_only=True)
    # Realtime clients key on senderId; REST clients use sender_id
    senderId = serializers.IntegerField(source="sender_id", read_only=True)
    type = serializers.CharField(source="message_type", read_only=True)
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "sender_id",
            "senderId",
            "content",
            "encrypted_content",
            "type",
            "classification",
            "priority",
            "requires_acknowledgment",
            "metadata",
            "content_hash",
            "is_edited",
            "read_by",
            "is_read",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Request body for sending a message.

    conversation_id (or its camelCase alias conversationId) is required on
    POST /chat/messages/ and taken from the URL on
    POST /chat/conversations/{id}/messages/.
    """

    conversation_id = serializers.IntegerField(required=False, min_value=1)
    conversationId = serializers.IntegerField(required=False, min_value=1, write_only=True)
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=True,
    )
    type = serializers.ChoiceField(
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    metadata = serializers.JSONField(required=False, default=dict)
    classification = serializers.ChoiceField(
        choices=MessageClassification.choices,
        required=False,
        allow_null=True,
        default=None,
    )
    priority = serializers.ChoiceField(
        choices=MessagePriority.choices,
        default=MessagePriority.NORMAL,
    )
    requires_acknowledgment = serializers.BooleanField(default=False)
    encrypted_content = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_metadata(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Metadata must be an object.")
        return value

    def validate(self, attrs):
        alias = attrs.pop("conversationId", None)
        if attrs.get("conversation_id") is None and alias is not None:
            attrs["conversation_id"] = alias
        return attrs


class MessageUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=True,
    )
