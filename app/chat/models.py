"""
Chat system models.

This module defines the data models for conversations and messages:
- Direct (1:1) conversations between exactly two users
- Group conversations with an admin/member role split

Models:
    Conversation: Container for messages between participants
    Participant: User membership in a conversation
    Message: Individual message within a conversation (soft-deletable)

Design Decisions:
    - Conversation.updated_at is bumped on every new message and orders the inbox
    - Messages are soft deleted so compliance records keep a valid target
    - read_by is an append-only JSON list of user ids with set semantics
    - content_hash is the sha256 of content and is recomputed on edit
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models

from core.managers import SoftDeleteManager
from core.model_mixins import SoftDeleteMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class ConversationType(models.TextChoices):
    """
    Type of conversation.

    DIRECT: Exactly two participants
    GROUP: Three or more participants (creator plus two or more others)
    """

    DIRECT = "direct", "Direct Message"
    GROUP = "group", "Group"


class ParticipantRole(models.TextChoices):
    """
    Role within a conversation.

    The creator becomes ADMIN; everyone else joins as MEMBER.
    """

    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"


class MessageType(models.TextChoices):
    TEXT = "text", "Text"
    FILE = "file", "File"
    IMAGE = "image", "Image"
    VOICE = "voice", "Voice"
    SYSTEM = "system", "System"


class MessageClassification(models.TextChoices):
    """Compliance classification used by retention policies."""

    POLICY_NOTIFICATION = "policy_notification", "Policy Notification"
    AUDIT_NOTICE = "audit_notice", "Audit Notice"
    CORRECTIVE_ACTION = "corrective_action", "Corrective Action"
    SECURITY_ALERT = "security_alert", "Security Alert"
    COMPLIANCE_REQUIREMENT = "compliance_requirement", "Compliance Requirement"
    GENERAL = "general", "General"


class MessagePriority(models.TextChoices):
    LOW = "low", "Low"
    NORMAL = "normal", "Normal"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class Conversation(BaseModel):
    """
    A conversation between two or more users.

    Fields:
        name: Optional display name (usually empty for direct conversations)
        conversation_type: direct or group
        created_by: User who created the conversation

    Relationships:
        participants: Participant records for this conversation
        messages: Message records for this conversation
    """

    name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Display name (optional)",
    )

    conversation_type = models.CharField(
        max_length=10,
        choices=ConversationType.choices,
        default=ConversationType.DIRECT,
        db_index=True,
        help_text="Type of conversation (direct or group)",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conversations",
        help_text="User who created this conversation",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["-updated_at"], name="chat_conv_updated_idx"),
        ]

    def __str__(self) -> str:
        if self.name:
            return f"{self.get_conversation_type_display()}: {self.name}"
        return f"{self.get_conversation_type_display()}({self.pk})"

    @property
    def is_direct(self) -> bool:
        return self.conversation_type == ConversationType.DIRECT

    def member_ids(self) -> set[int]:
        """Return the user ids of every participant."""
        return set(self.participants.values_list("user_id", flat=True))

    def has_participant(self, user: User) -> bool:
        return self.participants.filter(user=user).exists()


class Participant(models.Model):
    """
    Membership of a user in a conversation.

    Constraints:
        - UniqueConstraint(conversation, user): at most one row per user
          per conversation
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this membership belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="Participating user",
    )

    role = models.CharField(
        max_length=10,
        choices=ParticipantRole.choices,
        default=ParticipantRole.MEMBER,
        help_text="Role in the conversation",
    )

    joined_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user joined this conversation",
    )

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_conversation_participant",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "conversation"], name="chat_part_user_conv_idx"),
        ]

    def __str__(self) -> str:
        return f"Participant: {self.user_id} in {self.conversation_id} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == ParticipantRole.ADMIN


class Message(SoftDeleteMixin, BaseModel):
    """
    A message within a conversation.

    Soft Delete Behavior:
        Message.objects hides deleted rows. Message.all_objects sees them,
        which retention reports and compliance lookups rely on.

    Read Tracking:
        read_by starts as [sender_id]. A message counts as read once anyone
        other than the sender has read it, i.e. len(read_by) > 1.

    Fields:
        conversation: Conversation this message belongs to
        sender: User who sent the message
        content: Message body
        message_type: text, file, image, voice or system
        classification: Optional compliance classification
        priority: low, normal, high or urgent
        requires_acknowledgment: Whether recipients must acknowledge it
        metadata: Free-form JSON object supplied by the client
        encrypted_content: Optional ciphertext reference
        content_hash: sha256 hex of content
        is_edited: Whether the content has been edited
        read_by: JSON list of user ids that have read the message
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    content = models.TextField(help_text="Message text")

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of message content",
    )

    classification = models.CharField(
        max_length=32,
        choices=MessageClassification.choices,
        null=True,
        blank=True,
        db_index=True,
        help_text="Compliance classification (null when unclassified)",
    )

    priority = models.CharField(
        max_length=10,
        choices=MessagePriority.choices,
        default=MessagePriority.NORMAL,
        help_text="Delivery priority",
    )

    requires_acknowledgment = models.BooleanField(
        default=False,
        help_text="Whether recipients must acknowledge this message",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Client-supplied metadata object",
    )

    encrypted_content = models.TextField(
        blank=True,
        default="",
        help_text="Optional ciphertext reference",
    )

    content_hash = models.CharField(
        max_length=64,
        help_text="sha256 hex digest of content",
    )

    is_edited = models.BooleanField(
        default=False,
        help_text="Whether the content has been edited",
    )

    read_by = models.JSONField(
        default=list,
        blank=True,
        help_text="User ids that have read this message",
    )

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_created_idx",
            ),
            models.Index(
                fields=["sender", "-created_at"],
                name="chat_msg_sender_idx",
            ),
        ]

    def __str__(self) -> str:
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        deleted_str = " [deleted]" if self.is_deleted else ""
        return f"User {self.sender_id}: {preview}{deleted_str}"

    @property
    def is_read(self) -> bool:
        return len(self.read_by or []) > 1
