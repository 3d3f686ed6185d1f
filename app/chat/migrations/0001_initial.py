"""
Initial chat schema.

Creates:
    - Conversation: direct and group conversations
    - Participant: user membership with admin/member role
    - Message: soft-deletable messages with compliance fields
"""

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Display name (optional)",
                        max_length=255,
                    ),
                ),
                (
                    "conversation_type",
                    models.CharField(
                        choices=[("direct", "Direct Message"), ("group", "Group")],
                        db_index=True,
                        default="direct",
                        help_text="Type of conversation (direct or group)",
                        max_length=10,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who created this conversation",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_conversations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-updated_at"],
                "indexes": [
                    models.Index(fields=["-updated_at"], name="chat_conv_updated_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Participant",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[("admin", "Admin"), ("member", "Member")],
                        default="member",
                        help_text="Role in the conversation",
                        max_length=10,
                    ),
                ),
                (
                    "joined_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the user joined this conversation",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this membership belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="chat.conversation",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Participating user",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversation_participations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_participant",
                "ordering": ["joined_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["user", "conversation"],
                        name="chat_part_user_conv_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("conversation", "user"),
                        name="unique_conversation_participant",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "is_deleted",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether this record has been soft deleted",
                    ),
                ),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Timestamp when this record was soft deleted",
                        null=True,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("content", models.TextField(help_text="Message text")),
                (
                    "message_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("file", "File"),
                            ("image", "Image"),
                            ("voice", "Voice"),
                            ("system", "System"),
                        ],
                        default="text",
                        help_text="Kind of message content",
                        max_length=10,
                    ),
                ),
                (
                    "classification",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("policy_notification", "Policy Notification"),
                            ("audit_notice", "Audit Notice"),
                            ("corrective_action", "Corrective Action"),
                            ("security_alert", "Security Alert"),
                            ("compliance_requirement", "Compliance Requirement"),
                            ("general", "General"),
                        ],
                        db_index=True,
                        help_text="Compliance classification (null when unclassified)",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[
                            ("low", "Low"),
                            ("normal", "Normal"),
                            ("high", "High"),
                            ("urgent", "Urgent"),
                        ],
                        default="normal",
                        help_text="Delivery priority",
                        max_length=10,
                    ),
                ),
                (
                    "requires_acknowledgment",
                    models.BooleanField(
                        default=False,
                        help_text="Whether recipients must acknowledge this message",
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Client-supplied metadata object",
                    ),
                ),
                (
                    "encrypted_content",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Optional ciphertext reference",
                    ),
                ),
                (
                    "content_hash",
                    models.CharField(help_text="sha256 hex digest of content", max_length=64),
                ),
                (
                    "is_edited",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the content has been edited",
                    ),
                ),
                (
                    "read_by",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="User ids that have read this message",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "created_at", "id"],
                        name="chat_msg_conv_created_idx",
                    ),
                    models.Index(
                        fields=["sender", "-created_at"],
                        name="chat_msg_sender_idx",
                    ),
                ],
            },
        ),
    ]
