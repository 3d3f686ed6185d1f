"""
Initial media schema.

Creates:
    - EncryptedFile: metadata and key material for encrypted blobs
    - FileShare: token grants with expiry and view limits
"""

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid

import core.helpers

CATEGORY_CHOICES = [
    ("image", "Image"),
    ("video", "Video"),
    ("audio", "Audio"),
    ("document", "Document"),
    ("other", "Other"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("chat", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="EncryptedFile",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("stored_name", models.CharField(editable=False, help_text="Opaque name of the blob on storage", max_length=64, unique=True)),
                ("original_name", models.CharField(help_text="Filename supplied by the uploader", max_length=255)),
                ("mime_type", models.CharField(default="application/octet-stream", help_text="MIME type of the plaintext", max_length=100)),
                ("size", models.PositiveBigIntegerField(help_text="Ciphertext size in bytes")),
                ("encryption_key", models.TextField(help_text="Opaque client encryption key")),
                ("iv", models.CharField(help_text="Initialization vector", max_length=255)),
                ("content_hash", models.CharField(help_text="sha256 hex digest of the ciphertext", max_length=64)),
                ("category", models.CharField(choices=CATEGORY_CHOICES, db_index=True, default="other", max_length=20)),
                ("storage_path", models.CharField(help_text="Blob path relative to the encrypted store root", max_length=255)),
                (
                    "message",
                    models.ForeignKey(
                        blank=True,
                        help_text="Message this file is attached to",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="files",
                        to="chat.message",
                    ),
                ),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        help_text="User who uploaded the file",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="encrypted_files",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "media_encrypted_file",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["uploaded_by", "-created_at"], name="media_file_owner_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FileShare",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("token", models.CharField(default=core.helpers.generate_token, editable=False, max_length=64, unique=True)),
                ("can_view", models.BooleanField(default=True)),
                ("can_download", models.BooleanField(default=True)),
                ("can_share", models.BooleanField(default=False)),
                ("requires_auth", models.BooleanField(default=True)),
                ("expires_at", models.DateTimeField(blank=True, db_index=True, help_text="When this share expires (null = never)", null=True)),
                ("max_views", models.PositiveIntegerField(blank=True, help_text="Maximum authorized accesses (null = unlimited)", null=True)),
                ("current_views", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("share_message", models.TextField(blank=True, default="", max_length=500)),
                ("revoked_at", models.DateTimeField(blank=True, null=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="file_shares_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "file",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="shares",
                        to="media.encryptedfile",
                    ),
                ),
            ],
            options={
                "db_table": "media_file_share",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["file", "is_active"], name="media_share_file_idx"),
                ],
            },
        ),
    ]
