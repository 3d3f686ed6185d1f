"""
Serializers for encrypted files and shares.

Provides:
- EncryptedFileUploadSerializer: Multipart upload input
- EncryptedFileSerializer: File metadata (never the key or IV)
- FileShareCreateSerializer: Share creation input
- FileShareSerializer: Share details for the owner
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from media.models import EncryptedFile, FileCategory, FileShare


class EncryptedFileUploadSerializer(serializers.Serializer):
    """
    Upload input.

    Presence of the key material and the size limit are enforced by
    EncryptedFileService so that they map to stable error codes.
    """

    file = serializers.FileField(
        allow_empty_file=True,
        help_text="Client-encrypted file content",
    )
    encryption_key = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
        help_text="Opaque encryption key, returned verbatim on download",
    )
    iv = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
        help_text="Initialization vector, returned verbatim on download",
    )
    category = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        help_text=f"One of {', '.join(FileCategory.values)}; derived from MIME type if omitted",
    )
    message_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Message to attach the file to",
    )


class EncryptedFileSerializer(serializers.ModelSerializer):
    uploaded_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = EncryptedFile
        fields = [
            "id",
            "original_name",
            "mime_type",
            "size",
            "category",
            "content_hash",
            "message_id",
            "uploaded_by",
            "created_at",
        ]
        read_only_fields = fields


class FileShareCreateSerializer(serializers.Serializer):
    can_view = serializers.BooleanField(required=False, default=True)
    can_download = serializers.BooleanField(required=False, default=True)
    can_share = serializers.BooleanField(required=False, default=False)
    requires_auth = serializers.BooleanField(required=False, default=True)
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    max_views = serializers.IntegerField(required=False, allow_null=True, default=None)
    share_message = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=500,
    )
    share_token = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        help_text="Token of a share with can_share, when the caller is not the owner",
    )


class FileShareSerializer(serializers.ModelSerializer):
    class Meta:
        model = FileShare
        fields = [
            "id",
            "file_id",
            "token",
            "created_by_id",
            "can_view",
            "can_download",
            "can_share",
            "requires_auth",
            "expires_at",
            "max_views",
            "current_views",
            "is_active",
            "share_message",
            "revoked_at",
            "created_at",
        ]
        read_only_fields = fields
