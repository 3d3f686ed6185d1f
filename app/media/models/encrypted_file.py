"""
EncryptedFile model for client-encrypted attachments.

The server never sees plaintext. Clients encrypt before upload and send the
key and IV alongside the ciphertext; both are stored verbatim and handed
back only in download response headers.

Storage Layout:
    Blobs live under MEDIA_ROOT/ENCRYPTED_FILE_DIR, named by stored_name
    (a uuid4 hex). The original filename is metadata only.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class FileCategory(models.TextChoices):
    IMAGE = "image", "Image"
    VIDEO = "video", "Video"
    AUDIO = "audio", "Audio"
    DOCUMENT = "document", "Document"
    OTHER = "other", "Other"

    @classmethod
    def from_mime_type(cls, mime_type: str | None) -> FileCategory:
        """
        Derive a category from a MIME type.

        Examples:
            image/png -> image
            application/pdf -> document
            text/plain -> document
            application/zip -> other
        """
        mime_type = (mime_type or "").lower()
        major = mime_type.split("/", 1)[0]
        if major in (cls.IMAGE, cls.VIDEO, cls.AUDIO):
            return cls(major)
        if major == "text" or "pdf" in mime_type or "document" in mime_type:
            return cls.DOCUMENT
        return cls.OTHER


class EncryptedFile(UUIDPrimaryKeyMixin, BaseModel):
    """
    Metadata for one encrypted blob.

    Attributes:
        message: Message this file is attached to (optional)
        stored_name: Opaque blob name (uuid4 hex)
        original_name: Client-supplied filename, never used on disk
        mime_type: Client-declared MIME type of the plaintext
        size: Ciphertext size in bytes
        encryption_key / iv: Opaque client key material
        content_hash: sha256 hex of the ciphertext
        category: FileCategory
        uploaded_by: Owner
        storage_path: Blob path relative to the encrypted store root
    """

    message = models.ForeignKey(
        "chat.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="files",
        help_text="Message this file is attached to",
    )

    stored_name = models.CharField(
        max_length=64,
        unique=True,
        editable=False,
        help_text="Opaque name of the blob on storage",
    )

    original_name = models.CharField(
        max_length=255,
        help_text="Filename supplied by the uploader",
    )

    mime_type = models.CharField(
        max_length=100,
        default="application/octet-stream",
        help_text="MIME type of the plaintext",
    )

    size = models.PositiveBigIntegerField(help_text="Ciphertext size in bytes")

    encryption_key = models.TextField(help_text="Opaque client encryption key")

    iv = models.CharField(max_length=255, help_text="Initialization vector")

    content_hash = models.CharField(
        max_length=64,
        help_text="sha256 hex digest of the ciphertext",
    )

    category = models.CharField(
        max_length=20,
        choices=FileCategory.choices,
        default=FileCategory.OTHER,
        db_index=True,
    )

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="encrypted_files",
        help_text="User who uploaded the file",
    )

    storage_path = models.CharField(
        max_length=255,
        help_text="Blob path relative to the encrypted store root",
    )

    class Meta:
        db_table = "media_encrypted_file"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["uploaded_by", "-created_at"], name="media_file_owner_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.original_name} ({self.id})"

    def is_owned_by(self, user) -> bool:
        return bool(user and user.is_authenticated and user.pk == self.uploaded_by_id)
