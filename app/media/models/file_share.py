"""
FileShare model for token-based file access.

A share is a bearer grant: whoever holds the token gets the permissions
on the share, optionally only when logged in (requires_auth). Shares can
expire by time (expires_at) or by use (max_views), and can be revoked.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.helpers import generate_token
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class FileShare(UUIDPrimaryKeyMixin, BaseModel):
    """
    Share grant for an EncryptedFile.

    Attributes:
        file: The shared file
        created_by: User who created the share
        token: Unguessable bearer token used in share URLs
        can_view / can_download / can_share: Permission flags
        requires_auth: Whether the token holder must also be logged in
        expires_at: Optional expiry time
        max_views: Optional cap on authorized accesses
        current_views: Authorized accesses so far
        is_active: False once revoked
        share_message: Optional note from the sharer
        revoked_at: When the share was revoked
    """

    file = models.ForeignKey(
        "media.EncryptedFile",
        on_delete=models.CASCADE,
        related_name="shares",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="file_shares_created",
    )

    token = models.CharField(
        max_length=64,
        unique=True,
        default=generate_token,
        editable=False,
    )

    can_view = models.BooleanField(default=True)
    can_download = models.BooleanField(default=True)
    can_share = models.BooleanField(default=False)
    requires_auth = models.BooleanField(default=True)

    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When this share expires (null = never)",
    )
    max_views = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Maximum authorized accesses (null = unlimited)",
    )
    current_views = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True, db_index=True)
    share_message = models.TextField(blank=True, default="", max_length=500)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "media_file_share"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["file", "is_active"], name="media_share_file_idx"),
        ]

    def __str__(self) -> str:
        return f"Share {self.id} of file {self.file_id}"

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and timezone.now() >= self.expires_at

    @property
    def is_exhausted(self) -> bool:
        return self.max_views is not None and self.current_views >= self.max_views

    @property
    def is_usable(self) -> bool:
        return self.is_active and not self.is_expired and not self.is_exhausted
