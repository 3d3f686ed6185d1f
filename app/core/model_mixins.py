"""
Model mixins providing reusable functionality for Django models.

Abstract mixins that can be combined with BaseModel. They carry no
domain-specific logic.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Usage:
    from core.models import BaseModel
    from core.model_mixins import SoftDeleteMixin, UUIDPrimaryKeyMixin

    class EncryptedFile(UUIDPrimaryKeyMixin, BaseModel):
        ...

    class Message(SoftDeleteMixin, BaseModel):
        objects = SoftDeleteManager()
        all_objects = models.Manager()

Note:
    - Always list mixins before BaseModel in inheritance
    - SoftDeleteMixin is normally paired with core.managers.SoftDeleteManager
"""

from __future__ import annotations

import uuid

from django.db import models
from django.utils import timezone


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Used for records whose ids appear in shareable URLs (files, shares)
    so that ids do not reveal record counts or ordering.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class SoftDeleteMixin(models.Model):
    """
    Soft delete support for models.

    Instead of permanently deleting records, marks them as deleted.
    Deleted rows stay in storage for compliance review but are excluded
    from normal reads by SoftDeleteManager.

    Fields:
        is_deleted: Boolean flag indicating soft delete status
        deleted_at: Timestamp when the record was soft deleted
    """

    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this record has been soft deleted",
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp when this record was soft deleted",
    )

    class Meta:
        abstract = True

    def soft_delete(self) -> None:
        """
        Mark this record as deleted.

        Idempotent: deleting an already-deleted record keeps the original
        deleted_at.
        """
        if self.is_deleted:
            return
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])

    def restore(self) -> None:
        """Clear the soft delete flag."""
        if not self.is_deleted:
            return
        self.is_deleted = False
        self.deleted_at = None
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])
