"""
Custom QuerySet and Manager classes for soft-deletable models.

Manager vs QuerySet:
    - QuerySet: Defines chainable methods (deleted, active)
    - Manager: Attaches QuerySet to model and applies default filtering

Usage:
    from core.managers import SoftDeleteManager

    class Message(SoftDeleteMixin, BaseModel):
        objects = SoftDeleteManager()   # Default: excludes deleted
        all_objects = models.Manager()  # Includes deleted

    Message.objects.filter(conversation=conversation)   # active only
    Message.all_objects.filter(conversation=conversation)  # everything
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class SoftDeleteQuerySet(models.QuerySet):
    """
    QuerySet that provides soft delete operations.

    delete() marks rows instead of removing them; hard_delete() removes them.
    """

    def delete(self) -> tuple[int, dict[str, int]]:
        """
        Soft delete all objects in queryset.

        Returns:
            Tuple of (count, {model_label: count}) matching Django's delete()
        """
        count = self.filter(is_deleted=False).update(
            is_deleted=True,
            deleted_at=timezone.now(),
        )
        return count, {self.model._meta.label: count}

    def hard_delete(self) -> tuple[int, dict[str, int]]:
        """Permanently delete all objects in queryset."""
        return super().delete()

    def deleted(self) -> SoftDeleteQuerySet:
        """Filter to only soft-deleted records."""
        return self.filter(is_deleted=True)

    def active(self) -> SoftDeleteQuerySet:
        """Filter to only active (non-deleted) records."""
        return self.filter(is_deleted=False)


class SoftDeleteManager(models.Manager):
    """
    Manager that filters out soft-deleted records by default.

    Always pair with a standard Manager (all_objects) for code paths that
    must see deleted rows, such as retention reports.
    """

    def get_queryset(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db).filter(is_deleted=False)

    def deleted(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db).filter(is_deleted=True)

    def with_deleted(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db)
