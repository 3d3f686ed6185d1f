"""
FileShareService for creating and revoking share grants.

Every share write is recorded: creation writes an AuditTrail file_shared
event and an AccessLog share row, revocation writes file_share_revoked.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from django.utils import timezone

from compliance.constants import AUDIT_EVENTS
from compliance.models import AccessAction, ResourceType
from compliance.services import ComplianceRecorder
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService
from media.models import FileShare
from media.services.access_control import FileAccessService, FileAction

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User
    from compliance.services import RequestMeta
    from media.models import EncryptedFile


def _share_snapshot(share: FileShare) -> dict:
    return {
        "file_id": share.file_id,
        "can_view": share.can_view,
        "can_download": share.can_download,
        "can_share": share.can_share,
        "requires_auth": share.requires_auth,
        "expires_at": share.expires_at,
        "max_views": share.max_views,
        "is_active": share.is_active,
    }


class FileShareService(BaseService):
    """
    Share lifecycle for encrypted files.

    Usage:
        share = FileShareService.create_share(file, owner, max_views=3)
        FileShareService.revoke(share, owner)
    """

    @classmethod
    def create_share(
        cls,
        file: EncryptedFile,
        user: User,
        can_view: bool = True,
        can_download: bool = True,
        can_share: bool = False,
        requires_auth: bool = True,
        expires_at: datetime | None = None,
        max_views: int | None = None,
        share_message: str = "",
        share_token: str | None = None,
        request_meta: RequestMeta | None = None,
    ) -> FileShare:
        """
        Create a share for a file.

        The owner can always share. Anyone else must present share_token for
        a usable share of the same file that has can_share set; checking it
        does not count as a view.

        Raises:
            PermissionDeniedError: Caller may not share this file
            ValidationError: INVALID_MAX_VIEWS or INVALID_EXPIRY
        """
        if not file.is_owned_by(user):
            if not share_token:
                raise PermissionDeniedError("Only the owner can share this file")
            FileAccessService.authorize(
                file, user, share_token, FileAction.SHARE, count_view=False
            )

        if max_views is not None and max_views < 1:
            raise ValidationError(
                "max_views must be at least 1",
                error_code="INVALID_MAX_VIEWS",
                details={"max_views": max_views},
            )
        if expires_at is not None and expires_at <= timezone.now():
            raise ValidationError(
                "expires_at must be in the future",
                error_code="INVALID_EXPIRY",
            )

        with cls.atomic():
            share = FileShare.objects.create(
                file=file,
                created_by=user,
                can_view=can_view,
                can_download=can_download,
                can_share=can_share,
                requires_auth=requires_auth,
                expires_at=expires_at,
                max_views=max_views,
                share_message=share_message or "",
            )
            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.FILE_SHARED,
                user,
                ResourceType.FILE_SHARE,
                share.id,
                new_values=_share_snapshot(share),
                request_meta=request_meta,
            )
            ComplianceRecorder.log_access(
                user,
                AccessAction.SHARE,
                ResourceType.FILE,
                file.id,
                request_meta,
                metadata={"share_id": share.id},
            )

        cls.get_logger().info(f"User {user.id} shared file {file.id} (share {share.id})")
        return share

    @classmethod
    def revoke(
        cls,
        share: FileShare,
        user: User,
        request_meta: RequestMeta | None = None,
    ) -> FileShare:
        """
        Deactivate a share. Allowed for the file owner and the share creator.

        Revoking an already revoked share is a no-op.

        Raises:
            PermissionDeniedError: Caller is neither owner nor creator
        """
        if not (share.file.is_owned_by(user) or share.created_by_id == user.id):
            raise PermissionDeniedError("Only the owner or share creator can revoke it")

        if not share.is_active:
            return share

        with cls.atomic():
            share.is_active = False
            share.revoked_at = timezone.now()
            share.save(update_fields=["is_active", "revoked_at", "updated_at"])
            ComplianceRecorder.record_audit(
                AUDIT_EVENTS.FILE_SHARE_REVOKED,
                user,
                ResourceType.FILE_SHARE,
                share.id,
                old_values={"is_active": True},
                new_values={"is_active": False, "revoked_at": share.revoked_at},
                request_meta=request_meta,
            )

        cls.get_logger().info(f"User {user.id} revoked share {share.id}")
        return share

    @classmethod
    def list_for_file(cls, file: EncryptedFile, user: User) -> QuerySet[FileShare]:
        """
        Raises:
            PermissionDeniedError: Caller is not the owner
        """
        if not file.is_owned_by(user):
            raise PermissionDeniedError("Only the owner can list shares")
        return file.shares.select_related("created_by").order_by("-created_at")

    @classmethod
    def get_for_file(cls, file: EncryptedFile, share_id) -> FileShare:
        """
        Raises:
            NotFoundError: SHARE_NOT_FOUND
        """
        share = file.shares.select_related("file").filter(pk=share_id).first()
        if share is None:
            raise NotFoundError("Share not found", error_code="SHARE_NOT_FOUND")
        return share
