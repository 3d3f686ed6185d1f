"""
FileAccessService for encrypted file authorization.

Provides:
- Owner and share-token authorization for view/download
- Atomic view counting under a row lock
- Blob presence and integrity checks before delivery

Access Model:
    The uploader always has full access. Anyone else needs a share token
    for the file. A share is usable while it is active, not past
    expires_at and under max_views. Every authorized view or download
    counts against max_views, so exactly max_views accesses succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db.models import F

from core.exceptions import (
    AuthenticationError,
    IntegrityFailureError,
    NotFoundError,
    PermissionDeniedError,
    ShareExpiredOrExhaustedError,
    StorageFailureError,
)
from core.helpers import sha256_stream
from core.services import BaseService
from media.models import FileShare
from media.storage import blob_store

if TYPE_CHECKING:
    from authentication.models import User
    from media.models import EncryptedFile


class FileAction:
    VIEW = "view"
    DOWNLOAD = "download"
    SHARE = "share"


# Share flag that must be set for each action
ACTION_FLAGS = {
    FileAction.VIEW: "can_view",
    FileAction.DOWNLOAD: "can_download",
    FileAction.SHARE: "can_share",
}


@dataclass(frozen=True)
class FileAccess:
    """Grant returned by FileAccessService.authorize."""

    file: EncryptedFile
    action: str
    share: FileShare | None = None

    @property
    def is_owner(self) -> bool:
        return self.share is None


class FileAccessService(BaseService):
    """
    Centralized access checks for encrypted files.

    Usage:
        access = FileAccessService.authorize(file, request.user, token, "download")
        handle = FileAccessService.open_for_delivery(file)
    """

    @classmethod
    def authorize(
        cls,
        file: EncryptedFile,
        user: User | None,
        share_token: str | None = None,
        action: str = FileAction.VIEW,
        count_view: bool = True,
    ) -> FileAccess:
        """
        Authorize an action on a file.

        Checks run in order: owner, token present, token matches a share of
        this file, share login requirement, share active, then (locked)
        expiry/view cap and the action flag. When count_view is set the
        share's current_views is incremented before returning.

        Raises:
            PermissionDeniedError: No token, SHARE_REVOKED or
                SHARE_ACTION_NOT_ALLOWED
            NotFoundError: SHARE_NOT_FOUND
            AuthenticationError: Share requires a logged-in caller
            ShareExpiredOrExhaustedError: Share expired or out of views
        """
        if action not in ACTION_FLAGS:
            raise ValueError(f"Unknown file action: {action}")

        if file.is_owned_by(user):
            return FileAccess(file=file, action=action)

        if not share_token:
            raise PermissionDeniedError("Access denied")

        share = FileShare.objects.filter(file=file, token=share_token).first()
        if share is None:
            raise NotFoundError("Share not found", error_code="SHARE_NOT_FOUND")

        if share.requires_auth and not (user and user.is_authenticated):
            raise AuthenticationError("Authentication required to use this share")

        if not share.is_active:
            raise PermissionDeniedError("Share has been revoked", error_code="SHARE_REVOKED")

        with cls.atomic():
            share = FileShare.objects.select_for_update().get(pk=share.pk)

            # Revoked between the first read and the lock
            if not share.is_active:
                raise PermissionDeniedError(
                    "Share has been revoked", error_code="SHARE_REVOKED"
                )
            if share.is_expired or share.is_exhausted:
                raise ShareExpiredOrExhaustedError("Share has expired or reached its view limit")
            if not getattr(share, ACTION_FLAGS[action]):
                raise PermissionDeniedError(
                    f"Share does not allow {action}",
                    error_code="SHARE_ACTION_NOT_ALLOWED",
                )

            if count_view:
                FileShare.objects.filter(pk=share.pk).update(
                    current_views=F("current_views") + 1
                )
                share.refresh_from_db(fields=["current_views"])

        return FileAccess(file=file, action=action, share=share)

    @classmethod
    def open_for_delivery(cls, file: EncryptedFile):
        """
        Open the file's blob after checking it exists and matches content_hash.

        Returns:
            Binary file handle positioned at the start. The caller owns it.

        Raises:
            StorageFailureError: Blob missing on storage
            IntegrityFailureError: Stored bytes no longer match content_hash
        """
        if not blob_store.exists(file.storage_path):
            cls.get_logger().error(f"Blob missing for encrypted file {file.id}")
            raise StorageFailureError(
                "File not found on storage",
                details={"file_id": str(file.id)},
            )

        handle = blob_store.open(file.storage_path)
        digest = sha256_stream(handle)
        if digest != file.content_hash:
            handle.close()
            cls.get_logger().error(f"Content hash mismatch for encrypted file {file.id}")
            raise IntegrityFailureError(
                "Stored file failed integrity check",
                details={"file_id": str(file.id)},
            )

        handle.seek(0)
        return handle
