"""
EncryptedFileService for storing client-encrypted uploads.

Upload flow:
    1. Validate key/IV presence, size and category
    2. Resolve the optional message and check the uploader is a participant
    3. Hash the ciphertext and write it under a server-generated name
    4. Persist metadata and the access log row atomically; on failure the
       blob is removed so no orphan is left on disk

The encryption key and IV are stored verbatim and never written to logs.
They travel back to clients in response headers, so only printable ASCII
is accepted.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from chat.models import Message
from compliance.models import AccessAction, ResourceType
from compliance.services import ComplianceRecorder
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.helpers import sha256_stream
from core.services import BaseService
from media.constants import FILE_CONFIG
from media.models import EncryptedFile, FileCategory
from media.storage import blob_store

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile
    from django.db.models import QuerySet

    from authentication.models import User
    from compliance.services import RequestMeta


def _is_header_safe(value: str) -> bool:
    """
    Key and IV are returned verbatim in download headers, so they must
    survive a header round trip byte for byte.
    """
    return value == value.strip() and all(" " <= ch <= "~" for ch in value)


class EncryptedFileService(BaseService):
    """
    Upload and look up encrypted files.

    Usage:
        encrypted_file = EncryptedFileService.upload(
            uploader=request.user,
            uploaded_file=request.FILES["file"],
            encryption_key=key,
            iv=iv,
        )
    """

    @classmethod
    def upload(
        cls,
        uploader: User,
        uploaded_file: UploadedFile | None,
        encryption_key: str | None,
        iv: str | None,
        category: str | None = None,
        message_id: int | None = None,
        request_meta: RequestMeta | None = None,
    ) -> EncryptedFile:
        """
        Store an encrypted upload.

        Raises:
            ValidationError: MISSING_ENCRYPTION_DATA, INVALID_ENCRYPTION_DATA,
                EMPTY_FILE, FILE_TOO_LARGE or INVALID_CATEGORY
            NotFoundError: MESSAGE_NOT_FOUND
            PermissionDeniedError: NOT_PARTICIPANT
        """
        logger = cls.get_logger()

        if not (encryption_key or "").strip() or not (iv or "").strip():
            raise ValidationError(
                "Encryption key and IV are required",
                error_code="MISSING_ENCRYPTION_DATA",
            )
        if not (_is_header_safe(encryption_key) and _is_header_safe(iv)):
            raise ValidationError(
                "Encryption key and IV must be printable ASCII without surrounding whitespace",
                error_code="INVALID_ENCRYPTION_DATA",
            )
        if uploaded_file is None or not uploaded_file.size:
            raise ValidationError("File is empty", error_code="EMPTY_FILE")
        if uploaded_file.size > FILE_CONFIG.MAX_BYTES:
            raise ValidationError(
                f"File exceeds maximum size of {FILE_CONFIG.MAX_BYTES} bytes",
                error_code="FILE_TOO_LARGE",
                details={"size": uploaded_file.size, "max_bytes": FILE_CONFIG.MAX_BYTES},
            )

        mime_type = getattr(uploaded_file, "content_type", None) or "application/octet-stream"
        if category:
            if category not in FileCategory.values:
                raise ValidationError(
                    f"Invalid category: {category}",
                    error_code="INVALID_CATEGORY",
                    details={"allowed": list(FileCategory.values)},
                )
        else:
            category = FileCategory.from_mime_type(mime_type)

        message = None
        if message_id is not None:
            message = cls._get_message_for_uploader(message_id, uploader)

        stored_name = uuid.uuid4().hex
        uploaded_file.seek(0)
        content_hash = sha256_stream(uploaded_file)
        storage_path = blob_store.save(stored_name, uploaded_file)

        try:
            with cls.atomic():
                encrypted_file = EncryptedFile.objects.create(
                    message=message,
                    stored_name=stored_name,
                    original_name=(uploaded_file.name or stored_name)[:255],
                    mime_type=mime_type[:100],
                    size=uploaded_file.size,
                    encryption_key=encryption_key,
                    iv=iv,
                    content_hash=content_hash,
                    category=category,
                    uploaded_by=uploader,
                    storage_path=storage_path,
                )
                ComplianceRecorder.log_access(
                    uploader,
                    AccessAction.CREATE,
                    ResourceType.FILE,
                    encrypted_file.id,
                    request_meta,
                    metadata={"size": encrypted_file.size, "category": category},
                )
        except Exception:
            logger.error(
                f"Persisting encrypted file {stored_name} failed, removing blob",
                exc_info=True,
            )
            blob_store.delete(storage_path)
            raise

        logger.info(
            f"Stored encrypted file {encrypted_file.id} "
            f"({encrypted_file.size} bytes) for user {uploader.id}"
        )
        return encrypted_file

    @staticmethod
    def _get_message_for_uploader(message_id: int, uploader: User) -> Message:
        message = Message.objects.select_related("conversation").filter(pk=message_id).first()
        if message is None:
            raise NotFoundError("Message not found", error_code="MESSAGE_NOT_FOUND")
        if not message.conversation.has_participant(uploader):
            raise PermissionDeniedError(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )
        return message

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[EncryptedFile]:
        return EncryptedFile.objects.filter(uploaded_by=user).order_by("-created_at")

    @classmethod
    def get(cls, file_id) -> EncryptedFile:
        """
        Raises:
            NotFoundError: FILE_NOT_FOUND
        """
        encrypted_file = (
            EncryptedFile.objects.select_related("uploaded_by").filter(pk=file_id).first()
        )
        if encrypted_file is None:
            raise NotFoundError("File not found", error_code="FILE_NOT_FOUND")
        return encrypted_file
