"""
Tests for media services.

These tests verify:
- EncryptedFileService.upload validation, storage naming and cleanup
- FileShareService share creation, resharing and revocation
- FileAccessService.authorize check order and view counting
- FileAccessService.open_for_delivery storage and integrity checks
"""

from __future__ import annotations

import os
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.utils import timezone
from freezegun import freeze_time

from chat.tests.factories import ConversationFactory, MessageFactory
from compliance.constants import AUDIT_EVENTS
from compliance.models import AccessAction, AccessLog, AuditTrail, ResourceType
from core.exceptions import (
    AuthenticationError,
    IntegrityFailureError,
    NotFoundError,
    PermissionDeniedError,
    ShareExpiredOrExhaustedError,
    StorageFailureError,
    ValidationError,
)
from core.helpers import sha256_hex
from media.constants import FILE_CONFIG
from media.models import EncryptedFile, FileCategory
from media.services import EncryptedFileService, FileAccessService, FileShareService
from media.storage import blob_store
from media.tests.conftest import CIPHERTEXT, ENCRYPTION_KEY, IV, make_upload
from media.tests.factories import FileShareFactory


def _upload(owner, **overrides):
    kwargs = {
        "uploader": owner,
        "uploaded_file": make_upload(),
        "encryption_key": ENCRYPTION_KEY,
        "iv": IV,
    }
    kwargs.update(overrides)
    return EncryptedFileService.upload(**kwargs)


# =============================================================================
# Upload
# =============================================================================


@pytest.mark.django_db
class TestUpload:
    def test_stores_blob_under_server_generated_name(self, owner, media_root):
        """
        Why it matters: the client filename must never reach the blob store.
        """
        encrypted_file = _upload(owner)

        assert encrypted_file.original_name == "quarterly report.pdf"
        assert len(encrypted_file.stored_name) == 32
        assert "quarterly" not in encrypted_file.storage_path
        blob_path = media_root / FILE_CONFIG.ENCRYPTED_DIR / encrypted_file.storage_path
        assert blob_path.read_bytes() == CIPHERTEXT

    def test_records_hash_size_and_key_material_verbatim(self, owner):
        encrypted_file = _upload(owner)
        encrypted_file.refresh_from_db()

        assert encrypted_file.content_hash == sha256_hex(CIPHERTEXT)
        assert encrypted_file.size == len(CIPHERTEXT)
        assert encrypted_file.encryption_key == ENCRYPTION_KEY
        assert encrypted_file.iv == IV
        assert encrypted_file.uploaded_by == owner

    def test_writes_create_access_log(self, owner):
        encrypted_file = _upload(owner)

        log = AccessLog.objects.get(
            resource_type=ResourceType.FILE,
            resource_id=str(encrypted_file.id),
        )
        assert log.action == AccessAction.CREATE
        assert log.user == owner

    def test_category_derived_from_mime_type(self, owner):
        encrypted_file = _upload(
            owner, uploaded_file=make_upload(name="photo.png", content_type="image/png")
        )
        assert encrypted_file.category == FileCategory.IMAGE

    def test_explicit_category_wins(self, owner):
        encrypted_file = _upload(owner, category=FileCategory.OTHER)
        assert encrypted_file.category == FileCategory.OTHER

    def test_invalid_category_rejected(self, owner):
        with pytest.raises(ValidationError) as exc_info:
            _upload(owner, category="spreadsheet")
        assert exc_info.value.error_code == "INVALID_CATEGORY"

    @pytest.mark.parametrize(
        "key,iv",
        [("", IV), (ENCRYPTION_KEY, ""), (None, IV), ("   ", IV)],
    )
    def test_missing_key_material_rejected(self, owner, key, iv):
        with pytest.raises(ValidationError) as exc_info:
            _upload(owner, encryption_key=key, iv=iv)
        assert exc_info.value.error_code == "MISSING_ENCRYPTION_DATA"
        assert not EncryptedFile.objects.exists()

    @pytest.mark.parametrize(
        "key,iv",
        [
            ("-----BEGIN KEY-----\nABCDEF\n-----END KEY-----", IV),
            ("cl\u00e9-\u043a\u043b\u044e\u0447", IV),
            (ENCRYPTION_KEY, "AAECAwQF\r\n"),
            (f" {ENCRYPTION_KEY}", IV),
            (ENCRYPTION_KEY, "AAEC\tAwQF"),
        ],
    )
    def test_key_material_that_cannot_round_trip_in_headers_rejected(self, owner, key, iv):
        """
        Why it matters: key and IV come back in response headers; a value
        a header cannot carry byte for byte would make the file undecryptable.
        """
        with pytest.raises(ValidationError) as exc_info:
            _upload(owner, encryption_key=key, iv=iv)
        assert exc_info.value.error_code == "INVALID_ENCRYPTION_DATA"
        assert not EncryptedFile.objects.exists()

    def test_empty_file_rejected(self, owner):
        with pytest.raises(ValidationError) as exc_info:
            _upload(owner, uploaded_file=make_upload(content=b""))
        assert exc_info.value.error_code == "EMPTY_FILE"

    def test_oversized_file_rejected(self, owner, monkeypatch):
        monkeypatch.setattr(FILE_CONFIG, "MAX_BYTES", len(CIPHERTEXT) - 1)

        with pytest.raises(ValidationError) as exc_info:
            _upload(owner)
        assert exc_info.value.error_code == "FILE_TOO_LARGE"

    def test_attaches_to_message_in_own_conversation(self, owner, recipient):
        conversation = ConversationFactory(created_by=owner, members=[recipient])
        message = MessageFactory(conversation=conversation, sender=recipient)

        encrypted_file = _upload(owner, message_id=message.id)

        assert encrypted_file.message == message

    def test_unknown_message_rejected(self, owner):
        with pytest.raises(NotFoundError) as exc_info:
            _upload(owner, message_id=999_999)
        assert exc_info.value.error_code == "MESSAGE_NOT_FOUND"

    def test_message_in_foreign_conversation_rejected(self, owner, recipient, stranger):
        conversation = ConversationFactory(created_by=recipient, members=[stranger])
        message = MessageFactory(conversation=conversation)

        with pytest.raises(PermissionDeniedError) as exc_info:
            _upload(owner, message_id=message.id)
        assert exc_info.value.error_code == "NOT_PARTICIPANT"

    def test_failed_persist_removes_blob(self, owner, media_root):
        """
        Why it matters: a blob without a row can never be served or cleaned
        up, so a failed metadata write must not leave one behind.
        """
        with patch(
            "media.services.upload.ComplianceRecorder.log_access",
            side_effect=DatabaseError("insert failed"),
        ):
            with pytest.raises(DatabaseError):
                _upload(owner)

        assert not EncryptedFile.objects.exists()
        assert os.listdir(media_root / FILE_CONFIG.ENCRYPTED_DIR) == []


# =============================================================================
# Shares
# =============================================================================


@pytest.mark.django_db
class TestCreateShare:
    def test_owner_creates_share_with_audit_and_access_log(self, stored_file, owner):
        share = FileShareService.create_share(stored_file, owner, max_views=3)

        assert share.token
        assert share.is_usable
        assert share.max_views == 3
        audit = AuditTrail.objects.get(event_type=AUDIT_EVENTS.FILE_SHARED)
        assert audit.resource_id == str(share.id)
        assert audit.new_values["max_views"] == 3
        assert AccessLog.objects.filter(
            action=AccessAction.SHARE, resource_id=str(stored_file.id)
        ).exists()

    def test_non_owner_without_token_denied(self, stored_file, stranger):
        with pytest.raises(PermissionDeniedError):
            FileShareService.create_share(stored_file, stranger)

    def test_holder_of_resharable_share_can_share_without_using_a_view(
        self, stored_file, recipient
    ):
        grant = FileShareFactory(file=stored_file, can_share=True, max_views=1)

        share = FileShareService.create_share(stored_file, recipient, share_token=grant.token)

        assert share.created_by == recipient
        grant.refresh_from_db()
        assert grant.current_views == 0

    def test_holder_without_can_share_denied(self, stored_file, recipient):
        grant = FileShareFactory(file=stored_file, can_share=False)

        with pytest.raises(PermissionDeniedError) as exc_info:
            FileShareService.create_share(stored_file, recipient, share_token=grant.token)
        assert exc_info.value.error_code == "SHARE_ACTION_NOT_ALLOWED"

    @pytest.mark.parametrize("max_views", [0, -1])
    def test_invalid_max_views(self, stored_file, owner, max_views):
        with pytest.raises(ValidationError) as exc_info:
            FileShareService.create_share(stored_file, owner, max_views=max_views)
        assert exc_info.value.error_code == "INVALID_MAX_VIEWS"

    def test_expiry_in_past_rejected(self, stored_file, owner):
        with pytest.raises(ValidationError) as exc_info:
            FileShareService.create_share(
                stored_file, owner, expires_at=timezone.now() - timedelta(seconds=1)
            )
        assert exc_info.value.error_code == "INVALID_EXPIRY"


@pytest.mark.django_db
class TestRevokeShare:
    def test_owner_revokes(self, stored_file, owner):
        share = FileShareFactory(file=stored_file)

        FileShareService.revoke(share, owner)

        share.refresh_from_db()
        assert share.is_active is False
        assert share.revoked_at is not None
        assert AuditTrail.objects.filter(
            event_type=AUDIT_EVENTS.FILE_SHARE_REVOKED, resource_id=str(share.id)
        ).exists()

    def test_share_creator_revokes(self, stored_file, recipient):
        share = FileShareFactory(file=stored_file, created_by=recipient)

        FileShareService.revoke(share, recipient)

        share.refresh_from_db()
        assert share.is_active is False

    def test_stranger_cannot_revoke(self, stored_file, stranger):
        share = FileShareFactory(file=stored_file)

        with pytest.raises(PermissionDeniedError):
            FileShareService.revoke(share, stranger)

    def test_second_revoke_writes_no_audit(self, stored_file, owner):
        share = FileShareFactory(file=stored_file)

        FileShareService.revoke(share, owner)
        FileShareService.revoke(share, owner)

        assert AuditTrail.objects.filter(event_type=AUDIT_EVENTS.FILE_SHARE_REVOKED).count() == 1


# =============================================================================
# Authorization
# =============================================================================


@pytest.mark.django_db
class TestAuthorize:
    def test_owner_always_allowed(self, stored_file, owner):
        access = FileAccessService.authorize(stored_file, owner, action="download")

        assert access.is_owner
        assert access.share is None

    def test_no_token_denied(self, stored_file, stranger):
        with pytest.raises(PermissionDeniedError) as exc_info:
            FileAccessService.authorize(stored_file, stranger, None, "view")
        assert exc_info.value.error_code == "PERMISSION_DENIED"

    def test_unknown_token(self, stored_file, stranger):
        with pytest.raises(NotFoundError) as exc_info:
            FileAccessService.authorize(stored_file, stranger, "not-a-token", "view")
        assert exc_info.value.error_code == "SHARE_NOT_FOUND"

    def test_token_for_other_file_not_accepted(self, stored_file, stranger):
        other_share = FileShareFactory()

        with pytest.raises(NotFoundError):
            FileAccessService.authorize(stored_file, stranger, other_share.token, "view")

    def test_requires_auth_rejects_anonymous(self, stored_file):
        share = FileShareFactory(file=stored_file, requires_auth=True)

        with pytest.raises(AuthenticationError):
            FileAccessService.authorize(stored_file, AnonymousUser(), share.token, "view")

    def test_token_only_share_allows_anonymous(self, stored_file):
        share = FileShareFactory(file=stored_file, requires_auth=False)

        access = FileAccessService.authorize(stored_file, AnonymousUser(), share.token, "view")

        assert access.share == share

    def test_revoked_share(self, stored_file, recipient):
        share = FileShareFactory(file=stored_file, is_active=False)

        with pytest.raises(PermissionDeniedError) as exc_info:
            FileAccessService.authorize(stored_file, recipient, share.token, "view")
        assert exc_info.value.error_code == "SHARE_REVOKED"

    def test_exactly_max_views_accesses_succeed(self, stored_file, recipient):
        """
        Why it matters: max_views=N means N uses. The (N+1)-th must fail
        whether the earlier uses were views or downloads.
        """
        share = FileShareFactory(file=stored_file, max_views=3)

        for action in ("view", "download", "view"):
            FileAccessService.authorize(stored_file, recipient, share.token, action)

        with pytest.raises(ShareExpiredOrExhaustedError):
            FileAccessService.authorize(stored_file, recipient, share.token, "view")
        share.refresh_from_db()
        assert share.current_views == 3

    def test_expired_share_rejected_with_views_remaining(self, stored_file, recipient):
        with freeze_time("2026-03-01 12:00:00"):
            share = FileShareFactory(
                file=stored_file,
                expires_at=timezone.now() + timedelta(hours=1),
                max_views=10,
            )
            FileAccessService.authorize(stored_file, recipient, share.token, "view")

        with freeze_time("2026-03-01 13:00:01"):
            with pytest.raises(ShareExpiredOrExhaustedError) as exc_info:
                FileAccessService.authorize(stored_file, recipient, share.token, "view")
        assert exc_info.value.error_code == "SHARE_EXPIRED_OR_EXHAUSTED"

    def test_action_flag_enforced_without_counting(self, stored_file, recipient):
        share = FileShareFactory(file=stored_file, can_download=False, max_views=5)

        with pytest.raises(PermissionDeniedError) as exc_info:
            FileAccessService.authorize(stored_file, recipient, share.token, "download")
        assert exc_info.value.error_code == "SHARE_ACTION_NOT_ALLOWED"

        FileAccessService.authorize(stored_file, recipient, share.token, "view")
        share.refresh_from_db()
        assert share.current_views == 1

    def test_metadata_check_does_not_count(self, stored_file, recipient):
        share = FileShareFactory(file=stored_file, max_views=1)

        FileAccessService.authorize(
            stored_file, recipient, share.token, "view", count_view=False
        )

        share.refresh_from_db()
        assert share.current_views == 0


# =============================================================================
# Delivery checks
# =============================================================================


@pytest.mark.django_db
class TestOpenForDelivery:
    def test_returns_ciphertext(self, stored_file):
        with FileAccessService.open_for_delivery(stored_file) as handle:
            assert handle.read() == CIPHERTEXT

    def test_missing_blob(self, stored_file):
        blob_store.delete(stored_file.storage_path)

        with pytest.raises(StorageFailureError) as exc_info:
            FileAccessService.open_for_delivery(stored_file)
        assert exc_info.value.message == "File not found on storage"
        assert exc_info.value.error_code == "FILE_NOT_ON_STORAGE"

    def test_tampered_blob(self, stored_file):
        with open(blob_store.path(stored_file.storage_path), "ab") as blob:
            blob.write(b"tampered")

        with pytest.raises(IntegrityFailureError):
            FileAccessService.open_for_delivery(stored_file)
