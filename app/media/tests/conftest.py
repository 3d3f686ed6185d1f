"""
Test fixtures for media app.

Provides fixtures for:
- A per-test MEDIA_ROOT so blobs never touch the real media directory
- Owner / recipient / stranger users and their API clients
- Encrypted uploads that exist both as rows and as blobs
"""

from __future__ import annotations

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from authentication.tests.factories import UserFactory
from media.services import EncryptedFileService

CIPHERTEXT = b"\x8f\x01encrypted-payload\x00\xff" * 8
ENCRYPTION_KEY = "q83vEjRWeJq83vEjRWeJAA=="
IV = "AAECAwQFBgcICQoL"


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Point MEDIA_ROOT at a temporary directory."""
    settings.MEDIA_ROOT = str(tmp_path)
    return tmp_path


# =============================================================================
# Users and Clients
# =============================================================================


@pytest.fixture
def owner(db):
    return UserFactory(display_name="Owner")


@pytest.fixture
def recipient(db):
    return UserFactory(display_name="Recipient")


@pytest.fixture
def stranger(db):
    return UserFactory(display_name="Stranger")


@pytest.fixture
def owner_client(owner, authenticated_client_factory):
    return authenticated_client_factory(owner)


@pytest.fixture
def recipient_client(recipient, authenticated_client_factory):
    return authenticated_client_factory(recipient)


# =============================================================================
# Files
# =============================================================================


def make_upload(
    content: bytes = CIPHERTEXT,
    name: str = "quarterly report.pdf",
    content_type: str = "application/pdf",
) -> SimpleUploadedFile:
    return SimpleUploadedFile(name, content, content_type=content_type)


@pytest.fixture
def stored_file(owner):
    """An encrypted file uploaded by ``owner`` with its blob on storage."""
    return EncryptedFileService.upload(
        uploader=owner,
        uploaded_file=make_upload(),
        encryption_key=ENCRYPTION_KEY,
        iv=IV,
    )
