"""
Blob store for encrypted file content.

EncryptedBlobStore wraps Django's FileSystemStorage rooted at
MEDIA_ROOT/ENCRYPTED_FILE_DIR. It only ever sees server-generated names,
so a client filename can never steer a write outside the store.

The root is resolved on every call rather than at import, which lets
tests point MEDIA_ROOT at a temporary directory with the settings fixture.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.files.storage import FileSystemStorage

from media.constants import FILE_CONFIG

if TYPE_CHECKING:
    from django.core.files import File


class EncryptedBlobStore:
    """
    Save/open/delete ciphertext blobs by stored name.

    Usage:
        store = EncryptedBlobStore()
        path = store.save(stored_name, uploaded_file)
        with store.open(path) as handle:
            ...
    """

    def _storage(self) -> FileSystemStorage:
        location = os.path.join(settings.MEDIA_ROOT, FILE_CONFIG.ENCRYPTED_DIR)
        return FileSystemStorage(location=location)

    def save(self, stored_name: str, content: File) -> str:
        """
        Write content under stored_name and return the relative path.

        Content is rewound first so a stream that was just hashed is
        written in full.
        """
        content.seek(0)
        return self._storage().save(stored_name, content)

    def open(self, path: str):
        return self._storage().open(path, "rb")

    def exists(self, path: str) -> bool:
        return bool(path) and self._storage().exists(path)

    def delete(self, path: str) -> None:
        self._storage().delete(path)

    def path(self, path: str) -> str:
        return self._storage().path(path)


blob_store = EncryptedBlobStore()
