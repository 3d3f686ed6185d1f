"""
FileDeliveryService for streaming encrypted blobs to clients.

Blobs are always served by Django as a FileResponse: the key material
travels in response headers, so the response cannot be handed off to a
front proxy the way plain media can.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

from django.http import FileResponse

from core.services import BaseService

if TYPE_CHECKING:
    from media.models import EncryptedFile


class FileDeliveryService(BaseService):
    """
    Build download responses for encrypted files.

    Usage:
        handle = FileAccessService.open_for_delivery(file)
        response = FileDeliveryService.serve_file_response(file, handle, as_attachment=True)
    """

    @classmethod
    def serve_file_response(
        cls,
        file: EncryptedFile,
        handle,
        as_attachment: bool = True,
    ) -> FileResponse:
        """
        Stream an opened blob with content and decryption headers.

        Headers:
            Content-Type: The plaintext MIME type
            Content-Disposition: attachment or inline, RFC 5987 filename
            X-Encryption-Key / X-Encryption-IV: Stored key material, verbatim
            X-Content-Hash: sha256 of the ciphertext
        """
        response = FileResponse(handle, content_type=file.mime_type)
        response["Content-Disposition"] = cls._content_disposition(
            file.original_name, as_attachment
        )
        response["X-Encryption-Key"] = file.encryption_key
        response["X-Encryption-IV"] = file.iv
        response["X-Content-Hash"] = file.content_hash
        return response

    @staticmethod
    def _content_disposition(filename: str, as_attachment: bool) -> str:
        disposition = "attachment" if as_attachment else "inline"
        ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
        return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
