"""
Media models package.

Exports:
    FileCategory: Coarse file category derived from the MIME type
    EncryptedFile: Metadata for a client-encrypted blob
    FileShare: Token-based, time/count-limited access grant for a file
"""

from media.models.encrypted_file import EncryptedFile, FileCategory
from media.models.file_share import FileShare

__all__ = [
    "EncryptedFile",
    "FileCategory",
    "FileShare",
]
