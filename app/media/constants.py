"""
Constants and configuration for the media module.

Limits can be overridden via Django settings.
Import example:
    from media.constants import FILE_CONFIG
"""

from typing import Final

from django.conf import settings


# =============================================================================
# File Configuration
# =============================================================================


class FILE_CONFIG:
    """Configuration for encrypted file uploads and shares."""

    # Ciphertext size limit (10 MiB)
    MAX_BYTES: Final[int] = getattr(settings, "ENCRYPTED_FILE_MAX_BYTES", 10 * 1024 * 1024)

    # Subdirectory of MEDIA_ROOT holding encrypted blobs
    ENCRYPTED_DIR: Final[str] = getattr(settings, "ENCRYPTED_FILE_DIR", "encrypted")

    # Prefix for share URLs; empty means "derive from the request host"
    SHARE_BASE_URL: Final[str] = getattr(settings, "FILE_SHARE_BASE_URL", "")
