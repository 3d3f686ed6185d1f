"""Media services for encrypted upload, sharing, access control and delivery."""

from media.services.access_control import FileAccess, FileAccessService
from media.services.delivery import FileDeliveryService
from media.services.sharing import FileShareService
from media.services.upload import EncryptedFileService

__all__ = [
    "EncryptedFileService",
    "FileAccess",
    "FileAccessService",
    "FileDeliveryService",
    "FileShareService",
]
