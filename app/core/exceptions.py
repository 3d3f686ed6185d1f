"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across REST endpoints
- Machine-readable error codes for client handling
- A single place where domain errors are mapped to HTTP statuses

Exception Hierarchy:
    BaseApplicationError (base)
    ├── AuthenticationError - Missing, invalid or expired credential (401)
    ├── ValidationError - Input validation failures (400)
    ├── NotFoundError - Resource has no record (404)
    │   └── StorageFailureError - Record exists but blob is missing (404)
    ├── PermissionDeniedError - Authorization failures (403)
    │   └── ShareExpiredOrExhaustedError - Share past expiry or view cap (403)
    ├── ConflictError - Duplicates and state conflicts (409)
    └── IntegrityFailureError - Content hash mismatch on read (409)

Usage:
    from core.exceptions import NotFoundError, ValidationError

    raise ValidationError("Encryption data required", error_code="MISSING_ENCRYPTION_DATA")

    # Views do not need to catch these: api_exception_handler renders
    # {"error": ..., "error_code": ..., "details": ...} with http_status.

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        http_status: Status code used when the error escapes a view
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "File not found on storage",
                "error_code": "FILE_NOT_ON_STORAGE",
                "details": {"file_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class AuthenticationError(BaseApplicationError):
    """
    Raised when a credential is missing, malformed or expired.

    Used by share access when the share requires a logged-in caller.
    The websocket layer never raises this; it answers with auth_error.
    """

    default_error_code: str = "AUTHENTICATION_FAILED"
    http_status: int = status.HTTP_401_UNAUTHORIZED


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails in the service layer.

    Example:
        raise ValidationError(
            "max_views must be at least 1",
            error_code="INVALID_MAX_VIEWS",
            details={"max_views": max_views},
        )

    Note:
        For DRF serializer validation, use DRF's built-in validation.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource has no record.

    Example:
        raise NotFoundError("Message not found", error_code="MESSAGE_NOT_FOUND")
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = status.HTTP_404_NOT_FOUND


class StorageFailureError(NotFoundError):
    """
    Raised when metadata exists but the stored blob does not.

    Kept distinct from NotFoundError so clients can tell "no such record"
    apart from "record exists, bytes are gone".
    """

    default_error_code: str = "FILE_NOT_ON_STORAGE"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when a user lacks permission for an operation.

    Use for:
    - Conversation membership checks
    - Capability checks (retention policies, audit access)
    - File ownership and revoked shares

    Note:
        For authentication failures (missing/invalid token), use
        AuthenticationError or DRF's AuthenticationFailed.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = status.HTTP_403_FORBIDDEN


class ShareExpiredOrExhaustedError(PermissionDeniedError):
    """
    Raised when a file share is past its expiry or has hit its view cap.

    Same 403 class as PermissionDeniedError but with its own code so the
    client can tell the user the link is no longer valid.
    """

    default_error_code: str = "SHARE_EXPIRED_OR_EXHAUSTED"


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Example:
        if User.objects.filter(email__iexact=email).exists():
            raise ConflictError("Email already registered", error_code="EMAIL_EXISTS")
    """

    default_error_code: str = "CONFLICT"
    http_status: int = status.HTTP_409_CONFLICT


class IntegrityFailureError(BaseApplicationError):
    """
    Raised when stored content no longer matches its recorded hash.

    The content is never served when this is raised.
    """

    default_error_code: str = "INTEGRITY_FAILURE"
    http_status: int = status.HTTP_409_CONFLICT


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    DRF exception handler that renders BaseApplicationError subclasses.

    Configured via REST_FRAMEWORK["EXCEPTION_HANDLER"]. Any other exception
    is passed to DRF's default handler unchanged.
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'view'}: "
            f"{exc.error_code}"
        )
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
