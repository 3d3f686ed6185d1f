"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules)
    - Exceptions (core.exceptions): Use for failures that must short-circuit
      the whole request (integrity, storage, share state)

Usage:
    from core.services import BaseService, ServiceResult

    class ConversationService(BaseService):
        @classmethod
        def get_for_participant(cls, conversation_id, user) -> ServiceResult[Conversation]:
            conversation = Conversation.objects.filter(pk=conversation_id).first()
            if conversation is None:
                return ServiceResult.failure(
                    "Conversation not found",
                    error_code="CONVERSATION_NOT_FOUND",
                )
            return ServiceResult.success(conversation)

    # In view
    result = ConversationService.get_for_participant(pk, request.user)
    if not result.success:
        return failure_response(result)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, business rule violations).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Example:
            return ServiceResult.failure("Message not found", "MESSAGE_NOT_FOUND")
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert a failed result to the API error body.

        Returns:
            Dict with error, error_code and (if present) field errors
        """
        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() that makes
        transaction boundaries explicit in service code.

        Example:
            with cls.atomic():
                ack = MessageAcknowledgment.objects.create(...)
                ComplianceRecorder.record_audit(...)
                # If the audit insert fails, the acknowledgment is rolled back
        """
        with transaction.atomic():
            yield
