"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks used by the domain apps
(authentication, chat, media, compliance). Nothing in here knows about
conversations, files or compliance records.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Managers (import from core.managers):
    - SoftDeleteManager / SoftDeleteQuerySet: Hide deleted rows by default

Services (import from core.services):
    - BaseService: Logger and transaction helpers
    - ServiceResult: Success/failure wrapper for expected failures

Exceptions (import from core.exceptions):
    - BaseApplicationError and the domain error taxonomy
    - api_exception_handler: DRF EXCEPTION_HANDLER

Helpers (import from core.helpers):
    - sha256_hex / sha256_stream: Content hashing
    - generate_token: Unguessable URL-safe tokens
    - get_client_ip / get_user_agent: Request metadata
    - parse_limit: Bounded ``limit`` query parameters
"""
