"""
Constants and configuration for the compliance module.

Import example:
    from compliance.constants import AUDIT_EVENTS, COMPLIANCE_CONFIG
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Query Configuration
# =============================================================================


class COMPLIANCE_CONFIG:
    """Limits for compliance queries and reports."""

    QUERY_DEFAULT_LIMIT: Final[int] = 100
    QUERY_MAX_LIMIT: Final[int] = getattr(settings, "COMPLIANCE_QUERY_MAX_LIMIT", 500)

    # Number of most recent events embedded in an audit_trail report
    REPORT_RECENT_EVENTS: Final[int] = 100


# =============================================================================
# Audit Event Types
# =============================================================================


class AUDIT_EVENTS:
    """Event type strings written to AuditTrail.event_type."""

    MESSAGE_SENT: Final[str] = "message_sent"
    MESSAGE_EDITED: Final[str] = "message_edited"
    MESSAGE_DELETED: Final[str] = "message_deleted"
    MESSAGE_ACKNOWLEDGED: Final[str] = "message_acknowledged"

    FILE_SHARED: Final[str] = "file_shared"
    FILE_SHARE_REVOKED: Final[str] = "file_share_revoked"

    RETENTION_POLICY_CREATED: Final[str] = "retention_policy_created"
    RETENTION_POLICY_UPDATED: Final[str] = "retention_policy_updated"
    RETENTION_POLICY_DEACTIVATED: Final[str] = "retention_policy_deactivated"

    COMPLIANCE_REPORT_GENERATED: Final[str] = "compliance_report_generated"
