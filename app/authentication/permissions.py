"""
Role capabilities and DRF permission classes.

Roles are never compared as strings outside this module. Code asks a user
whether they hold a Capability, and the mapping below decides.

Capability Matrix:
    MANAGE_RETENTION_POLICIES     admin, compliance_officer
    GENERATE_COMPLIANCE_REPORTS   admin, compliance_officer
    VIEW_COMPLIANCE_REPORTS       admin, compliance_officer, auditor
    VIEW_ACCESS_LOGS              admin, compliance_officer, auditor
    VIEW_AUDIT_TRAIL              admin, compliance_officer, auditor
    VIEW_ACKNOWLEDGMENTS          admin, compliance_officer, auditor

Usage:
    class AuditTrailView(APIView):
        permission_classes = [IsAuthenticated, HasCapability]
        required_capability = Capability.VIEW_AUDIT_TRAIL
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models
from rest_framework import permissions

from authentication.models import UserRole

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class Capability(models.TextChoices):
    """Closed set of privileged operations."""

    MANAGE_RETENTION_POLICIES = "manage_retention_policies", "Manage retention policies"
    GENERATE_COMPLIANCE_REPORTS = "generate_compliance_reports", "Generate compliance reports"
    VIEW_COMPLIANCE_REPORTS = "view_compliance_reports", "View compliance reports"
    VIEW_ACCESS_LOGS = "view_access_logs", "View access logs"
    VIEW_AUDIT_TRAIL = "view_audit_trail", "View audit trail"
    VIEW_ACKNOWLEDGMENTS = "view_acknowledgments", "View acknowledgments"


_REVIEWER_CAPABILITIES = frozenset(
    {
        Capability.VIEW_COMPLIANCE_REPORTS,
        Capability.VIEW_ACCESS_LOGS,
        Capability.VIEW_AUDIT_TRAIL,
        Capability.VIEW_ACKNOWLEDGMENTS,
    }
)

_MANAGER_CAPABILITIES = _REVIEWER_CAPABILITIES | {
    Capability.MANAGE_RETENTION_POLICIES,
    Capability.GENERATE_COMPLIANCE_REPORTS,
}

ROLE_CAPABILITIES: dict[str, frozenset[Capability]] = {
    UserRole.USER: frozenset(),
    UserRole.AUDITOR: _REVIEWER_CAPABILITIES,
    UserRole.COMPLIANCE_OFFICER: frozenset(_MANAGER_CAPABILITIES),
    UserRole.ADMIN: frozenset(_MANAGER_CAPABILITIES),
}


def capabilities_for_role(role: str) -> frozenset[Capability]:
    """Return the capabilities granted to a role (empty for unknown roles)."""
    return ROLE_CAPABILITIES.get(role, frozenset())


class HasCapability(permissions.BasePermission):
    """
    Allows access only to users holding the view's required capability.

    The view declares ``required_capability``. A view may instead declare
    ``capability_map`` keyed by HTTP method for endpoints where reading
    and writing need different capabilities. Methods missing from the map
    are allowed for any authenticated user.
    """

    message = "You do not have permission to perform this action."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False

        capability_map = getattr(view, "capability_map", None)
        if capability_map is not None:
            capability = capability_map.get(request.method)
            if capability is None:
                return True
        else:
            capability = getattr(view, "required_capability", None)
            if capability is None:
                return False

        return user.has_capability(capability)
