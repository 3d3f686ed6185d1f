"""
Tests for role capabilities and the HasCapability permission class.
"""

from types import SimpleNamespace

import pytest
from django.contrib.auth.models import AnonymousUser

from authentication.models import UserRole
from authentication.permissions import (
    ROLE_CAPABILITIES,
    Capability,
    HasCapability,
    capabilities_for_role,
)
from authentication.tests.factories import UserFactory


# =============================================================================
# TestRoleCapabilities
# =============================================================================


class TestRoleCapabilities:
    """
    Tests for the role -> capability mapping.

    Why it matters: Every privileged compliance operation is gated by
    this table; a wrong entry is a privilege escalation.
    """

    def test_every_role_has_an_entry(self):
        """
        Each UserRole appears in ROLE_CAPABILITIES.

        Why it matters: A missing role would silently get no capabilities.
        """
        assert set(ROLE_CAPABILITIES) == set(UserRole.values)

    def test_plain_user_has_no_capabilities(self):
        assert capabilities_for_role(UserRole.USER) == frozenset()

    def test_auditor_can_view_but_not_manage(self):
        """
        Auditors read compliance data but cannot change policies.

        Why it matters: Separation of duties between review and management.
        """
        caps = capabilities_for_role(UserRole.AUDITOR)

        assert Capability.VIEW_AUDIT_TRAIL in caps
        assert Capability.VIEW_ACCESS_LOGS in caps
        assert Capability.MANAGE_RETENTION_POLICIES not in caps
        assert Capability.GENERATE_COMPLIANCE_REPORTS not in caps

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.COMPLIANCE_OFFICER])
    def test_managers_hold_every_capability(self, role):
        assert capabilities_for_role(role) == frozenset(Capability)

    def test_unknown_role_has_no_capabilities(self):
        assert capabilities_for_role("superhero") == frozenset()


# =============================================================================
# TestUserHasCapability
# =============================================================================


@pytest.mark.django_db
class TestUserHasCapability:
    """Tests for User.has_capability."""

    def test_officer_has_manage_capability(self):
        officer = UserFactory(role=UserRole.COMPLIANCE_OFFICER)

        assert officer.has_capability(Capability.MANAGE_RETENTION_POLICIES)

    def test_inactive_user_has_no_capabilities(self):
        """
        Deactivated accounts lose capabilities immediately.

        Why it matters: Offboarded staff must not keep compliance access.
        """
        admin = UserFactory(role=UserRole.ADMIN, is_active=False)

        assert not admin.has_capability(Capability.VIEW_AUDIT_TRAIL)


# =============================================================================
# TestHasCapabilityPermission
# =============================================================================


@pytest.mark.django_db
class TestHasCapabilityPermission:
    """
    Tests for the HasCapability DRF permission.
    """

    def _request(self, user, method="GET"):
        return SimpleNamespace(user=user, method=method)

    def test_grants_when_user_holds_required_capability(self):
        view = SimpleNamespace(required_capability=Capability.VIEW_AUDIT_TRAIL)
        auditor = UserFactory(role=UserRole.AUDITOR)

        assert HasCapability().has_permission(self._request(auditor), view)

    def test_denies_when_user_lacks_capability(self):
        view = SimpleNamespace(required_capability=Capability.VIEW_AUDIT_TRAIL)
        user = UserFactory()

        assert not HasCapability().has_permission(self._request(user), view)

    def test_denies_anonymous(self):
        view = SimpleNamespace(required_capability=Capability.VIEW_AUDIT_TRAIL)

        assert not HasCapability().has_permission(self._request(AnonymousUser()), view)

    def test_capability_map_allows_unmapped_methods(self):
        """
        Methods absent from capability_map are open to authenticated users.

        Why it matters: Retention policies are listable by everyone but
        writable only by managers.
        """
        view = SimpleNamespace(
            capability_map={"POST": Capability.MANAGE_RETENTION_POLICIES}
        )
        user = UserFactory()

        assert HasCapability().has_permission(self._request(user, "GET"), view)
        assert not HasCapability().has_permission(self._request(user, "POST"), view)

    def test_view_without_declared_capability_denies(self):
        """
        Forgetting to declare a capability fails closed.

        Why it matters: Misconfiguration must not open privileged endpoints.
        """
        admin = UserFactory(role=UserRole.ADMIN)

        assert not HasCapability().has_permission(self._request(admin), SimpleNamespace())
