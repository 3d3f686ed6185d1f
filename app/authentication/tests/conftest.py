"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/v1/auth/user/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import User, UserRole
from authentication.tests.factories import UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic active user with the default role."""
    return UserFactory()


@pytest.fixture
def superuser(db):
    """Create a superuser (admin role)."""
    return User.objects.create_superuser(
        email="admin@example.com", password="AdminPass123!"
    )


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


@pytest.fixture
def compliance_officer(db):
    """Create a user holding the compliance_officer role."""
    return UserFactory(role=UserRole.COMPLIANCE_OFFICER)


@pytest.fixture
def auditor(db):
    """Create a user holding the auditor role."""
    return UserFactory(role=UserRole.AUDITOR)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client for public endpoints."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with JWT token for the default user fixture."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client
