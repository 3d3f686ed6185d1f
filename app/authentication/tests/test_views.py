"""
Tests for authentication API views.

This module tests:
- RegisterView: POST /api/v1/auth/register/
- LoginView: POST /api/v1/auth/login/
- LogoutView: POST /api/v1/auth/logout/
- CurrentUserView: GET /api/v1/auth/user/
- Token refresh: POST /api/v1/auth/token/refresh/

Testing Philosophy:
    Tests focus on observable HTTP behavior: status codes, response bodies
    and database state.
"""

import pytest
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import User
from authentication.tests.factories import UserFactory


# =============================================================================
# URL Constants
# =============================================================================


REGISTER_URL = "/api/v1/auth/register/"
LOGIN_URL = "/api/v1/auth/login/"
LOGOUT_URL = "/api/v1/auth/logout/"
USER_URL = "/api/v1/auth/user/"
REFRESH_URL = "/api/v1/auth/token/refresh/"


# =============================================================================
# TestRegisterView
# =============================================================================


class TestRegisterView:
    """
    Tests for POST /api/v1/auth/register/.
    """

    def test_register_returns_tokens_and_user(self, api_client, db):
        """
        Successful registration returns 201 with a JWT pair.

        Why it matters: Clients log in immediately after signing up.
        """
        response = api_client.post(
            REGISTER_URL,
            {
                "email": "fresh@example.com",
                "password": "StrongPass123!",
                "display_name": "Fresh",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert "access" in response.data
        assert "refresh" in response.data
        assert response.data["user"]["email"] == "fresh@example.com"
        assert response.data["user"]["display_name"] == "Fresh"

    def test_register_duplicate_email_returns_409(self, api_client, user):
        """
        Registering an existing email returns 409 EMAIL_EXISTS.

        Why it matters: Clients show a specific message for taken emails.
        """
        response = api_client.post(
            REGISTER_URL,
            {"email": user.email, "password": "StrongPass123!"},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "EMAIL_EXISTS"

    def test_register_short_password_returns_400(self, api_client, db):
        """
        Weak passwords are rejected by serializer validation.

        Why it matters: Password policy is enforced server-side.
        """
        response = api_client.post(
            REGISTER_URL,
            {"email": "weak@example.com", "password": "short"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email="weak@example.com").exists()


# =============================================================================
# TestLoginView
# =============================================================================


class TestLoginView:
    """
    Tests for POST /api/v1/auth/login/.
    """

    def test_login_returns_tokens_and_sets_online(self, api_client, db):
        """
        Valid login returns tokens and persists is_online=True.

        Why it matters: REST login is one of the two presence sources.
        """
        user = UserFactory(password="StrongPass123!")

        response = api_client.post(
            LOGIN_URL,
            {"email": user.email, "password": "StrongPass123!"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["user"]["id"] == user.id
        assert response.data["user"]["is_online"] is True
        user.refresh_from_db()
        assert user.is_online is True
        assert user.last_login is not None

    def test_login_bad_credentials_returns_401(self, api_client, user):
        """
        Wrong password returns 401 INVALID_CREDENTIALS.

        Why it matters: Auth failures at the REST boundary are 401.
        """
        response = api_client.post(
            LOGIN_URL,
            {"email": user.email, "password": "nope-nope"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["error_code"] == "INVALID_CREDENTIALS"


# =============================================================================
# TestLogoutView
# =============================================================================


class TestLogoutView:
    """
    Tests for POST /api/v1/auth/logout/.
    """

    def test_logout_sets_offline_and_invalidates_refresh(self, api_client, db):
        """
        Logout marks the user offline and the refresh token stops working.

        Why it matters: A logged-out session must not be revivable.
        """
        user = UserFactory(is_online=True)
        refresh = RefreshToken.for_user(user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")

        response = api_client.post(LOGOUT_URL, {"refresh": str(refresh)}, format="json")

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.is_online is False
        assert user.last_seen is not None

        refresh_response = api_client.post(
            REFRESH_URL, {"refresh": str(refresh)}, format="json"
        )
        assert refresh_response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_requires_authentication(self, api_client, db):
        """
        Anonymous logout is rejected.

        Why it matters: Presence is only changed for the caller.
        """
        response = api_client.post(LOGOUT_URL, {}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# TestCurrentUserView
# =============================================================================


class TestCurrentUserView:
    """
    Tests for GET /api/v1/auth/user/.
    """

    def test_returns_current_user(self, authenticated_client, user):
        """
        Authenticated user receives their own profile.

        Why it matters: Clients bootstrap identity and role from this.
        """
        response = authenticated_client.get(USER_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == user.id
        assert response.data["role"] == "user"

    def test_anonymous_returns_401(self, api_client):
        """
        Anonymous access is rejected.

        Why it matters: Profile data is private.
        """
        response = api_client.get(USER_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# TestTokenRefresh
# =============================================================================


class TestTokenRefresh:
    """Tests for POST /api/v1/auth/token/refresh/."""

    def test_refresh_returns_new_access_token(self, api_client, user):
        """
        A valid refresh token yields a new access token.

        Why it matters: Long-lived sessions depend on refresh.
        """
        refresh = RefreshToken.for_user(user)

        response = api_client.post(REFRESH_URL, {"refresh": str(refresh)}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert "access" in response.data
