"""
Authentication services.

This module provides the AuthService class for account registration,
credential login/logout and presence updates.

Related files:
    - models.py: User
    - views.py: Register/Login/Logout views issuing JWT pairs
    - chat/consumers.py: Calls set_online() on websocket auth and close

Security:
    - Passwords hashed with Django's configured hasher
    - Refresh tokens are blacklisted on logout
    - Tokens are never logged
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import authenticate
from django.db import IntegrityError
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from authentication.models import User


class AuthService(BaseService):
    """
    Centralized authentication business logic.

    Usage:
        from authentication.services import AuthService

        result = AuthService.register("a@example.com", "pw", display_name="A")
        result = AuthService.login("a@example.com", "pw")
        AuthService.logout(user, refresh_token)
    """

    @classmethod
    def register(
        cls,
        email: str,
        password: str,
        display_name: str = "",
        department: str = "",
    ) -> ServiceResult[User]:
        """
        Create a new user account.

        Errors:
            EMAIL_EXISTS: An account with this email already exists
        """
        from authentication.models import User

        logger = cls.get_logger()
        email = User.objects.normalize_email(email.strip())

        if User.objects.filter(email__iexact=email).exists():
            return ServiceResult.failure(
                "An account with this email already exists",
                error_code="EMAIL_EXISTS",
            )

        try:
            user = User.objects.create_user(
                email=email,
                password=password,
                display_name=display_name.strip(),
                department=department.strip(),
            )
        except IntegrityError:
            # Concurrent registration with the same email
            return ServiceResult.failure(
                "An account with this email already exists",
                error_code="EMAIL_EXISTS",
            )

        logger.info(f"User registered: {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def login(cls, email: str, password: str, request=None) -> ServiceResult[User]:
        """
        Verify credentials and mark the user online.

        Errors:
            INVALID_CREDENTIALS: Unknown email, wrong password or inactive user
        """
        logger = cls.get_logger()
        user = authenticate(request, email=email.strip(), password=password)
        if user is None or not user.is_active:
            logger.info("Login failed: invalid credentials")
            return ServiceResult.failure(
                "Invalid email or password",
                error_code="INVALID_CREDENTIALS",
            )

        cls.set_online(user, True)
        logger.info(f"User logged in: {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def logout(cls, user: User, refresh_token: str | None = None) -> ServiceResult[None]:
        """
        Mark the user offline and blacklist the refresh token if given.

        An invalid or already-blacklisted refresh token does not fail the
        logout; the presence update still happens.
        """
        logger = cls.get_logger()
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError:
                logger.info(f"Logout for user {user.id} with unusable refresh token")

        cls.set_online(user, False)
        logger.info(f"User logged out: {user.id}")
        return ServiceResult.success(None)

    @staticmethod
    def issue_tokens(user: User) -> dict[str, str]:
        """Return a fresh ``{"access", "refresh"}`` pair for the user."""
        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}

    @staticmethod
    def set_online(user: User, online: bool) -> None:
        """
        Persist the user's presence flag.

        Going offline also stamps last_seen. Only is_online/last_seen are
        written so concurrent profile edits are not overwritten.
        """
        from authentication.models import User

        fields = {"is_online": online}
        if not online:
            fields["last_seen"] = timezone.now()

        User.objects.filter(pk=user.pk).update(**fields)
        for name, value in fields.items():
            setattr(user, name, value)
